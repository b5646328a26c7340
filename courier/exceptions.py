"""Exceptions raised by couriers. Provider SDK exceptions never escape."""

from typing import Optional


class CourierException(Exception):
    """Base exception for all courier errors."""
    pass


class UnsupportedContentException(CourierException, ValueError):
    """The email's content variant is not supported by the courier."""

    def __init__(self, content, code: int = 0):
        self.content = content
        self.code = code
        super().__init__(f'The content type {content.kind} is not supported.')


class TransmissionException(CourierException):
    """The provider call failed. Carries the provider's status or error code when known."""

    def __init__(self, code: Optional[int] = 0, message: Optional[str] = None):
        self.code = code or 0
        super().__init__(message or 'There was an error communicating with the courier provider.')


class ValidationException(CourierException, ValueError):
    """The email could not be translated into a valid provider request."""
    pass


class ReceiptException(CourierException, LookupError):
    """No receipt was recorded for the email."""

    def __init__(self, code: int = 0):
        self.code = code
        super().__init__('Unable to find receipt for email.')
