"""
Courier Adapter Pattern - Interface and Implementations

This module defines the contract (interface) that all couriers must implement,
making it easy to switch between vendors like Postmark, SendGrid, SparkPost, etc.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Tuple, Type

from courier.exceptions import UnsupportedContentException
from courier.models import Content, Email
from courier.receipts import ReceiptStore


class Courier(ABC):
    """
    Abstract base class (interface) for email couriers.

    Any courier implementation must extend this class and implement deliver().
    Subclasses declare the content variants they accept in SUPPORTED_CONTENT.
    """

    SUPPORTED_CONTENT: Tuple[Type[Content], ...] = ()

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.log = logger or logging.getLogger('courier')

    @abstractmethod
    def deliver(self, email: Email) -> None:
        """
        Deliver an email using the provider.

        Args:
            email: Email to deliver

        Raises:
            UnsupportedContentException: If the content variant is not supported
            TransmissionException: If the provider call fails
        """
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the name of this courier's provider."""
        pass

    def supports_content(self, content: Content) -> bool:
        return isinstance(content, self.SUPPORTED_CONTENT)

    def ensure_supported(self, email: Email) -> None:
        """Fail before any provider call when the content variant is not supported."""
        if not self.supports_content(email.content):
            raise UnsupportedContentException(email.content)


class ConfirmingCourier(Courier):
    """A courier that records the provider's receipt for each delivered email."""

    def __init__(self, logger: Optional[logging.Logger] = None, receipts: Optional[ReceiptStore] = None):
        super().__init__(logger)
        self.receipts = receipts if receipts is not None else ReceiptStore()

    def save_receipt(self, email: Email, receipt: str) -> None:
        self.receipts.save_receipt(email, receipt)

    def receipt_for(self, email: Email) -> str:
        """
        Get the receipt from the latest successful delivery of this email.

        Raises:
            ReceiptException: If the email was never delivered by this courier
        """
        return self.receipts.receipt_for(email)
