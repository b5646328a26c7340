"""
Courier Service - Factory and Facade

This module provides a simple interface for delivering emails without
knowing which courier is being used. It handles courier selection from
configuration and provides a clean API for the rest of the application.
"""

from typing import Dict, Any, Callable, Optional
from sendgrid import SendGridAPIClient

from courier.config import DEFAULT_HTTP_TIMEOUT, POSTMARK_API_URL, SPARKPOST_API_URL
from courier.exceptions import CourierException
from courier.models import Email
from courier.providers.courier_adapter import ConfirmingCourier, Courier
from courier.providers.logging_adapter import LoggingCourier
from courier.providers.mail_adapter import MailCourier
from courier.providers.null_adapter import NullCourier
from courier.providers.postmark_adapter import PostmarkCourier
from courier.providers.postmark_client import PostmarkClient
from courier.providers.sendgrid_adapter import SendGridCourier
from courier.providers.sparkpost_adapter import SparkPostCourier
from courier.providers.sparkpost_client import SparkPostClient
from courier.providers.transport_adapter import SMTPTransport, TransportCourier
from courier import logger


def _require(config: Dict[str, Any], key: str, provider: str) -> str:
    value = config.get(key)
    if not value:
        raise ValueError(f'Missing {provider} credential in config: {key}')
    return value


def _build_postmark(config: Dict[str, Any]) -> Courier:
    client = PostmarkClient(
        _require(config, 'postmark_token', 'Postmark'),
        base_uri=config.get('postmark_base_uri') or POSTMARK_API_URL,
        timeout=config.get('http_timeout') or DEFAULT_HTTP_TIMEOUT
    )
    return PostmarkCourier(client)


def _build_sendgrid(config: Dict[str, Any]) -> Courier:
    return SendGridCourier(SendGridAPIClient(_require(config, 'sendgrid_key', 'SendGrid')))


def _build_sparkpost(config: Dict[str, Any]) -> Courier:
    client = SparkPostClient(
        _require(config, 'sparkpost_key', 'SparkPost'),
        base_uri=config.get('sparkpost_base_uri') or SPARKPOST_API_URL,
        timeout=config.get('http_timeout') or DEFAULT_HTTP_TIMEOUT
    )
    return SparkPostCourier(client)


def _build_mail(config: Dict[str, Any]) -> Courier:
    return MailCourier(
        host=config.get('smtp_host') or 'localhost',
        port=int(config.get('smtp_port') or 25),
        timeout=config.get('http_timeout') or DEFAULT_HTTP_TIMEOUT
    )


def _build_transport(config: Dict[str, Any]) -> Courier:
    transport = config.get('transport')
    if transport is None:
        transport = SMTPTransport(
            host=config.get('smtp_host') or 'localhost',
            port=int(config.get('smtp_port') or 25),
            timeout=config.get('http_timeout') or DEFAULT_HTTP_TIMEOUT
        )
    return TransportCourier(transport)


def _build_logging(config: Dict[str, Any]) -> Courier:
    return LoggingCourier()


def _build_null(config: Dict[str, Any]) -> Courier:
    return NullCourier()


class CourierService:
    """
    Courier service that wraps a courier and provides a unified interface.

    This is the main class that business logic should use to deliver emails.
    It logs every attempt and its outcome around the wrapped courier.
    """

    # Registry of available couriers
    COURIERS: Dict[str, Callable[[Dict[str, Any]], Courier]] = {
        'postmark': _build_postmark,
        'sendgrid': _build_sendgrid,
        'sparkpost': _build_sparkpost,
        'mail': _build_mail,
        'transport': _build_transport,
        'logging': _build_logging,
        'null': _build_null,
    }

    def __init__(self, provider: str = 'null', config: Optional[Dict[str, Any]] = None):
        """
        Initialize courier service with specified provider.

        Args:
            provider: Name of the courier ('postmark', 'sendgrid', 'sparkpost', etc.)
            config: Provider configuration (API keys, etc.)
        """
        self.provider = provider.lower()
        self.courier = self._get_courier(self.provider, config or {})

    def _get_courier(self, provider: str, config: Dict[str, Any]) -> Courier:
        """
        Build the appropriate courier for the provider.

        Raises:
            ValueError: If provider is not supported
        """
        builder = self.COURIERS.get(provider)
        if not builder:
            available = ', '.join(self.COURIERS.keys())
            raise ValueError(
                f'Unsupported courier provider: {provider}. '
                f'Available providers: {available}'
            )

        return builder(config)

    def deliver(self, email: Email) -> Optional[str]:
        """
        Deliver an email using the configured courier.

        Returns:
            The provider receipt for confirming couriers, otherwise None

        Raises:
            CourierException: If the courier rejects or fails to deliver the email
        """
        name = self.courier.get_provider_name()
        recipients = [address.email for address in email.to]

        logger.info(f'Sending email via {name}', to=recipients, subject=email.subject)

        try:
            self.courier.deliver(email)
        except CourierException as e:
            logger.error(f'Email send failed via {name}', err=e, to=recipients)
            raise

        receipt = None
        if isinstance(self.courier, ConfirmingCourier):
            receipt = self.courier.receipt_for(email)

        logger.info(f'Email sent successfully via {name}', message_id=receipt, to=recipients)

        return receipt

    @classmethod
    def register_courier(cls, provider: str, builder: Callable[[Dict[str, Any]], Courier]):
        """
        Register a new courier builder.

        This allows adding custom couriers at runtime.

        Args:
            provider: Provider name (e.g., 'custom_provider')
            builder: Callable taking the config mapping and returning a Courier
        """
        if not callable(builder):
            raise TypeError(f'{builder} must be callable')

        cls.COURIERS[provider.lower()] = builder
        logger.info(f'Registered courier: {provider}')


def create_courier_service(config: Dict[str, Any]) -> CourierService:
    """
    Factory function to create CourierService from configuration.

    This checks the config to determine which provider to use.

    Example:
        >>> config = {'courier_provider': 'sparkpost', 'sparkpost_key': 'xxx'}
        >>> service = create_courier_service(config)
        >>> receipt = service.deliver(email)
    """
    # Priority: explicit 'courier_provider' setting, then check which keys exist
    provider = config.get('courier_provider')

    if not provider:
        # Auto-detect based on which keys are present
        if config.get('postmark_token'):
            provider = 'postmark'
        elif config.get('sendgrid_key'):
            provider = 'sendgrid'
        elif config.get('sparkpost_key'):
            provider = 'sparkpost'
        else:
            provider = 'null'
            logger.warn('No courier provider configured, defaulting to the null courier')

    return CourierService(provider=provider, config=config)


def create_courier(config: Dict[str, Any]) -> Courier:
    """Return just the courier selected by create_courier_service()."""
    return create_courier_service(config).courier
