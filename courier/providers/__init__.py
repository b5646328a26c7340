from courier.providers.courier_adapter import ConfirmingCourier, Courier
from courier.providers.logging_adapter import LoggingCourier
from courier.providers.mail_adapter import MailCourier
from courier.providers.null_adapter import NullCourier
from courier.providers.postmark_adapter import PostmarkCourier
from courier.providers.postmark_client import PostmarkClient, PostmarkError
from courier.providers.sendgrid_adapter import SendGridCourier
from courier.providers.sparkpost_adapter import SparkPostCourier
from courier.providers.sparkpost_client import SparkPostClient, SparkPostError
from courier.providers.transport_adapter import TransportCourier

__all__ = [
    "Courier",
    "ConfirmingCourier",
    "LoggingCourier",
    "MailCourier",
    "NullCourier",
    "PostmarkClient",
    "PostmarkCourier",
    "PostmarkError",
    "SendGridCourier",
    "SparkPostClient",
    "SparkPostCourier",
    "SparkPostError",
    "TransportCourier",
]
