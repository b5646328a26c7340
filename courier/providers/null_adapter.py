from courier.models import Content, Email
from courier.providers.courier_adapter import Courier


class NullCourier(Courier):
    """Accepts any email and does nothing with it. Use it in tests."""

    SUPPORTED_CONTENT = (Content,)

    def get_provider_name(self) -> str:
        return "Null"

    def deliver(self, email: Email) -> None:
        pass
