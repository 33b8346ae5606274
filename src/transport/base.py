"""Email transport contract."""
from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class SendResult:
    """Outcome of handing one email to a provider."""

    success: bool
    error: Optional[str] = None
    provider_message_id: Optional[str] = None

    @classmethod
    def ok(cls, provider_message_id: Optional[str] = None) -> "SendResult":
        return cls(success=True, provider_message_id=provider_message_id)

    @classmethod
    def failure(cls, error: str) -> "SendResult":
        return cls(success=False, error=error)


class EmailTransport(Protocol):
    """Hands a rendered email to a delivery provider.

    ``send`` reports failure by returning ``SendResult.failure`` or by
    raising ``TransportError``. Any other exception is recorded too.
    """

    name: str

    async def send(self, to: str, subject: str, html: str) -> SendResult:
        ...
