"""Email transports."""
from src.transport.base import EmailTransport, SendResult
from src.transport.brevo import BREVO_API_URL, BrevoTransport, parse_sender
from src.transport.log import LogTransport

_VALID_KINDS = ("brevo", "log")


def build_transport(
    kind: str,
    api_key: str = "",
    sender: str = "",
    api_url: str = BREVO_API_URL,
    timeout: float = 30.0,
) -> EmailTransport:
    """Build the transport named by *kind*.

    Raises:
        ValueError: For an unknown kind or missing Brevo settings.
    """
    if kind not in _VALID_KINDS:
        raise ValueError(
            f"Unknown email transport '{kind}'. "
            f"Expected one of: {', '.join(repr(k) for k in _VALID_KINDS)}."
        )
    if kind == "brevo":
        return BrevoTransport(api_key=api_key, sender=sender, api_url=api_url, timeout=timeout)
    return LogTransport()


__all__ = [
    "BREVO_API_URL",
    "BrevoTransport",
    "EmailTransport",
    "LogTransport",
    "SendResult",
    "build_transport",
    "parse_sender",
]
