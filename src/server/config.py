"""Server configuration."""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import os

from src.scheduler.enqueuer import MAX_ATTEMPTS
from src.transport.brevo import BREVO_API_URL

logger = logging.getLogger(__name__)

_VALID_TRANSPORTS = ("brevo", "log")
DEFAULT_SENDER = "Mail Scheduler <no-reply@localhost>"


@dataclass(frozen=True)
class DeliveryConfig:
    """Delivery run behaviour.

    ``claim_ttl`` must exceed ``transport_timeout`` so a live attempt never
    outlasts its claim.  ``send_delay`` is the pause between consecutive
    sends in one run.  ``batch_limit`` caps emails per run (None: all due).
    """

    default_max_attempts: int = 3
    transport_timeout: float = 30.0
    claim_ttl: float = 300.0
    send_delay: float = 0.1
    batch_limit: Optional[int] = None


@dataclass(frozen=True)
class TransportConfig:
    kind: str = "log"
    api_key: str = ""
    sender: str = DEFAULT_SENDER
    api_url: str = BREVO_API_URL


@dataclass(frozen=True)
class ServerConfig:
    db_path: Path = field(default_factory=lambda: Path("data/mail_scheduler.db"))
    db_busy_timeout: float = 5.0
    cron_secret: str = ""
    delivery: DeliveryConfig = field(default_factory=DeliveryConfig)
    transport: TransportConfig = field(default_factory=TransportConfig)


def _parse_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def _parse_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def validate_delivery(delivery: DeliveryConfig) -> None:
    """Raise ValueError for inconsistent delivery settings."""
    if not 1 <= delivery.default_max_attempts <= MAX_ATTEMPTS:
        raise ValueError(f"DEFAULT_MAX_ATTEMPTS must be between 1 and {MAX_ATTEMPTS}")
    if delivery.transport_timeout <= 0:
        raise ValueError("TRANSPORT_TIMEOUT must be positive")
    if delivery.claim_ttl <= delivery.transport_timeout:
        raise ValueError(
            "CLAIM_TTL_SECONDS must exceed TRANSPORT_TIMEOUT "
            f"({delivery.claim_ttl} <= {delivery.transport_timeout})"
        )


def validate_transport(transport: TransportConfig) -> None:
    """Raise ValueError for an unusable transport selection."""
    if transport.kind not in _VALID_TRANSPORTS:
        raise ValueError(
            f"EMAIL_TRANSPORT must be one of: {', '.join(_VALID_TRANSPORTS)}; "
            f"got {transport.kind!r}"
        )
    if transport.kind == "brevo" and not transport.api_key:
        raise ValueError("BREVO_API_KEY required when EMAIL_TRANSPORT is 'brevo'")


def load_config_from_env() -> ServerConfig:
    batch_limit_raw = os.environ.get("BATCH_LIMIT")
    batch_limit = _parse_int("BATCH_LIMIT", 0, minimum=1) if batch_limit_raw else None

    delivery = DeliveryConfig(
        default_max_attempts=_parse_int("DEFAULT_MAX_ATTEMPTS", 3, minimum=1),
        transport_timeout=_parse_float("TRANSPORT_TIMEOUT", 30.0),
        claim_ttl=_parse_float("CLAIM_TTL_SECONDS", 300.0),
        send_delay=_parse_float("SEND_DELAY", 0.1),
        batch_limit=batch_limit,
    )
    validate_delivery(delivery)

    transport = TransportConfig(
        kind=os.environ.get("EMAIL_TRANSPORT", "log").lower(),
        api_key=os.environ.get("BREVO_API_KEY", ""),
        sender=os.environ.get("EMAIL_FROM", DEFAULT_SENDER),
        api_url=os.environ.get("BREVO_API_URL", BREVO_API_URL),
    )
    validate_transport(transport)

    cron_secret = os.environ.get("CRON_SECRET", "")
    if not cron_secret:
        logger.warning(
            "CRON_SECRET not set -- cron endpoints accept unauthenticated "
            "requests. Set CRON_SECRET to require a bearer token."
        )

    return ServerConfig(
        db_path=Path(os.environ.get("DB_PATH", "data/mail_scheduler.db")),
        db_busy_timeout=_parse_float("DB_BUSY_TIMEOUT", 5.0),
        cron_secret=cron_secret,
        delivery=delivery,
        transport=transport,
    )
