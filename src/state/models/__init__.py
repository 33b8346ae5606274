"""State models."""
from src.state.models.email import EmailStats, EmailStatus, ScheduledEmail, ensure_utc
__all__ = [
    "EmailStats", "EmailStatus", "ScheduledEmail", "ensure_utc",
]
