"""Scheduled email models."""
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class EmailStatus(Enum):
    """Delivery status of a scheduled email.

    ``SENT`` and ``FAILED`` are terminal.
    """

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not EmailStatus.PENDING


@dataclass(frozen=True)
class ScheduledEmail:
    """An outbound email and its delivery bookkeeping.

    Attributes:
        email_id: Unique identifier, assigned at creation.
        to: Recipient address (trimmed, lowercased).
        subject: Subject line, 1-200 characters.
        html: HTML body.
        send_at: Earliest time the email may be delivered (UTC).
        created_at: When the email was scheduled (UTC).
        status: Current delivery status.
        attempt_count: Number of failed delivery attempts so far.
        max_attempts: Failed attempts allowed before the email is failed.
        last_error: Reason for the most recent failed attempt.
        sent_at: When the email was delivered.
        claimed_by: Run id currently holding the delivery claim.
        claimed_until: When the current claim lapses.
        last_attempt_at: When delivery was last attempted.
    """

    email_id: str
    to: str
    subject: str
    html: str
    send_at: datetime
    created_at: datetime
    status: EmailStatus = EmailStatus.PENDING
    attempt_count: int = 0
    max_attempts: int = 3
    last_error: Optional[str] = None
    sent_at: Optional[datetime] = None
    claimed_by: Optional[str] = None
    claimed_until: Optional[datetime] = None
    last_attempt_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        """Validate required fields."""
        if not self.email_id:
            raise ValueError("email_id cannot be empty")
        if not self.to:
            raise ValueError("to cannot be empty")
        if not self.subject:
            raise ValueError("subject cannot be empty")
        if not self.html:
            raise ValueError("html cannot be empty")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if not 0 <= self.attempt_count <= self.max_attempts:
            raise ValueError("attempt_count must be between 0 and max_attempts")

    @property
    def remaining_attempts(self) -> int:
        return self.max_attempts - self.attempt_count


@dataclass(frozen=True)
class EmailStats:
    """Counts of scheduled emails grouped by status."""

    pending: int = 0
    sent: int = 0
    failed: int = 0
    upcoming_24h: int = 0

    @property
    def total(self) -> int:
        return self.pending + self.sent + self.failed


def ensure_utc(value: datetime) -> datetime:
    """Return *value* as an aware UTC datetime; naive values are read as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
