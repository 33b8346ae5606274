"""Validation and persistence of schedule requests."""
import logging
import re
import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from src.scheduler.clock import Clock, utcnow
from src.scheduler.errors import InvalidScheduleError
from src.state.database import DatabaseManager, StoreUnavailableError
from src.state.models.email import EmailStatus, ScheduledEmail, ensure_utc
from src.state.repositories.emails import EmailRepository

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MAX_SUBJECT_LENGTH = 200
DEFAULT_MAX_ATTEMPTS = 3
MAX_ATTEMPTS = 100


@dataclass(frozen=True)
class EmailRequest:
    """A request to deliver one email at or after ``send_date``."""

    to: str
    subject: str
    html: str
    send_date: datetime
    max_retries: Optional[int] = None


def validate_request(request: EmailRequest, now: datetime) -> None:
    """Check a request against the scheduling rules.

    Raises:
        InvalidScheduleError: On a malformed recipient, empty or overlong
            subject, empty body, attempt budget outside 1..MAX_ATTEMPTS, or a send
            date earlier than *now*.
    """
    to = (request.to or "").strip()
    if not to or not request.subject or not request.html or request.send_date is None:
        raise InvalidScheduleError(
            "Missing required fields: to, subject, html, sendDate"
        )
    if not EMAIL_PATTERN.match(to):
        raise InvalidScheduleError(f"Invalid email address: {request.to!r}")
    subject = request.subject.strip()
    if not subject:
        raise InvalidScheduleError("Subject cannot be empty")
    if len(subject) > MAX_SUBJECT_LENGTH:
        raise InvalidScheduleError(
            f"Subject cannot exceed {MAX_SUBJECT_LENGTH} characters"
        )
    if not request.html.strip():
        raise InvalidScheduleError("HTML body cannot be empty")
    if request.max_retries is not None and not 1 <= request.max_retries <= MAX_ATTEMPTS:
        raise InvalidScheduleError(f"maxRetries must be between 1 and {MAX_ATTEMPTS}")
    if ensure_utc(request.send_date) < ensure_utc(now):
        raise InvalidScheduleError("Send date cannot be in the past")


class EmailScheduler:
    """Accepts schedule requests and stores them as pending emails."""

    def __init__(
        self,
        db: DatabaseManager,
        default_max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        clock: Clock = utcnow,
    ) -> None:
        if not 1 <= default_max_attempts <= MAX_ATTEMPTS:
            raise ValueError(f"default_max_attempts must be between 1 and {MAX_ATTEMPTS}")
        self._db = db
        self._default_max_attempts = default_max_attempts
        self._clock = clock

    async def schedule(self, request: EmailRequest) -> ScheduledEmail:
        """Validate and persist a single email."""
        now = self._clock()
        validate_request(request, now)
        email = self._build(request, now)
        await self._persist([email])
        logger.info(
            "Scheduled email %s to=%s send_at=%s",
            email.email_id, email.to, email.send_at.isoformat(),
        )
        return email

    async def schedule_many(
        self, requests: Sequence[EmailRequest],
    ) -> list[ScheduledEmail]:
        """Validate every request, then persist all of them or none.

        Raises:
            InvalidScheduleError: If the batch is empty or any item fails
                validation. ``details["errors"]`` lists each failing item by
                zero-based index.
        """
        if not requests:
            raise InvalidScheduleError("At least one email is required")
        now = self._clock()
        errors: list[dict[str, object]] = []
        for index, request in enumerate(requests):
            try:
                validate_request(request, now)
            except InvalidScheduleError as e:
                errors.append({"index": index, "error": e.message})
        if errors:
            first = errors[0]
            raise InvalidScheduleError(
                f"Email {first['index'] + 1}: {first['error']}",
                details={"errors": errors},
            )

        emails = [self._build(r, now) for r in requests]
        await self._persist(emails)
        logger.info("Scheduled %d emails in one batch", len(emails))
        return emails

    async def _persist(self, emails: list[ScheduledEmail]) -> None:
        try:
            async with self._db.connection() as conn:
                await EmailRepository(conn).insert_many(emails)
        except sqlite3.Error as e:
            logger.error("Failed to store %d email(s): %s", len(emails), e)
            raise StoreUnavailableError(f"Message store failed during enqueue: {e}") from e

    def _build(self, request: EmailRequest, now: datetime) -> ScheduledEmail:
        return ScheduledEmail(
            email_id=str(uuid.uuid4()),
            to=request.to.strip().lower(),
            subject=request.subject.strip(),
            html=request.html,
            send_at=ensure_utc(request.send_date),
            created_at=ensure_utc(now),
            status=EmailStatus.PENDING,
            attempt_count=0,
            max_attempts=request.max_retries or self._default_max_attempts,
        )
