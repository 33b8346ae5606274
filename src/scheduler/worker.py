"""Delivery of a single due email."""
import asyncio
import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from src.scheduler.clock import Clock, utcnow
from src.scheduler.errors import TransportError
from src.state.models.email import EmailStatus, ScheduledEmail
from src.state.repositories.emails import EmailRepository
from src.transport.base import EmailTransport

logger = logging.getLogger(__name__)


class DeliveryOutcome(Enum):
    """Result of one delivery attempt."""

    SENT = "sent"
    RETRY = "retry"
    FAILED = "failed"
    SKIPPED = "skipped"
    LOST = "lost"

    @property
    def attempted(self) -> bool:
        return self is not DeliveryOutcome.SKIPPED


class DeliveryWorker:
    """Claims a due email, hands it to the transport and records the result.

    The claim is taken before the transport is called, so a concurrent
    run that selected the same email fails its claim and skips it.
    Store errors propagate; transport errors of any kind are recorded as
    a failed attempt.
    """

    def __init__(
        self,
        transport: EmailTransport,
        timeout: float = 30.0,
        claim_ttl: float = 300.0,
        clock: Clock = utcnow,
    ) -> None:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        if claim_ttl <= timeout:
            raise ValueError("claim_ttl must exceed the transport timeout")
        self._transport = transport
        self._timeout = timeout
        self._claim_ttl = timedelta(seconds=claim_ttl)
        self._clock = clock

    async def attempt(
        self,
        repo: EmailRepository,
        email: ScheduledEmail,
        run_id: str,
        run_started_at: datetime,
    ) -> DeliveryOutcome:
        """Attempt delivery of *email* on behalf of run *run_id*."""
        now = self._clock()
        claimed = await repo.claim(
            email.email_id, run_id, now, now + self._claim_ttl, run_started_at,
        )
        if not claimed:
            logger.debug("Email %s already claimed, skipping", email.email_id)
            return DeliveryOutcome.SKIPPED

        error = await self._send(email)
        finished_at = self._clock()

        if error is None:
            if await repo.mark_sent(email.email_id, run_id, finished_at):
                logger.info("Email %s sent to %s", email.email_id, email.to)
                return DeliveryOutcome.SENT
            logger.warning(
                "Email %s sent but claim was lost before recording it",
                email.email_id,
            )
            return DeliveryOutcome.LOST

        logger.warning("Email %s to %s failed: %s", email.email_id, email.to, error)
        updated = await repo.record_failure(email.email_id, run_id, error, finished_at)
        if updated is None:
            logger.warning(
                "Email %s failure not recorded: claim was lost", email.email_id,
            )
            return DeliveryOutcome.LOST
        if updated.status is EmailStatus.FAILED:
            logger.warning(
                "Email %s permanently failed after %d attempts",
                email.email_id, updated.attempt_count,
            )
            return DeliveryOutcome.FAILED
        logger.info(
            "Email %s will be retried (%d/%d)",
            email.email_id, updated.attempt_count, updated.max_attempts,
        )
        return DeliveryOutcome.RETRY

    async def _send(self, email: ScheduledEmail) -> Optional[str]:
        """Call the transport; return None on success, else the error text."""
        try:
            result = await asyncio.wait_for(
                self._transport.send(email.to, email.subject, email.html),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            return f"Transport timed out after {self._timeout}s"
        except TransportError as e:
            return e.message
        except Exception as e:
            # One broken send must never abort the batch
            logger.exception("Transport raised for email %s", email.email_id)
            return f"{type(e).__name__}: {e}"
        if result.success:
            return None
        return result.error or "Unknown transport error"
