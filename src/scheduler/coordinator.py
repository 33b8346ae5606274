"""Batch delivery runs and delivery statistics."""
import asyncio
import logging
import sqlite3
import time
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Optional

from src.scheduler.clock import Clock, utcnow
from src.scheduler.selector import select_due
from src.scheduler.worker import DeliveryOutcome, DeliveryWorker
from src.state.database import DatabaseManager, StoreUnavailableError
from src.state.models.email import EmailStats, ScheduledEmail
from src.state.repositories.emails import EmailRepository

logger = logging.getLogger(__name__)

UPCOMING_WINDOW = timedelta(hours=24)


@dataclass
class RunReport:
    """Aggregate outcome of one batch run.

    Attributes:
        run_id: Identifier used as the claim owner during the run.
        attempted: Emails claimed and handed to the transport.
        sent: Emails delivered.
        failed: Emails that exhausted their attempt budget this run.
        still_pending: Failed attempts that left budget for a later run.
        skipped: Due emails another run claimed first.
        reclaimed: Expired claims released before selection.
        duration_ms: Wall time of the run.
    """

    run_id: str
    attempted: int = 0
    sent: int = 0
    failed: int = 0
    still_pending: int = 0
    skipped: int = 0
    reclaimed: int = 0
    duration_ms: float = 0.0

    def record(self, outcome: DeliveryOutcome) -> None:
        if outcome is DeliveryOutcome.SKIPPED:
            self.skipped += 1
            return
        self.attempted += 1
        if outcome is DeliveryOutcome.SENT:
            self.sent += 1
        elif outcome is DeliveryOutcome.FAILED:
            self.failed += 1
        elif outcome is DeliveryOutcome.RETRY:
            self.still_pending += 1

    def to_dict(self) -> dict:
        return asdict(self)


class BatchRunCoordinator:
    """Runs delivery passes over the due set.

    Invoked by an external periodic trigger; creates no background tasks.
    Overlapping runs are safe because each email is claimed atomically
    before delivery.
    """

    def __init__(
        self,
        db: DatabaseManager,
        worker: DeliveryWorker,
        send_delay: float = 0.1,
        batch_limit: Optional[int] = None,
        clock: Clock = utcnow,
    ) -> None:
        if send_delay < 0:
            raise ValueError("send_delay cannot be negative")
        if batch_limit is not None and batch_limit < 1:
            raise ValueError("batch_limit must be a positive integer")
        self._db = db
        self._worker = worker
        self._send_delay = send_delay
        self._batch_limit = batch_limit
        self._clock = clock

    async def run(self) -> RunReport:
        """Execute one batch run and return its report.

        Raises:
            StoreUnavailableError: If the store fails; ``details`` carries
                the partial report. Completed updates stay committed.
        """
        report = RunReport(run_id=uuid.uuid4().hex)
        start = time.perf_counter()
        started_at = self._clock()
        logger.info("Batch run %s started", report.run_id)
        try:
            async with self._db.connection() as conn:
                repo = EmailRepository(conn)
                report.reclaimed = await repo.release_expired_claims(started_at)
                if report.reclaimed:
                    logger.warning(
                        "Released %d expired claims", report.reclaimed,
                    )
                due = await select_due(repo, started_at, limit=self._batch_limit)
                logger.info("Found %d due emails", len(due))
                for index, email in enumerate(due):
                    outcome = await self._worker.attempt(
                        repo, email, report.run_id, started_at,
                    )
                    report.record(outcome)
                    if (
                        outcome.attempted
                        and self._send_delay
                        and index < len(due) - 1
                    ):
                        await asyncio.sleep(self._send_delay)
        except sqlite3.Error as e:
            report.duration_ms = _elapsed_ms(start)
            logger.error("Batch run %s aborted: %s", report.run_id, e)
            raise StoreUnavailableError(
                f"Message store failed during run: {e}", details=report.to_dict(),
            ) from e
        except StoreUnavailableError as e:
            report.duration_ms = _elapsed_ms(start)
            logger.error("Batch run %s aborted: %s", report.run_id, e.message)
            e.details = {**(e.details or {}), **report.to_dict()}
            raise

        report.duration_ms = _elapsed_ms(start)
        logger.info(
            "Batch run %s finished: attempted=%d sent=%d failed=%d "
            "still_pending=%d skipped=%d duration=%.2fms",
            report.run_id, report.attempted, report.sent, report.failed,
            report.still_pending, report.skipped, report.duration_ms,
        )
        return report

    async def stats(self, now: Optional[datetime] = None) -> EmailStats:
        """Count emails by status, plus pending ones due in the next 24h."""
        now = now or self._clock()
        async with self._db.connection() as conn:
            repo = EmailRepository(conn)
            counts = await repo.count_by_status()
            upcoming = await repo.count_pending_between(now, now + UPCOMING_WINDOW)
        return EmailStats(
            pending=counts["pending"],
            sent=counts["sent"],
            failed=counts["failed"],
            upcoming_24h=upcoming,
        )

    async def next_pending(self, limit: int = 5) -> list[ScheduledEmail]:
        async with self._db.connection() as conn:
            return await EmailRepository(conn).list_next_pending(limit)

    async def sweep(self, now: Optional[datetime] = None) -> int:
        """Release expired claims outside of a run."""
        async with self._db.connection() as conn:
            released = await EmailRepository(conn).release_expired_claims(
                now or self._clock(),
            )
        if released:
            logger.warning("Sweep released %d expired claims", released)
        return released


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)
