"""Scheduled email repository.

Every mutation is a single-statement conditional update committed on its
own, so a crash between statements never leaves a half-written record.
"""
import sqlite3
import aiosqlite
from datetime import datetime
from typing import Optional, Sequence

from src.state.models.email import EmailStatus, ScheduledEmail, ensure_utc

_MAX_LIST_LIMIT = 100

_INSERT_SQL = (
    "INSERT INTO scheduled_emails (email_id, recipient, subject, html, "
    "send_at, status, attempt_count, max_attempts, last_error, sent_at, "
    "created_at, claimed_by, claimed_until, last_attempt_at) "
    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)"
)


def _ts(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime as a fixed-width UTC ISO string.

    Fixed width keeps lexical order equal to chronological order in SQL.
    """
    if value is None:
        return None
    return ensure_utc(value).isoformat(timespec="microseconds")


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class EmailRepository:
    """Manages scheduled emails in the scheduled_emails table."""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def insert(self, email: ScheduledEmail) -> None:
        """Insert a single scheduled email."""
        await self.insert_many([email])

    async def insert_many(self, emails: Sequence[ScheduledEmail]) -> None:
        """Insert emails in one transaction; either all rows land or none do."""
        try:
            await self._conn.executemany(
                _INSERT_SQL, [self._to_params(e) for e in emails],
            )
        except sqlite3.Error:
            await self._conn.rollback()
            raise
        await self._conn.commit()

    async def get_by_id(self, email_id: str) -> Optional[ScheduledEmail]:
        """Retrieve an email by its ID."""
        cursor = await self._conn.execute(
            "SELECT * FROM scheduled_emails WHERE email_id = ?", (email_id,),
        )
        row = await cursor.fetchone()
        return self._row_to_email(row) if row else None

    async def list_due(
        self, now: datetime, limit: Optional[int] = None,
    ) -> list[ScheduledEmail]:
        """List pending, unclaimed emails whose send time has arrived.

        Ordered by send_at ascending so earlier schedules go first.
        """
        sql = (
            "SELECT * FROM scheduled_emails WHERE status = ? AND send_at <= ? "
            "AND (claimed_until IS NULL OR claimed_until <= ?) "
            "ORDER BY send_at ASC, created_at ASC"
        )
        params: list[object] = [EmailStatus.PENDING.value, _ts(now), _ts(now)]
        if limit is not None:
            if limit < 1:
                raise ValueError(f"limit must be a positive integer, got {limit!r}")
            sql += " LIMIT ?"
            params.append(limit)
        cursor = await self._conn.execute(sql, params)
        rows = await cursor.fetchall()
        return [self._row_to_email(r) for r in rows]

    async def list_in_range(
        self,
        start: datetime,
        end: datetime,
        status: Optional[EmailStatus] = None,
        limit: int = 20,
    ) -> list[ScheduledEmail]:
        """List emails with send_at in [start, end], ascending.

        Raises:
            ValueError: If limit is not a positive integer.
        """
        if not isinstance(limit, int) or limit < 1:
            raise ValueError(f"limit must be a positive integer, got {limit!r}")
        capped = min(limit, _MAX_LIST_LIMIT)
        conditions = ["send_at >= ?", "send_at <= ?"]
        params: list[object] = [_ts(start), _ts(end)]
        if status is not None:
            conditions.append("status = ?")
            params.append(status.value)
        params.append(capped)
        cursor = await self._conn.execute(
            f"SELECT * FROM scheduled_emails WHERE {' AND '.join(conditions)} "
            "ORDER BY send_at ASC LIMIT ?",
            params,
        )
        rows = await cursor.fetchall()
        return [self._row_to_email(r) for r in rows]

    async def list_recent(
        self, status: Optional[EmailStatus] = None, limit: int = 20,
    ) -> list[ScheduledEmail]:
        """List the most recently created emails, optionally by status."""
        if not isinstance(limit, int) or limit < 1:
            raise ValueError(f"limit must be a positive integer, got {limit!r}")
        capped = min(limit, _MAX_LIST_LIMIT)
        if status is not None:
            cursor = await self._conn.execute(
                "SELECT * FROM scheduled_emails WHERE status = ? "
                "ORDER BY created_at DESC LIMIT ?",
                (status.value, capped),
            )
        else:
            cursor = await self._conn.execute(
                "SELECT * FROM scheduled_emails ORDER BY created_at DESC LIMIT ?",
                (capped,),
            )
        rows = await cursor.fetchall()
        return [self._row_to_email(r) for r in rows]

    async def list_next_pending(self, limit: int = 5) -> list[ScheduledEmail]:
        """List the pending emails that will be due soonest."""
        cursor = await self._conn.execute(
            "SELECT * FROM scheduled_emails WHERE status = ? "
            "ORDER BY send_at ASC LIMIT ?",
            (EmailStatus.PENDING.value, min(limit, _MAX_LIST_LIMIT)),
        )
        rows = await cursor.fetchall()
        return [self._row_to_email(r) for r in rows]

    async def claim(
        self,
        email_id: str,
        run_id: str,
        now: datetime,
        claimed_until: datetime,
        run_started_at: datetime,
    ) -> bool:
        """Atomically claim a pending email for delivery by *run_id*.

        Succeeds only if the email is still pending, holds no live claim,
        and has not been attempted since *run_started_at*.

        Returns:
            True if this call took the claim.
        """
        cursor = await self._conn.execute(
            "UPDATE scheduled_emails SET claimed_by = ?, claimed_until = ? "
            "WHERE email_id = ? AND status = ? "
            "AND (claimed_until IS NULL OR claimed_until <= ?) "
            "AND (last_attempt_at IS NULL OR last_attempt_at < ?)",
            (
                run_id,
                _ts(claimed_until),
                email_id,
                EmailStatus.PENDING.value,
                _ts(now),
                _ts(run_started_at),
            ),
        )
        await self._conn.commit()
        return cursor.rowcount == 1

    async def mark_sent(self, email_id: str, run_id: str, sent_at: datetime) -> bool:
        """Transition a claimed email to sent and release the claim.

        Returns:
            True if the email was updated; False if *run_id* no longer
            holds the claim.
        """
        cursor = await self._conn.execute(
            "UPDATE scheduled_emails SET status = ?, sent_at = ?, "
            "last_attempt_at = ?, claimed_by = NULL, claimed_until = NULL "
            "WHERE email_id = ? AND status = ? AND claimed_by = ?",
            (
                EmailStatus.SENT.value,
                _ts(sent_at),
                _ts(sent_at),
                email_id,
                EmailStatus.PENDING.value,
                run_id,
            ),
        )
        await self._conn.commit()
        return cursor.rowcount == 1

    async def record_failure(
        self, email_id: str, run_id: str, error: str, attempted_at: datetime,
    ) -> Optional[ScheduledEmail]:
        """Record a failed attempt and release the claim.

        Increments attempt_count and sets last_error in one statement; the
        status becomes failed once the new count reaches max_attempts.

        Returns:
            The updated email, or None if *run_id* no longer holds the claim.
        """
        cursor = await self._conn.execute(
            "UPDATE scheduled_emails SET attempt_count = attempt_count + 1, "
            "last_error = ?, last_attempt_at = ?, "
            "status = CASE WHEN attempt_count + 1 >= max_attempts "
            "THEN ? ELSE ? END, "
            "claimed_by = NULL, claimed_until = NULL "
            "WHERE email_id = ? AND status = ? AND claimed_by = ?",
            (
                error,
                _ts(attempted_at),
                EmailStatus.FAILED.value,
                EmailStatus.PENDING.value,
                email_id,
                EmailStatus.PENDING.value,
                run_id,
            ),
        )
        await self._conn.commit()
        if cursor.rowcount != 1:
            return None
        return await self.get_by_id(email_id)

    async def release_expired_claims(self, now: datetime) -> int:
        """Clear claims whose validity window has lapsed.

        Returns:
            Number of claims released.
        """
        cursor = await self._conn.execute(
            "UPDATE scheduled_emails SET claimed_by = NULL, claimed_until = NULL "
            "WHERE status = ? AND claimed_until IS NOT NULL AND claimed_until <= ?",
            (EmailStatus.PENDING.value, _ts(now)),
        )
        await self._conn.commit()
        return cursor.rowcount

    async def count_by_status(self) -> dict[str, int]:
        """Count emails grouped by status.

        Returns:
            Dict with status names as keys and counts as values,
            plus a 'total' key.
        """
        cursor = await self._conn.execute(
            "SELECT status, COUNT(*) FROM scheduled_emails GROUP BY status",
        )
        rows = await cursor.fetchall()
        counts: dict[str, int] = {s.value: 0 for s in EmailStatus}
        for row in rows:
            if row[0] in counts:
                counts[row[0]] = row[1]
        counts["total"] = sum(counts.values())
        return counts

    async def count_pending_between(self, start: datetime, end: datetime) -> int:
        """Count pending emails with send_at in [start, end]."""
        cursor = await self._conn.execute(
            "SELECT COUNT(*) FROM scheduled_emails "
            "WHERE status = ? AND send_at >= ? AND send_at <= ?",
            (EmailStatus.PENDING.value, _ts(start), _ts(end)),
        )
        return (await cursor.fetchone())[0]

    @staticmethod
    def _to_params(e: ScheduledEmail) -> tuple:
        return (
            e.email_id,
            e.to,
            e.subject,
            e.html,
            _ts(e.send_at),
            e.status.value,
            e.attempt_count,
            e.max_attempts,
            e.last_error,
            _ts(e.sent_at),
            _ts(e.created_at),
            e.claimed_by,
            _ts(e.claimed_until),
            _ts(e.last_attempt_at),
        )

    @staticmethod
    def _row_to_email(row: aiosqlite.Row) -> ScheduledEmail:
        """Convert a database row to a ScheduledEmail."""
        return ScheduledEmail(
            email_id=row["email_id"],
            to=row["recipient"],
            subject=row["subject"],
            html=row["html"],
            send_at=datetime.fromisoformat(row["send_at"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            status=EmailStatus(row["status"]),
            attempt_count=row["attempt_count"],
            max_attempts=row["max_attempts"],
            last_error=row["last_error"],
            sent_at=_parse_ts(row["sent_at"]),
            claimed_by=row["claimed_by"],
            claimed_until=_parse_ts(row["claimed_until"]),
            last_attempt_at=_parse_ts(row["last_attempt_at"]),
        )
