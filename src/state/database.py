"""Database connection and lifecycle management."""
import sqlite3
import aiosqlite
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator


class DatabaseError(Exception):
    pass


class StoreUnavailableError(DatabaseError):
    """The message store could not be reached or failed mid-operation."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class DatabaseManager:
    """Manages SQLite database connections and schema initialization."""

    def __init__(self, db_path: Path, busy_timeout: float = 5.0) -> None:
        self._db_path = db_path
        self._busy_timeout = busy_timeout
        self._initialized = False

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Create tables and indexes."""
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreUnavailableError(
                f"Cannot create database directory for {self._db_path}: {e}"
            ) from e
        async with self.connection() as conn:
            await conn.execute("PRAGMA journal_mode = WAL")
            await conn.executescript(_SCHEMA)
            await conn.commit()
        self._initialized = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield an async database connection.

        Raises:
            StoreUnavailableError: If the database file cannot be opened.
        """
        try:
            conn = await aiosqlite.connect(self._db_path, timeout=self._busy_timeout)
        except sqlite3.Error as e:
            raise StoreUnavailableError(
                f"Cannot open database at {self._db_path}: {e}"
            ) from e
        conn.row_factory = aiosqlite.Row
        try:
            yield conn
        finally:
            await conn.close()

    async def ping(self) -> bool:
        """Return True when a trivial query succeeds."""
        try:
            async with self.connection() as conn:
                cursor = await conn.execute("SELECT 1")
                await cursor.fetchone()
        except (sqlite3.Error, StoreUnavailableError):
            return False
        return True

    async def close(self) -> None:
        """Mark the manager as closed."""
        self._initialized = False


_SCHEMA = """
CREATE TABLE IF NOT EXISTS schema_versions (version TEXT PRIMARY KEY, applied_at TEXT NOT NULL);

CREATE TABLE IF NOT EXISTS scheduled_emails (
    email_id        TEXT PRIMARY KEY,
    recipient       TEXT NOT NULL,
    subject         TEXT NOT NULL CHECK(length(subject) BETWEEN 1 AND 200),
    html            TEXT NOT NULL CHECK(length(html) > 0),
    send_at         TEXT NOT NULL,
    status          TEXT NOT NULL DEFAULT 'pending',
    attempt_count   INTEGER NOT NULL DEFAULT 0 CHECK(attempt_count >= 0),
    max_attempts    INTEGER NOT NULL DEFAULT 3 CHECK(max_attempts >= 1),
    last_error      TEXT,
    sent_at         TEXT,
    created_at      TEXT NOT NULL,
    claimed_by      TEXT,
    claimed_until   TEXT,
    last_attempt_at TEXT,
    CHECK(status IN ('pending', 'sent', 'failed')),
    CHECK(attempt_count <= max_attempts)
);
CREATE INDEX IF NOT EXISTS idx_emails_due ON scheduled_emails(status, send_at);
CREATE INDEX IF NOT EXISTS idx_emails_created ON scheduled_emails(created_at);
CREATE INDEX IF NOT EXISTS idx_emails_status ON scheduled_emails(status);

INSERT OR IGNORE INTO schema_versions (version, applied_at) VALUES ('1.0.0', datetime('now'));
"""
