"""Shared pytest fixtures."""
import asyncio
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import pytest
import pytest_asyncio

from src.state.database import DatabaseManager
from src.state.models.email import ScheduledEmail
from src.transport.base import SendResult

START = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Deterministic clock that moves forward a little on every read."""

    def __init__(self, start: datetime = START, tick: timedelta = timedelta(milliseconds=1)) -> None:
        self._now = start
        self._tick = tick

    def __call__(self) -> datetime:
        self._now += self._tick
        return self._now

    def advance(self, delta: timedelta) -> None:
        self._now += delta

    @property
    def now(self) -> datetime:
        return self._now


class FakeTransport:
    """In-memory transport recording every send."""

    name = "fake"

    def __init__(
        self,
        fail_for: tuple[str, ...] = (),
        error: str = "Mailbox unavailable",
        delay: float = 0.0,
        raises: Optional[Exception] = None,
    ) -> None:
        self.fail_for = set(fail_for)
        self.error = error
        self.delay = delay
        self.raises = raises
        self.calls: list[str] = []

    async def send(self, to: str, subject: str, html: str) -> SendResult:
        self.calls.append(to)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.raises is not None:
            raise self.raises
        if to in self.fail_for:
            return SendResult.failure(self.error)
        return SendResult.ok(f"fake-{len(self.calls)}")


def make_email(
    email_id: str = "email-001",
    to: str = "a@x.com",
    send_at: Optional[datetime] = None,
    **kwargs,
) -> ScheduledEmail:
    """Build a ScheduledEmail with defaults."""
    defaults = dict(
        email_id=email_id,
        to=to,
        subject="Hi",
        html="<p>hi</p>",
        send_at=send_at or START - timedelta(minutes=5),
        created_at=START - timedelta(hours=1),
    )
    defaults.update(kwargs)
    return ScheduledEmail(**defaults)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest_asyncio.fixture
async def db(tmp_path: Path) -> DatabaseManager:
    """Create and initialize a temp database."""
    manager = DatabaseManager(tmp_path / "test_emails.db")
    await manager.initialize()
    return manager
