"""Tests for scheduling and batch validation."""
import sqlite3
import pytest
from datetime import timedelta

from src.scheduler.enqueuer import MAX_ATTEMPTS, EmailRequest, EmailScheduler, validate_request
from src.scheduler.errors import InvalidScheduleError
from src.state.database import DatabaseManager, StoreUnavailableError
from src.state.models.email import EmailStatus
from src.state.repositories.emails import EmailRepository
from tests.conftest import START, FakeClock


def _req(**kwargs) -> EmailRequest:
    defaults = dict(
        to="a@x.com",
        subject="Hi",
        html="<p>hi</p>",
        send_date=START + timedelta(hours=1),
    )
    defaults.update(kwargs)
    return EmailRequest(**defaults)


async def _total(db: DatabaseManager) -> int:
    async with db.connection() as conn:
        return (await EmailRepository(conn).count_by_status())["total"]


class TestValidateRequest:
    def test_valid_request_passes(self) -> None:
        validate_request(_req(), START)

    def test_send_date_equal_to_now_accepted(self) -> None:
        validate_request(_req(send_date=START), START)

    def test_naive_send_date_read_as_utc(self) -> None:
        validate_request(_req(send_date=START.replace(tzinfo=None)), START)

    @pytest.mark.parametrize(
        "kwargs, match",
        [
            ({"to": ""}, "Missing required fields"),
            ({"send_date": None}, "Missing required fields"),
            ({"to": "not-an-email"}, "email address"),
            ({"to": "a b@x.com"}, "email address"),
            ({"subject": "   "}, "Subject"),
            ({"subject": "x" * 201}, "200"),
            ({"html": "  "}, "body"),
            ({"max_retries": 0}, "between 1 and 100"),
            ({"max_retries": MAX_ATTEMPTS + 1}, "between 1 and 100"),
            ({"max_retries": 2**63}, "between 1 and 100"),
            ({"send_date": START - timedelta(seconds=1)}, "past"),
        ],
    )
    def test_invalid_requests(self, kwargs, match) -> None:
        with pytest.raises(InvalidScheduleError, match=match):
            validate_request(_req(**kwargs), START)

    def test_subject_at_limit_accepted(self) -> None:
        validate_request(_req(subject="x" * 200), START)

    def test_max_retries_at_limit_accepted(self) -> None:
        validate_request(_req(max_retries=MAX_ATTEMPTS), START)


class TestEmailScheduler:
    @pytest.mark.asyncio
    async def test_schedule_persists_pending_record(self, db: DatabaseManager, clock: FakeClock) -> None:
        scheduler = EmailScheduler(db, clock=clock)
        email = await scheduler.schedule(_req())

        async with db.connection() as conn:
            stored = await EmailRepository(conn).get_by_id(email.email_id)
        assert stored.status == EmailStatus.PENDING
        assert stored.attempt_count == 0
        assert stored.max_attempts == 3
        assert stored.to == "a@x.com"
        assert stored.sent_at is None

    @pytest.mark.asyncio
    async def test_schedule_normalizes_recipient_and_subject(self, db: DatabaseManager, clock: FakeClock) -> None:
        email = await EmailScheduler(db, clock=clock).schedule(
            _req(to="  Someone@Example.COM ", subject="  Welcome  "),
        )
        assert email.to == "someone@example.com"
        assert email.subject == "Welcome"

    @pytest.mark.asyncio
    async def test_max_retries_overrides_default(self, db: DatabaseManager, clock: FakeClock) -> None:
        scheduler = EmailScheduler(db, default_max_attempts=5, clock=clock)
        assert (await scheduler.schedule(_req())).max_attempts == 5
        assert (await scheduler.schedule(_req(max_retries=1))).max_attempts == 1

    @pytest.mark.asyncio
    async def test_past_send_date_persists_nothing(self, db: DatabaseManager, clock: FakeClock) -> None:
        scheduler = EmailScheduler(db, clock=clock)
        with pytest.raises(InvalidScheduleError, match="past"):
            await scheduler.schedule(_req(send_date=START - timedelta(days=1)))
        assert await _total(db) == 0

    @pytest.mark.asyncio
    async def test_batch_persists_all_in_order(self, db: DatabaseManager, clock: FakeClock) -> None:
        scheduler = EmailScheduler(db, clock=clock)
        emails = await scheduler.schedule_many(
            [_req(to=f"user{i}@x.com") for i in range(3)],
        )
        assert [e.to for e in emails] == ["user0@x.com", "user1@x.com", "user2@x.com"]
        assert len({e.email_id for e in emails}) == 3
        assert await _total(db) == 3

    @pytest.mark.asyncio
    async def test_batch_with_one_invalid_item_persists_nothing(self, db: DatabaseManager, clock: FakeClock) -> None:
        scheduler = EmailScheduler(db, clock=clock)
        batch = [_req(), _req(to="bad"), _req(send_date=START - timedelta(hours=1))]

        with pytest.raises(InvalidScheduleError) as exc_info:
            await scheduler.schedule_many(batch)

        assert exc_info.value.message.startswith("Email 2:")
        errors = exc_info.value.details["errors"]
        assert [e["index"] for e in errors] == [1, 2]
        assert await _total(db) == 0

    @pytest.mark.asyncio
    async def test_empty_batch_rejected(self, db: DatabaseManager, clock: FakeClock) -> None:
        with pytest.raises(InvalidScheduleError):
            await EmailScheduler(db, clock=clock).schedule_many([])

    def test_invalid_default_max_attempts(self, tmp_path) -> None:
        with pytest.raises(ValueError):
            EmailScheduler(DatabaseManager(tmp_path / "x.db"), default_max_attempts=0)
        with pytest.raises(ValueError):
            EmailScheduler(DatabaseManager(tmp_path / "x.db"), default_max_attempts=MAX_ATTEMPTS + 1)

    @pytest.mark.asyncio
    async def test_store_error_during_enqueue_is_store_unavailable(
        self, db: DatabaseManager, clock: FakeClock, monkeypatch,
    ) -> None:
        async def locked(self, emails):
            raise sqlite3.OperationalError("database is locked")

        monkeypatch.setattr(EmailRepository, "insert_many", locked)
        scheduler = EmailScheduler(db, clock=clock)

        with pytest.raises(StoreUnavailableError, match="database is locked"):
            await scheduler.schedule(_req())
        with pytest.raises(StoreUnavailableError):
            await scheduler.schedule_many([_req(), _req(to="b@x.com")])
