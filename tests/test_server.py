"""Tests for the FastAPI server."""
import shutil
import sqlite3
from datetime import timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.server.app import create_app
from src.server.config import DeliveryConfig, ServerConfig
from src.server.middleware import sanitize_query
from src.state.repositories.emails import EmailRepository
from tests.conftest import FakeClock, FakeTransport

CRON = "/api/cron/send-scheduled-emails"
AUTH = {"Authorization": "Bearer s3cret"}


def _email(**overrides) -> dict:
    body = {
        "to": "a@x.com",
        "subject": "Hi",
        "html": "<p>hi</p>",
        "sendDate": "2026-03-02T10:00:00Z",
    }
    body.update(overrides)
    return body


@pytest.fixture
def server_config(tmp_path: Path) -> ServerConfig:
    return ServerConfig(
        db_path=tmp_path / "data" / "test.db",
        cron_secret="s3cret",
        delivery=DeliveryConfig(send_delay=0),
    )


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport(fail_for=("bad@x.com",))


@pytest.fixture
def client(server_config: ServerConfig, transport: FakeTransport, clock: FakeClock) -> TestClient:
    app = create_app(server_config, transport=transport, clock=clock)
    with TestClient(app) as c:
        yield c


class TestScheduleEndpoint:
    def test_schedules_single_email(self, client: TestClient) -> None:
        response = client.post("/api/emails/schedule", json=_email())
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        record = data["data"]
        assert record["status"] == "pending"
        assert record["attemptCount"] == 0
        assert record["maxAttempts"] == 3
        assert record["sendDate"].startswith("2026-03-02T10:00:00")

    def test_max_retries(self, client: TestClient) -> None:
        response = client.post("/api/emails/schedule", json=_email(maxRetries=5))
        assert response.json()["data"]["maxAttempts"] == 5

    def test_oversized_max_retries_rejected(self, client: TestClient) -> None:
        response = client.post("/api/emails/schedule", json=_email(maxRetries=2**63))
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_SCHEDULE"
        assert client.get("/api/emails/schedule").json()["data"]["total"] == 0

    def test_past_send_date_rejected(self, client: TestClient) -> None:
        response = client.post("/api/emails/schedule", json=_email(sendDate="2026-03-01T09:00:00Z"))
        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["code"] == "INVALID_SCHEDULE"
        assert client.get("/api/emails/schedule").json()["data"]["total"] == 0

    def test_missing_fields_rejected(self, client: TestClient) -> None:
        response = client.post("/api/emails/schedule", json={"to": "a@x.com"})
        assert response.status_code == 400
        assert "Missing required fields" in response.json()["error"]

    def test_malformed_date_is_format_error(self, client: TestClient) -> None:
        response = client.post("/api/emails/schedule", json=_email(sendDate="tomorrow-ish"))
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_FORMAT"

    def test_batch_all_or_nothing(self, client: TestClient) -> None:
        batch = [_email(), _email(to="broken"), _email()]
        response = client.post("/api/emails/schedule", json=batch)
        assert response.status_code == 400
        data = response.json()
        assert data["error"].startswith("Email 2:")
        assert data["details"]["errors"][0]["index"] == 1
        assert client.get("/api/emails/schedule").json()["data"]["total"] == 0

    def test_batch_success(self, client: TestClient) -> None:
        response = client.post("/api/emails/schedule", json=[_email(), _email(to="b@x.com")])
        assert response.status_code == 200
        assert response.json()["message"] == "2 emails scheduled"
        assert len(response.json()["data"]) == 2


class TestEmailQueries:
    def test_get_by_id(self, client: TestClient) -> None:
        email_id = client.post("/api/emails/schedule", json=_email()).json()["data"]["id"]
        response = client.get(f"/api/emails/{email_id}")
        assert response.status_code == 200
        assert response.json()["data"]["to"] == "a@x.com"

    def test_get_unknown_is_404(self, client: TestClient) -> None:
        response = client.get("/api/emails/missing")
        assert response.status_code == 404
        assert response.json()["code"] == "EMAIL_NOT_FOUND"

    def test_list_range(self, client: TestClient) -> None:
        client.post("/api/emails/schedule", json=_email())
        client.post("/api/emails/schedule", json=_email(sendDate="2026-03-05T10:00:00Z"))
        response = client.get(
            "/api/emails",
            params={"start": "2026-03-02T00:00:00Z", "end": "2026-03-03T00:00:00Z"},
        )
        assert response.status_code == 200
        assert response.json()["count"] == 1

    def test_list_rejects_bad_status(self, client: TestClient) -> None:
        response = client.get("/api/emails", params={"status": "bounced"})
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_FORMAT"

    def test_list_requires_both_bounds(self, client: TestClient) -> None:
        response = client.get("/api/emails", params={"start": "2026-03-02T00:00:00Z"})
        assert response.status_code == 400


class TestCronEndpoint:
    def test_requires_bearer_secret(self, client: TestClient) -> None:
        assert client.post(CRON).status_code == 401
        response = client.post(CRON, headers={"Authorization": "Bearer wrong"})
        assert response.status_code == 401
        assert response.json()["code"] == "NOT_AUTHORIZED"

    def test_run_reports_outcomes(self, client: TestClient, clock: FakeClock, transport: FakeTransport) -> None:
        client.post("/api/emails/schedule", json=[_email(), _email(to="bad@x.com", maxRetries=1)])
        client.post("/api/emails/schedule", json=_email(to="later@x.com", sendDate="2026-03-09T10:00:00Z"))
        clock.advance(timedelta(hours=2))

        response = client.post(CRON, headers=AUTH)

        assert response.status_code == 200
        report = response.json()
        assert report["attempted"] == 2
        assert report["sent"] == 1
        assert report["failed"] == 1
        assert report["stillPending"] == 0
        assert report["durationMs"] >= 0
        assert sorted(transport.calls) == ["a@x.com", "bad@x.com"]

        stats = client.get("/api/emails/schedule").json()["data"]
        assert (stats["pending"], stats["sent"], stats["failed"], stats["total"]) == (1, 1, 1, 3)

    def test_status_lists_next_emails(self, client: TestClient) -> None:
        client.post("/api/emails/schedule", json=_email())
        response = client.get(CRON, headers=AUTH)
        assert response.status_code == 200
        data = response.json()
        assert data["stats"]["pending"] == 1
        assert len(data["nextEmails"]) == 1

    def test_no_secret_disables_auth(self, tmp_path: Path, clock: FakeClock) -> None:
        config = ServerConfig(db_path=tmp_path / "open.db", delivery=DeliveryConfig(send_delay=0))
        with TestClient(create_app(config, transport=FakeTransport(), clock=clock)) as c:
            assert c.post(CRON).status_code == 200


class TestStoreUnavailable:
    def test_run_and_health_report_store_failure(self, client: TestClient, server_config: ServerConfig) -> None:
        assert client.get("/health").json()["status"] == "healthy"
        data_dir = server_config.db_path.parent
        shutil.rmtree(data_dir)
        data_dir.write_text("not a directory")

        response = client.post(CRON, headers=AUTH)

        assert response.status_code == 503
        assert response.json()["code"] == "STORE_UNAVAILABLE"
        health = client.get("/health").json()
        assert health["status"] == "degraded"
        assert health["database"] is False

    def test_locked_store_during_schedule(self, client: TestClient, monkeypatch) -> None:
        async def locked(self, emails):
            raise sqlite3.OperationalError("database is locked")

        monkeypatch.setattr(EmailRepository, "insert_many", locked)
        response = client.post("/api/emails/schedule", json=_email())
        assert response.status_code == 503
        assert response.json()["code"] == "STORE_UNAVAILABLE"


class TestRequestLogging:
    def test_generates_request_id(self, client: TestClient) -> None:
        response = client.get("/health")
        assert len(response.headers["X-Request-ID"]) == 12

    def test_echoes_caller_request_id(self, client: TestClient) -> None:
        response = client.get("/health", headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"

    def test_redacts_sensitive_query_params(self) -> None:
        assert sanitize_query("secret=x&limit=5") == "secret=%5BREDACTED%5D&limit=5"
        assert sanitize_query("") == ""
