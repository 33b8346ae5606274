"""Tests for CLI validation utilities."""

import pytest
from datetime import datetime, timezone

from src.cli.utils.validation import (
    parse_send_at,
    read_html,
    validate_limit,
    validate_status,
)
from src.state.models.email import EmailStatus


class TestParseSendAt:
    """Tests for send time parsing."""

    def test_zulu_suffix(self):
        """Trailing Z is read as UTC."""
        assert parse_send_at("2026-05-01T08:30:00Z") == datetime(2026, 5, 1, 8, 30, tzinfo=timezone.utc)

    def test_offset_converted_to_utc(self):
        assert parse_send_at("2026-05-01T10:30:00+02:00") == datetime(2026, 5, 1, 8, 30, tzinfo=timezone.utc)

    def test_naive_is_utc(self):
        assert parse_send_at("2026-05-01 08:30").tzinfo == timezone.utc

    def test_empty_raises(self):
        with pytest.raises(ValueError, match="cannot be empty"):
            parse_send_at("  ")

    def test_garbage_raises(self):
        with pytest.raises(ValueError, match="ISO-8601"):
            parse_send_at("next tuesday")


class TestValidateStatus:
    def test_none_passes_through(self):
        assert validate_status(None) is None

    def test_case_insensitive(self):
        assert validate_status("SENT") is EmailStatus.SENT

    def test_unknown_raises(self):
        with pytest.raises(ValueError, match="Invalid status"):
            validate_status("bounced")


class TestValidateLimit:
    def test_bounds(self):
        assert validate_limit(1) == 1
        assert validate_limit(100) == 100
        with pytest.raises(ValueError):
            validate_limit(0)
        with pytest.raises(ValueError):
            validate_limit(101)


class TestReadHtml:
    def test_inline(self):
        assert read_html("<p>hi</p>", None) == "<p>hi</p>"

    def test_from_file(self, tmp_path):
        body = tmp_path / "body.html"
        body.write_text("<h1>Welcome</h1>", encoding="utf-8")
        assert read_html(None, str(body)) == "<h1>Welcome</h1>"

    def test_both_raises(self, tmp_path):
        with pytest.raises(ValueError, match="not both"):
            read_html("<p>x</p>", str(tmp_path / "body.html"))

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(ValueError, match="not found"):
            read_html(None, str(tmp_path / "missing.html"))

    def test_neither_raises(self):
        with pytest.raises(ValueError, match="required"):
            read_html(None, None)
