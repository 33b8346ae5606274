"""Input validation utilities for CLI commands."""

from datetime import datetime
from pathlib import Path
from typing import Optional

from src.state.models.email import EmailStatus, ensure_utc


def parse_send_at(value: str) -> datetime:
    """Parse an ISO-8601 timestamp. Naive values are read as UTC.

    Raises ValueError if invalid.
    """
    if not value or not value.strip():
        raise ValueError("Send time cannot be empty")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return ensure_utc(datetime.fromisoformat(text))
    except ValueError:
        raise ValueError(
            f"Send time must be an ISO-8601 timestamp, got {value!r}"
        ) from None


def validate_status(status: Optional[str]) -> Optional[EmailStatus]:
    """Validate a status filter. Raises ValueError if invalid."""
    if status is None:
        return None
    try:
        return EmailStatus(status.lower())
    except ValueError:
        valid = ", ".join(s.value for s in EmailStatus)
        raise ValueError(f"Invalid status '{status}'. Valid values: {valid}") from None


def validate_limit(limit: int, maximum: int = 100) -> int:
    """Validate a listing limit. Raises ValueError if invalid."""
    if limit < 1 or limit > maximum:
        raise ValueError(f"Limit must be between 1 and {maximum}")
    return limit


def read_html(html: Optional[str], html_file: Optional[str]) -> str:
    """Return the HTML body from exactly one of an inline value or a file."""
    if html and html_file:
        raise ValueError("Use either --html or --html-file, not both")
    if html_file:
        path = Path(html_file)
        if not path.is_file():
            raise ValueError(f"HTML file not found: {html_file}")
        return path.read_text(encoding="utf-8")
    if not html:
        raise ValueError("An HTML body is required (--html or --html-file)")
    return html
