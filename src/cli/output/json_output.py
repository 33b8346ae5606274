"""JSON output mode utilities."""

import json
from dataclasses import asdict, is_dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from rich.console import Console

from src.state.models.email import ScheduledEmail


class CLIJSONEncoder(json.JSONEncoder):
    """JSON encoder that handles CLI types."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        if is_dataclass(obj) and not isinstance(obj, type):
            return asdict(obj)
        return super().default(obj)


def email_payload(email: ScheduledEmail) -> dict[str, Any]:
    """Public fields of an email, without the body or claim bookkeeping."""
    return {
        "id": email.email_id,
        "to": email.to,
        "subject": email.subject,
        "send_at": email.send_at,
        "status": email.status.value,
        "attempt_count": email.attempt_count,
        "max_attempts": email.max_attempts,
        "last_error": email.last_error,
        "sent_at": email.sent_at,
        "created_at": email.created_at,
    }


def json_output(console: Console, data: Any) -> None:
    """Output data as formatted JSON."""
    console.print_json(json.dumps(data, cls=CLIJSONEncoder))
