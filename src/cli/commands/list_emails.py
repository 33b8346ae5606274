"""List scheduled emails."""

from datetime import datetime
from typing import Optional

import typer
from rich.console import Console

from src.cli.output import email_payload, format_email_table, format_error, json_output
from src.cli.utils import parse_send_at, validate_limit, validate_status
from src.cli.utils.services import load_services, run_async
from src.state.models.email import EmailStatus, ScheduledEmail
from src.state.repositories.emails import EmailRepository

console = Console()


async def _list(
    status: Optional[EmailStatus],
    start: Optional[datetime],
    end: Optional[datetime],
    limit: int,
) -> list[ScheduledEmail]:
    services = await load_services()
    async with services.db.connection() as conn:
        repo = EmailRepository(conn)
        if start is not None and end is not None:
            return await repo.list_in_range(start, end, status=status, limit=limit)
        return await repo.list_recent(status=status, limit=limit)


def list_command(
    status: Optional[str],
    start: Optional[str],
    end: Optional[str],
    limit: int,
    json_flag: bool,
) -> None:
    """List recent emails, or those scheduled within [start, end]."""
    try:
        status_filter = validate_status(status)
        limit = validate_limit(limit)
        if (start is None) != (end is None):
            raise ValueError("--start and --end must be given together")
        start_at = parse_send_at(start) if start else None
        end_at = parse_send_at(end) if end else None
        if start_at and end_at and start_at > end_at:
            raise ValueError("--start must not be after --end")
    except ValueError as e:
        format_error(console, str(e))
        raise typer.Exit(code=2)

    emails = run_async(console, _list(status_filter, start_at, end_at, limit), "list emails")

    if json_flag:
        json_output(console, {"count": len(emails), "emails": [email_payload(e) for e in emails]})
        return
    if not emails:
        console.print("[yellow]No emails found[/yellow]")
        return
    format_email_table(console, f"Emails ({len(emails)})", emails)
