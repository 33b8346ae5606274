"""Rich terminal output formatters."""

from typing import Any, Sequence

from rich.console import Console
from rich.table import Table

from src.state.models.email import EmailStatus, ScheduledEmail

_STATUS_STYLES = {
    EmailStatus.PENDING: "yellow",
    EmailStatus.SENT: "green",
    EmailStatus.FAILED: "red",
}


def format_success(console: Console, message: str) -> None:
    console.print(f"[green]{message}[/green]")


def format_error(console: Console, message: str, hint: str | None = None) -> None:
    """Display error message in red with optional hint."""
    console.print(f"[red]Error:[/red] {message}")
    if hint:
        console.print(f"[yellow]Hint:[/yellow] {hint}")


def format_warning(console: Console, message: str) -> None:
    console.print(f"[yellow]Warning:[/yellow] {message}")


def status_markup(status: EmailStatus) -> str:
    """Status name wrapped in its colour."""
    style = _STATUS_STYLES[status]
    return f"[{style}]{status.value}[/{style}]"


def format_email_table(
    console: Console, title: str, emails: Sequence[ScheduledEmail],
) -> None:
    """Display emails with their delivery state, one per row."""
    table = Table(title=title)
    for col in ("ID", "To", "Subject", "Send At (UTC)", "Status", "Attempts", "Last Error"):
        table.add_column(col)
    for e in emails:
        table.add_row(
            e.email_id[:8],
            e.to,
            _truncate(e.subject, 40),
            e.send_at.strftime("%Y-%m-%d %H:%M"),
            status_markup(e.status),
            f"{e.attempt_count}/{e.max_attempts}",
            _truncate(e.last_error or "", 30),
        )
    console.print(table)


def format_key_value(console: Console, data: dict[str, Any]) -> None:
    """Display key-value pairs."""
    max_key_len = max(len(k) for k in data.keys()) if data else 0
    for key, value in data.items():
        console.print(f"[cyan]{key.ljust(max_key_len)}[/cyan]: {value}")


def _truncate(text: str, length: int) -> str:
    return text[:length] + "..." if len(text) > length else text
