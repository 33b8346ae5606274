"""Show delivery statistics."""

from rich.console import Console

from src.cli.output import format_key_value, json_output
from src.cli.utils.services import load_services, run_async
from src.state.models.email import EmailStats

console = Console()


async def _stats() -> EmailStats:
    services = await load_services()
    return await services.coordinator.stats()


def stats_command(json_flag: bool) -> None:
    """Show counts by status and emails due in the next 24 hours."""
    stats = run_async(console, _stats(), "get stats")
    data = {
        "pending": stats.pending,
        "sent": stats.sent,
        "failed": stats.failed,
        "total": stats.total,
        "upcoming_24h": stats.upcoming_24h,
    }
    if json_flag:
        json_output(console, data)
        return
    console.print("[bold]Email Statistics[/bold]")
    format_key_value(console, {k.replace("_", " ").capitalize(): v for k, v in data.items()})
