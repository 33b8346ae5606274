"""Execute one batch delivery pass."""

from rich.console import Console

from src.cli.output import format_key_value, format_success, format_warning, json_output
from src.cli.utils.services import load_services, run_async
from src.scheduler import RunReport

console = Console()


async def _run() -> RunReport:
    services = await load_services()
    return await services.coordinator.run()


def run_command(json_flag: bool) -> None:
    """Deliver every due email once and print the report."""
    report = run_async(console, _run(), "run delivery pass")

    if json_flag:
        json_output(console, report.to_dict())
        return

    if report.attempted == 0:
        format_warning(console, "No due emails")
    else:
        format_success(
            console,
            f"Processed {report.attempted} emails: {report.sent} sent, {report.failed} failed",
        )
    format_key_value(
        console,
        {
            "Run ID": report.run_id,
            "Still pending": report.still_pending,
            "Skipped": report.skipped,
            "Reclaimed": report.reclaimed,
            "Duration": f"{report.duration_ms:.2f}ms",
        },
    )
