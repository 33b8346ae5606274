"""Release expired delivery claims."""

from rich.console import Console

from src.cli.output import format_success, json_output
from src.cli.utils.services import load_services, run_async

console = Console()


async def _sweep() -> int:
    services = await load_services()
    return await services.coordinator.sweep()


def sweep_command(json_flag: bool) -> None:
    """Make emails stuck behind an expired claim eligible again."""
    released = run_async(console, _sweep(), "sweep claims")
    if json_flag:
        json_output(console, {"released": released})
        return
    format_success(console, f"Released {released} expired claims")
