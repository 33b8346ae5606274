"""Main CLI entry point for the mail scheduler."""

import typer
from rich.console import Console

from src.cli.commands.init import init_command
from src.cli.commands.list_emails import list_command
from src.cli.commands.run import run_command
from src.cli.commands.schedule import schedule_command
from src.cli.commands.stats import stats_command
from src.cli.commands.sweep import sweep_command

app = typer.Typer(
    name="mailsched",
    help="Mail Scheduler - durable scheduled email delivery",
    no_args_is_help=True,
    add_completion=False,
)
console = Console()


@app.command("init")
def init(
    db_path: str = typer.Option(None, "-d", "--db-path", help="SQLite database file"),
    transport: str = typer.Option("log", "-t", "--transport", help="brevo or log"),
    sender: str = typer.Option(None, "-s", "--sender", help="Sender, 'Name <email>'"),
    api_key: str = typer.Option(None, "-k", "--api-key", help="Brevo API key"),
    max_attempts: int = typer.Option(3, "--max-attempts", help="Default attempt budget"),
    force: bool = typer.Option(False, "-f", "--force", help="Overwrite config"),
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Initialize scheduler configuration."""
    init_command(db_path, transport, sender, api_key, max_attempts, force, json_flag)


@app.command("schedule")
def schedule(
    to: str = typer.Option(..., "-t", "--to", help="Recipient address"),
    subject: str = typer.Option(..., "-s", "--subject", help="Subject line"),
    html: str = typer.Option(None, "--html", help="HTML body"),
    html_file: str = typer.Option(None, "--html-file", help="File with the HTML body"),
    send_at: str = typer.Option(..., "-a", "--send-at", help="ISO-8601 send time"),
    max_attempts: int = typer.Option(None, "-m", "--max-attempts", help="Attempt budget"),
    json_flag: bool = typer.Option(False, "--json"),
) -> None:
    """Schedule an email for delivery."""
    schedule_command(to, subject, html, html_file, send_at, max_attempts, json_flag)


@app.command("run")
def run(
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Run one delivery pass over due emails."""
    run_command(json_flag)


@app.command("stats")
def stats(
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show delivery statistics."""
    stats_command(json_flag)


@app.command("list")
def list_emails(
    status: str = typer.Option(None, "--status", help="pending, sent or failed"),
    start: str = typer.Option(None, "--start", help="Range start (ISO-8601)"),
    end: str = typer.Option(None, "--end", help="Range end (ISO-8601)"),
    limit: int = typer.Option(20, "-l", "--limit", help="Max emails to show"),
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List scheduled emails."""
    list_command(status, start, end, limit, json_flag)


@app.command("sweep")
def sweep(
    json_flag: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Release expired delivery claims."""
    sweep_command(json_flag)


def main() -> None:
    """Entry point."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled[/yellow]")
        raise typer.Exit(130)
