"""Schedule an email for later delivery."""

from typing import Optional

import typer
from rich.console import Console

from src.cli.output import email_payload, format_error, format_success, json_output
from src.cli.utils import parse_send_at, read_html
from src.cli.utils.services import load_services, run_async
from src.scheduler import EmailRequest
from src.state.models.email import ScheduledEmail

console = Console()


async def _schedule(request: EmailRequest) -> ScheduledEmail:
    services = await load_services()
    return await services.scheduler.schedule(request)


def schedule_command(
    to: str,
    subject: str,
    html: Optional[str],
    html_file: Optional[str],
    send_at: str,
    max_attempts: Optional[int],
    json_flag: bool,
) -> None:
    """Validate and persist one email."""
    try:
        body = read_html(html, html_file)
        send_date = parse_send_at(send_at)
    except ValueError as e:
        format_error(console, str(e))
        raise typer.Exit(code=2)

    request = EmailRequest(
        to=to, subject=subject, html=body, send_date=send_date, max_retries=max_attempts,
    )
    email = run_async(console, _schedule(request), "schedule email")

    if json_flag:
        json_output(console, {"status": "scheduled", "email": email_payload(email)})
        return
    format_success(console, "Email scheduled successfully")
    console.print(f"[cyan]ID:[/cyan]        {email.email_id}")
    console.print(f"[cyan]To:[/cyan]        {email.to}")
    console.print(f"[cyan]Send at:[/cyan]   {email.send_at.isoformat()}")
    console.print(f"[cyan]Attempts:[/cyan]  {email.max_attempts}")
