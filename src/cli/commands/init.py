"""Initialize scheduler configuration."""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from src.cli.output import format_error, format_success, json_output
from src.cli.utils import CliConfig, ConfigManager
from src.server.config import (
    DEFAULT_SENDER,
    DeliveryConfig,
    TransportConfig,
    validate_delivery,
    validate_transport,
)
from src.transport import parse_sender

console = Console()


def init_command(
    db_path: Optional[str],
    transport: str,
    sender: str,
    api_key: Optional[str],
    max_attempts: int,
    force: bool,
    json_flag: bool,
) -> None:
    """Write ~/.mailsched/config.yaml.

    The API key, when given, is stored in the same file, which is chmod 600.
    """
    config = ConfigManager()
    try:
        transport_config = TransportConfig(
            kind=transport.lower(), api_key=api_key or "", sender=sender or DEFAULT_SENDER,
        )
        validate_transport(transport_config)
        parse_sender(transport_config.sender)
        delivery = DeliveryConfig(default_max_attempts=max_attempts)
        validate_delivery(delivery)
    except ValueError as e:
        format_error(console, str(e))
        raise typer.Exit(code=2)

    if config.exists() and not force:
        format_error(
            console,
            f"Configuration already exists at {config.config_path}",
            hint="Use --force to overwrite existing configuration",
        )
        raise typer.Exit(code=1)

    cli_config = CliConfig(
        db_path=Path(db_path).expanduser() if db_path else config.default_db_path,
        transport=transport_config,
        delivery=delivery,
    )
    config.save(cli_config)

    if json_flag:
        json_output(
            console,
            {
                "status": "initialized",
                "db_path": str(cli_config.db_path),
                "transport": transport_config.kind,
                "sender": transport_config.sender,
                "config_path": str(config.config_path),
            },
        )
    else:
        format_success(console, "Mail scheduler initialized successfully")
        console.print(f"[cyan]Database:[/cyan]   {cli_config.db_path}")
        console.print(f"[cyan]Transport:[/cyan]  {transport_config.kind}")
        console.print(f"[cyan]Sender:[/cyan]     {transport_config.sender}")
        console.print(f"[cyan]Config:[/cyan]     {config.config_path}")
