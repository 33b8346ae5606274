"""Build scheduler services from CLI configuration."""

import asyncio
from dataclasses import dataclass
from typing import Any, Coroutine, TypeVar

import typer
from rich.console import Console

from src.cli.output import format_error
from src.cli.utils.config import CliConfig, ConfigError, ConfigManager
from src.scheduler import (
    BatchRunCoordinator,
    DeliveryWorker,
    EmailScheduler,
    InvalidScheduleError,
)
from src.state import DatabaseManager, StoreUnavailableError
from src.transport import build_transport

T = TypeVar("T")


@dataclass
class Services:
    db: DatabaseManager
    scheduler: EmailScheduler
    coordinator: BatchRunCoordinator


def build_services(config: CliConfig) -> Services:
    """Wire the database, transport, worker, scheduler and coordinator."""
    db = DatabaseManager(config.db_path)
    delivery = config.delivery
    transport = build_transport(
        config.transport.kind,
        api_key=config.transport.api_key,
        sender=config.transport.sender,
        api_url=config.transport.api_url,
        timeout=delivery.transport_timeout,
    )
    worker = DeliveryWorker(
        transport, timeout=delivery.transport_timeout, claim_ttl=delivery.claim_ttl,
    )
    return Services(
        db=db,
        scheduler=EmailScheduler(db, default_max_attempts=delivery.default_max_attempts),
        coordinator=BatchRunCoordinator(
            db, worker, send_delay=delivery.send_delay, batch_limit=delivery.batch_limit,
        ),
    )


async def load_services() -> Services:
    """Load config, build services and make sure the schema exists."""
    services = build_services(ConfigManager().load())
    await services.db.initialize()
    return services


def run_async(console: Console, coro: Coroutine[Any, Any, T], error_label: str) -> T:
    """Run async operation with standard error handling."""
    try:
        return asyncio.run(coro)
    except ConfigError as e:
        format_error(console, str(e), hint="Run 'mailsched init' first")
        raise typer.Exit(code=1)
    except InvalidScheduleError as e:
        format_error(console, e.message)
        raise typer.Exit(code=2)
    except StoreUnavailableError as e:
        format_error(
            console,
            f"Store unavailable while trying to {error_label}: {e.message}",
            hint="Check db_path in ~/.mailsched/config.yaml",
        )
        raise typer.Exit(code=3)
    except Exception as e:
        format_error(console, f"Failed to {error_label}: {e}")
        raise typer.Exit(code=1)
