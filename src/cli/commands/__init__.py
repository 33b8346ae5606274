"""CLI commands."""

from . import init, list_emails, run, schedule, stats, sweep

__all__ = ["init", "list_emails", "run", "schedule", "stats", "sweep"]
