"""CLI utilities."""

from .config import CliConfig, ConfigError, ConfigManager
from .validation import parse_send_at, read_html, validate_limit, validate_status

__all__ = [
    "CliConfig",
    "ConfigError",
    "ConfigManager",
    "parse_send_at",
    "read_html",
    "validate_limit",
    "validate_status",
]
