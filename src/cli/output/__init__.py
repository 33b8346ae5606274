"""Output formatting utilities."""

from .formatters import (
    format_email_table,
    format_error,
    format_key_value,
    format_success,
    format_warning,
    status_markup,
)
from .json_output import email_payload, json_output

__all__ = [
    "email_payload",
    "format_email_table",
    "format_error",
    "format_key_value",
    "format_success",
    "format_warning",
    "json_output",
    "status_markup",
]
