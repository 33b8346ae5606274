"""Exception types for scheduling and delivery."""
from typing import Any, Optional


class SchedulerError(Exception):
    error_code: str = "SCHEDULER_ERROR"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidScheduleError(SchedulerError):
    """A schedule request failed validation; nothing was persisted."""

    error_code = "INVALID_SCHEDULE"


class TransportError(SchedulerError):
    """Raised by a transport to report a send failure.

    Transports may also return ``SendResult.failure``. The worker records
    either as a failed attempt using ``message`` as the error text.
    """

    error_code = "TRANSPORT_ERROR"
