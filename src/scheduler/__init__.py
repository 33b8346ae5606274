"""Scheduling, selection and delivery of outbound email."""
from src.scheduler.clock import Clock, utcnow
from src.scheduler.coordinator import BatchRunCoordinator, RunReport
from src.scheduler.enqueuer import EmailRequest, EmailScheduler, validate_request
from src.scheduler.errors import InvalidScheduleError, SchedulerError, TransportError
from src.scheduler.selector import select_due
from src.scheduler.worker import DeliveryOutcome, DeliveryWorker
__all__ = [
    "BatchRunCoordinator", "RunReport",
    "Clock", "utcnow",
    "DeliveryOutcome", "DeliveryWorker",
    "EmailRequest", "EmailScheduler", "validate_request",
    "InvalidScheduleError", "SchedulerError", "TransportError",
    "select_due",
]
