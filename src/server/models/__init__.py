"""Pydantic models for request/response validation."""
from src.server.models.requests import ScheduleEmailRequest
from src.server.models.responses import (
    CronStatusResponse,
    EmailListResponse,
    EmailRecordResponse,
    EmailResponse,
    ErrorResponse,
    HealthResponse,
    RunReportResponse,
    ScheduleResponse,
    StatsData,
    StatsResponse,
    StatusCounts,
)

__all__ = [
    "ScheduleEmailRequest",
    "CronStatusResponse",
    "EmailListResponse",
    "EmailRecordResponse",
    "EmailResponse",
    "ErrorResponse",
    "HealthResponse",
    "RunReportResponse",
    "ScheduleResponse",
    "StatsData",
    "StatsResponse",
    "StatusCounts",
]
