"""Response models for API endpoints."""
from datetime import datetime
from typing import Annotated, Literal, Optional, Any, Union
from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class EmailRecordResponse(_CamelModel):
    id: str
    to: str
    subject: str
    send_date: datetime = Field(alias="sendDate")
    status: Literal["pending", "sent", "failed"]
    attempt_count: int = Field(alias="attemptCount")
    max_attempts: int = Field(alias="maxAttempts")
    last_error: Optional[str] = Field(default=None, alias="lastError")
    sent_at: Optional[datetime] = Field(default=None, alias="sentAt")
    created_at: datetime = Field(alias="createdAt")


class ScheduleResponse(BaseModel):
    success: Literal[True] = True
    message: str
    data: Union[EmailRecordResponse, list[EmailRecordResponse]]


class EmailResponse(BaseModel):
    success: Literal[True] = True
    data: EmailRecordResponse


class EmailListResponse(BaseModel):
    success: Literal[True] = True
    count: int
    data: list[EmailRecordResponse]


class StatusCounts(BaseModel):
    pending: int
    sent: int
    failed: int
    total: int


class StatsData(StatusCounts):
    model_config = ConfigDict(populate_by_name=True)

    upcoming_24h: int = Field(alias="upcoming24h")


class StatsResponse(BaseModel):
    success: Literal[True] = True
    data: StatsData


class RunReportResponse(_CamelModel):
    success: Literal[True] = True
    message: str
    run_id: str = Field(alias="runId")
    attempted: int
    sent: int
    failed: int
    still_pending: int = Field(alias="stillPending")
    skipped: int
    reclaimed: int
    duration_ms: float = Field(alias="durationMs")


class CronStatusResponse(_CamelModel):
    success: Literal[True] = True
    stats: StatusCounts
    next_emails: list[EmailRecordResponse] = Field(alias="nextEmails")


class HealthResponse(BaseModel):
    status: Annotated[Literal["healthy", "degraded"], Field()]
    database: bool
    timestamp: Annotated[str, Field()]


class ErrorResponse(BaseModel):
    success: Literal[False] = False
    code: Annotated[
        Literal[
            "INVALID_FORMAT",
            "INVALID_SCHEDULE",
            "NOT_AUTHORIZED",
            "EMAIL_NOT_FOUND",
            "STORE_UNAVAILABLE",
            "INTERNAL_ERROR",
        ],
        Field(),
    ]
    error: Annotated[str, Field()]
    details: Optional[dict[str, Any]] = None
