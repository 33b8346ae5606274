"""Email scheduling endpoints.

``POST /api/emails/schedule`` accepts one email object or an array of
them; an array is validated as a whole and persisted all-or-nothing.
"""
import logging
from datetime import datetime
from typing import Annotated, Optional, Union

from fastapi import APIRouter, Body, Path, Query, status

from src.scheduler.coordinator import BatchRunCoordinator
from src.scheduler.enqueuer import EmailScheduler
from src.server.errors import EmailNotFoundError, InvalidQueryError
from src.server.models.requests import ScheduleEmailRequest
from src.server.models.responses import (
    EmailListResponse,
    EmailResponse,
    ScheduleResponse,
    StatsResponse,
)
from src.server.routes._email_helpers import email_to_response, stats_to_data
from src.state.database import DatabaseManager
from src.state.models.email import EmailStatus, ensure_utc
from src.state.repositories.emails import EmailRepository

logger = logging.getLogger(__name__)

_VALID_STATUSES = frozenset(s.value for s in EmailStatus)


def create_emails_router(
    db: DatabaseManager,
    scheduler: EmailScheduler,
    coordinator: BatchRunCoordinator,
) -> APIRouter:
    """Create the email router with injected dependencies."""
    router = APIRouter()

    @router.post(
        "/api/emails/schedule",
        response_model=ScheduleResponse,
        status_code=status.HTTP_200_OK,
        tags=["emails"],
    )
    async def schedule_emails(
        body: Annotated[
            Union[list[ScheduleEmailRequest], ScheduleEmailRequest], Body(),
        ],
    ) -> ScheduleResponse:
        """Schedule one email or a batch of emails."""
        if isinstance(body, list):
            emails = await scheduler.schedule_many(
                [item.to_email_request() for item in body],
            )
            return ScheduleResponse(
                message=f"{len(emails)} emails scheduled",
                data=[email_to_response(e) for e in emails],
            )
        email = await scheduler.schedule(body.to_email_request())
        return ScheduleResponse(
            message="Email scheduled", data=email_to_response(email),
        )

    @router.get(
        "/api/emails/schedule",
        response_model=StatsResponse,
        tags=["emails"],
    )
    async def schedule_stats() -> StatsResponse:
        """Counts of scheduled emails by status."""
        stats = await coordinator.stats()
        return StatsResponse(data=stats_to_data(stats))

    @router.get("/api/emails", response_model=EmailListResponse, tags=["emails"])
    async def list_emails(
        start: Annotated[Optional[datetime], Query(description="Earliest sendDate")] = None,
        end: Annotated[Optional[datetime], Query(description="Latest sendDate")] = None,
        status_filter: Annotated[
            Optional[str], Query(alias="status", description="pending|sent|failed"),
        ] = None,
        limit: Annotated[int, Query(ge=1, le=100, description="Max emails")] = 20,
    ) -> EmailListResponse:
        """List emails scheduled in a date range, or the most recent ones."""
        if status_filter is not None and status_filter not in _VALID_STATUSES:
            raise InvalidQueryError(
                f"Invalid status '{status_filter}'. "
                f"Valid: {', '.join(sorted(_VALID_STATUSES))}",
            )
        status_enum = EmailStatus(status_filter) if status_filter else None
        async with db.connection() as conn:
            repo = EmailRepository(conn)
            if start is not None or end is not None:
                if start is None or end is None:
                    raise InvalidQueryError("Both start and end are required for a range")
                start, end = ensure_utc(start), ensure_utc(end)
                if start > end:
                    raise InvalidQueryError("start must not be after end")
                emails = await repo.list_in_range(start, end, status_enum, limit)
            else:
                emails = await repo.list_recent(status_enum, limit)
        items = [email_to_response(e) for e in emails]
        return EmailListResponse(count=len(items), data=items)

    @router.get("/api/emails/{email_id}", response_model=EmailResponse, tags=["emails"])
    async def get_email(
        email_id: Annotated[str, Path(description="Email ID")],
    ) -> EmailResponse:
        """Get a single scheduled email."""
        async with db.connection() as conn:
            email = await EmailRepository(conn).get_by_id(email_id)
        if email is None:
            raise EmailNotFoundError(email_id)
        return EmailResponse(data=email_to_response(email))

    return router
