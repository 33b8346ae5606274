"""Endpoints invoked by the external periodic trigger."""
import hmac
import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, status

from src.scheduler.coordinator import BatchRunCoordinator
from src.server.errors import NotAuthorizedError
from src.server.models.responses import (
    CronStatusResponse,
    RunReportResponse,
    StatusCounts,
)
from src.server.routes._email_helpers import email_to_response

logger = logging.getLogger(__name__)

CRON_PATH = "/api/cron/send-scheduled-emails"
_NEXT_EMAILS_LIMIT = 5


def _cron_auth(secret: str):
    """Build a dependency enforcing ``Authorization: Bearer <secret>``.

    An empty secret disables the check.
    """

    async def verify(
        authorization: Annotated[Optional[str], Header()] = None,
    ) -> None:
        if not secret:
            return
        if not hmac.compare_digest(authorization or "", f"Bearer {secret}"):
            logger.warning("Rejected cron request with bad or missing credentials")
            raise NotAuthorizedError()

    return verify


def create_cron_router(coordinator: BatchRunCoordinator, cron_secret: str) -> APIRouter:
    """Create the cron router with injected coordinator and secret."""
    router = APIRouter(dependencies=[Depends(_cron_auth(cron_secret))])

    @router.post(
        CRON_PATH,
        response_model=RunReportResponse,
        status_code=status.HTTP_200_OK,
        tags=["cron"],
    )
    async def send_scheduled_emails() -> RunReportResponse:
        """Run one delivery pass over all due emails."""
        report = await coordinator.run()
        return RunReportResponse(
            message=(
                f"Processed {report.attempted} emails: {report.sent} sent, "
                f"{report.failed} failed, {report.still_pending} to retry"
            ),
            run_id=report.run_id,
            attempted=report.attempted,
            sent=report.sent,
            failed=report.failed,
            still_pending=report.still_pending,
            skipped=report.skipped,
            reclaimed=report.reclaimed,
            duration_ms=report.duration_ms,
        )

    @router.get(CRON_PATH, response_model=CronStatusResponse, tags=["cron"])
    async def cron_status() -> CronStatusResponse:
        """Status counts and the next emails to be sent."""
        stats = await coordinator.stats()
        upcoming = await coordinator.next_pending(_NEXT_EMAILS_LIMIT)
        return CronStatusResponse(
            stats=StatusCounts(
                pending=stats.pending, sent=stats.sent,
                failed=stats.failed, total=stats.total,
            ),
            next_emails=[email_to_response(e) for e in upcoming],
        )

    return router
