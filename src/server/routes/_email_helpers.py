"""Helpers for email API endpoints."""
from src.server.models.responses import EmailRecordResponse, StatsData
from src.state.models.email import EmailStats, ScheduledEmail


def email_to_response(e: ScheduledEmail) -> EmailRecordResponse:
    """Convert a state ScheduledEmail to an API response model."""
    return EmailRecordResponse(
        id=e.email_id,
        to=e.to,
        subject=e.subject,
        send_date=e.send_at,
        status=e.status.value,
        attempt_count=e.attempt_count,
        max_attempts=e.max_attempts,
        last_error=e.last_error,
        sent_at=e.sent_at,
        created_at=e.created_at,
    )


def stats_to_data(stats: EmailStats) -> StatsData:
    return StatsData(
        pending=stats.pending,
        sent=stats.sent,
        failed=stats.failed,
        total=stats.total,
        upcoming_24h=stats.upcoming_24h,
    )
