"""Due-message selection."""
from datetime import datetime
from typing import Optional

from src.state.models.email import ScheduledEmail
from src.state.repositories.emails import EmailRepository


async def select_due(
    repo: EmailRepository, now: datetime, limit: Optional[int] = None,
) -> list[ScheduledEmail]:
    """Return pending emails whose send time has arrived, earliest first.

    Emails held by a live claim are left out. Never mutates state.
    """
    return await repo.list_due(now, limit=limit)
