"""Request models for API endpoints."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from src.scheduler.enqueuer import EmailRequest


class ScheduleEmailRequest(BaseModel):
    """One email to schedule.

    Fields are typed but not constrained here: required-field and content
    rules are applied by the scheduler so batch errors carry item indexes.
    """

    model_config = ConfigDict(populate_by_name=True)

    to: str = ""
    subject: str = ""
    html: str = ""
    send_date: Optional[datetime] = Field(default=None, alias="sendDate")
    max_retries: Optional[int] = Field(default=None, alias="maxRetries")

    def to_email_request(self) -> EmailRequest:
        return EmailRequest(
            to=self.to,
            subject=self.subject,
            html=self.html,
            send_date=self.send_date,  # type: ignore[arg-type]
            max_retries=self.max_retries,
        )
