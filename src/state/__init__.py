"""State management module."""
from src.state.database import DatabaseManager, DatabaseError, StoreUnavailableError
from src.state.models import EmailStats, EmailStatus, ScheduledEmail, ensure_utc
from src.state.repositories import EmailRepository
__all__ = ["DatabaseManager", "DatabaseError", "StoreUnavailableError",
           "EmailStats", "EmailStatus", "ScheduledEmail", "ensure_utc",
           "EmailRepository"]
