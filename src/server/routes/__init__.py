"""Route handlers for the mail scheduler API."""
from src.server.routes.cron import create_cron_router
from src.server.routes.emails import create_emails_router
from src.server.routes.health import create_health_router
__all__ = [
    "create_cron_router",
    "create_emails_router",
    "create_health_router",
]
