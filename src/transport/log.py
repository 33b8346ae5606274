"""Transport that only logs, for development and dry runs."""
import logging
import uuid

from src.transport.base import SendResult

logger = logging.getLogger(__name__)


class LogTransport:
    name = "log"

    async def send(self, to: str, subject: str, html: str) -> SendResult:
        logger.info("log transport: to=%s subject=%r (%d bytes)", to, subject, len(html))
        return SendResult.ok(provider_message_id=f"log-{uuid.uuid4().hex}")
