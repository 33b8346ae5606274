"""Brevo (Sendinblue) transactional email transport."""
import logging
import re
from typing import Optional

import httpx

from src.transport.base import SendResult

logger = logging.getLogger(__name__)

BREVO_API_URL = "https://api.brevo.com/v3/smtp/email"
DEFAULT_SENDER_NAME = "Mail Scheduler"

_NAMED_ADDRESS = re.compile(r"^\s*(.+?)\s*<\s*(.+?)\s*>\s*$")
_BARE_ADDRESS = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_MAX_ERROR_BODY = 500


def parse_sender(value: str, default_name: str = DEFAULT_SENDER_NAME) -> tuple[str, str]:
    """Split ``"Name <email>"`` or a bare address into (name, email).

    Raises:
        ValueError: If *value* is neither form.
    """
    match = _NAMED_ADDRESS.match(value or "")
    if match:
        return match.group(1), match.group(2)
    stripped = (value or "").strip()
    if _BARE_ADDRESS.match(stripped):
        return default_name, stripped
    raise ValueError(f"Invalid sender address: {value!r}")


class BrevoTransport:
    """Sends email through the Brevo v3 SMTP API over HTTPS."""

    name = "brevo"

    def __init__(
        self,
        api_key: str,
        sender: str,
        api_url: str = BREVO_API_URL,
        timeout: float = 30.0,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not api_key:
            raise ValueError("Brevo API key required")
        self._api_key = api_key
        self._sender_name, self._sender_email = parse_sender(sender)
        self._api_url = api_url
        self._timeout = timeout
        self._http_transport = http_transport

    def build_payload(self, to: str, subject: str, html: str) -> dict:
        return {
            "sender": {"name": self._sender_name, "email": self._sender_email},
            "to": [{"email": to}],
            "subject": subject,
            "htmlContent": html,
        }

    async def send(self, to: str, subject: str, html: str) -> SendResult:
        """POST the email to Brevo; non-2xx and HTTP errors become failures."""
        headers = {
            "api-key": self._api_key,
            "accept": "application/json",
            "content-type": "application/json",
        }
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._http_transport,
            ) as client:
                response = await client.post(
                    self._api_url,
                    json=self.build_payload(to, subject, html),
                    headers=headers,
                )
        except httpx.TimeoutException:
            return SendResult.failure(f"Brevo request timed out after {self._timeout}s")
        except httpx.HTTPError as e:
            return SendResult.failure(f"Brevo request failed: {e}")

        if response.status_code >= 400:
            body = response.text[:_MAX_ERROR_BODY]
            logger.warning("Brevo rejected email to %s: %d", to, response.status_code)
            return SendResult.failure(
                f"Brevo error {response.status_code}: {body or response.reason_phrase}"
            )
        message_id = None
        try:
            body = response.json()
        except ValueError:
            logger.debug("Brevo response had no JSON body")
        else:
            if isinstance(body, dict):
                message_id = body.get("messageId")
        return SendResult.ok(provider_message_id=message_id)
