"""Request logging middleware."""
import logging
import time
import uuid
from typing import Callable
from urllib.parse import parse_qsl, urlencode
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger("mail_scheduler.server")
REQUEST_ID_HEADER = "X-Request-ID"
SENSITIVE_FIELDS = frozenset({"authorization", "api-key", "x-cron-secret", "secret", "token"})


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request and its outcome under a request id.

    The id is taken from ``X-Request-ID`` when the caller sends one and is
    echoed back on the response. Server errors are logged at warning level.
    """

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: Callable[[Request], Response]) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        start_time = time.perf_counter()
        query = sanitize_query(request.url.query)
        logger.info(
            "[%s] %s %s%s auth=%s",
            request_id, request.method, request.url.path,
            f"?{query}" if query else "",
            "present" if "authorization" in request.headers else "absent",
        )

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(level, "[%s] status=%d duration=%.2fms", request_id, response.status_code, duration_ms)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def sanitize_query(query: str) -> str:
    """Redact sensitive query parameters."""
    pairs = parse_qsl(query, keep_blank_values=True)
    return urlencode([
        (key, "[REDACTED]" if key.lower() in SENSITIVE_FIELDS else value)
        for key, value in pairs
    ])
