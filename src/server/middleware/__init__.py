"""Server middleware."""
from src.server.middleware.logging import REQUEST_ID_HEADER, RequestLoggingMiddleware, sanitize_query

__all__ = ["REQUEST_ID_HEADER", "RequestLoggingMiddleware", "sanitize_query"]
