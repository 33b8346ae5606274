"""Custom exception types for the server."""
from typing import Optional, Any


class ApiError(Exception):
    status_code: int = 500
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class NotAuthorizedError(ApiError):
    status_code = 401
    error_code = "NOT_AUTHORIZED"

    def __init__(self, message: str = "Not authorized") -> None:
        super().__init__(message)


class EmailNotFoundError(ApiError):
    status_code = 404
    error_code = "EMAIL_NOT_FOUND"

    def __init__(self, email_id: str) -> None:
        super().__init__(f"Email {email_id} not found", {"email_id": email_id})


class InvalidQueryError(ApiError):
    status_code = 400
    error_code = "INVALID_FORMAT"
