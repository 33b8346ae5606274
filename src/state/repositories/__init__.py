"""Repositories."""
from src.state.repositories.emails import EmailRepository
__all__ = [
    "EmailRepository",
]
