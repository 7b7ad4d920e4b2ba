"""Domain errors raised by the order services.

Routes never translate these by hand; ``main.py`` registers one handler per
class that renders ``{"detail": <message>}`` with the matching status code.
"""
from fastapi import status


class OrderError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(OrderError):
    """Missing or invalid input."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthorizationError(OrderError):
    """Caller lacks the role, or does not own the order."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(OrderError):
    status_code = status.HTTP_404_NOT_FOUND


class StorageError(OrderError):
    """File write or database failure."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
