# accounts/app/core/exceptions.py
"""
Account errors.

Every failure a caller can cause (or that a collaborator causes on the
caller's behalf) is an ``AccountError`` carrying an HTTP status code and a
human-readable message. The API layer renders them uniformly through a
single exception handler, so services never build HTTP responses.

Hierarchy:
    AccountError (base)
    ├── InvalidInputError        400
    ├── ConflictError            409
    ├── NotFoundError            400
    ├── InvalidCredentialsError  400
    ├── UnauthorizedError        401
    │   └── InvalidTokenError    401
    └── InternalError            500
"""
from typing import Optional

from fastapi import status


class AccountError(Exception):
    """
    Base exception for all account errors.

    Attributes:
        message: Human-readable error description
        status_code: HTTP status the error maps to
        errors: Optional list of field-level problems
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, errors: Optional[list] = None):
        self.message = message
        self.errors = errors or []
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Structured error body for API responses."""
        return {
            "status": self.status_code,
            "message": self.message,
            "success": False,
            "errors": self.errors,
        }


class InvalidInputError(AccountError):
    """Caller-fixable request defect (missing fields, missing avatar)."""
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(AccountError):
    """Username or email already taken."""
    status_code = status.HTTP_409_CONFLICT


class NotFoundError(AccountError):
    # 400 rather than 404: it belongs to the "bad login" class
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidCredentialsError(AccountError):
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(AccountError):
    """Missing, invalid or replayed token."""
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidTokenError(UnauthorizedError):
    """Token signature is invalid, the token is malformed or it has expired."""


class InternalError(AccountError):
    """Post-write read-back, token generation or collaborator failure."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
