# app/core/errors.py
"""
Error taxonomy for the account backend.

Every failure a service operation can report is an AccountError subclass
carrying the HTTP status it maps to. The API layer turns these into a JSON
body with a single human-readable "error" field (see app.main).
"""
from fastapi import status


class AccountError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(AccountError):
    """Malformed or missing client data."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class Unauthenticated(AccountError):
    """Missing/invalid token or bad credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid token"


class InvalidToken(Unauthenticated):
    """Token signature, structure or claim did not verify."""


class Forbidden(AccountError):
    """Valid identity, wrong confirmation secret."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Incorrect password"


class NotFound(AccountError):
    """Valid identity but the referenced record is gone."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "User not found"


class Conflict(AccountError):
    """Uniqueness violation."""

    status_code = status.HTTP_409_CONFLICT
    default_message = "Username or email already exists"


class InternalError(AccountError):
    """Store or collaborator failure."""


class UploadError(InternalError):
    default_message = "Error uploading avatar"


class SigningError(InternalError):
    default_message = "Error generating token"
