"""
Application Error Taxonomy

Every failure the API reports maps to one of these classes. Each carries
the HTTP status it is rendered with; the exception handlers registered in
``rms.main`` turn them into ``{"message": ...}`` JSON bodies.

Request body validation failures are raised by FastAPI itself
(``RequestValidationError``) and rendered as 400 by the same handlers.
"""

from typing import Any, Optional


class RMSError(Exception):
    """Base class for all errors rendered by the API."""

    status_code: int = 500
    default_message: str = "Server error"

    def __init__(self, message: Optional[str] = None, *, status_code: Optional[int] = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"message": self.message}


class ConflictError(RMSError):
    """Raised when registering an email that already exists."""
    status_code = 400
    default_message = "User already exists"


class InvalidCredentialsError(RMSError):
    """Raised by login for an unknown email or a wrong password alike."""
    status_code = 400
    default_message = "Invalid credentials"


class AuthenticationError(RMSError):
    """
    Raised when a bearer token is missing (401) or cannot be verified (403).
    """
    status_code = 403
    default_message = "Invalid token"


class AuthorizationError(RMSError):
    """Raised when the caller is authenticated but does not own the resource."""
    status_code = 403
    default_message = "Unauthorized"


class NotFoundError(RMSError):
    status_code = 404
    default_message = "Restaurant not found"


class StoreError(RMSError):
    """
    Wraps any failure of the persistence layer.

    The driver's message is passed through to the client under ``error``.
    """
    status_code = 500
    default_message = "Server error"

    def __init__(self, error: str, message: Optional[str] = None):
        super().__init__(message)
        self.error = error

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "error": self.error}
