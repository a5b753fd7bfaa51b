"""Error types for the artifacts backend.

Every error carries the HTTP status it maps to, so routes can raise them
directly and a single handler in ``app.py`` renders ``{"message": ...}``.
"""

from __future__ import annotations


class ArtifactServiceError(Exception):
    """Base class for all artifacts backend errors."""

    status_code = 500
    default_message = "Server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ArtifactServiceError):
    """Raised when a required field is missing from a request."""

    status_code = 400
    default_message = "Bad request"


class Unauthorized(ArtifactServiceError):
    """Raised when the session credential is missing or fails verification."""

    status_code = 401
    default_message = "Unauthorized"


class Forbidden(ArtifactServiceError):
    """Raised when a verified identity asks for another user's data."""

    status_code = 403
    default_message = "Forbidden"


class NotFound(ArtifactServiceError):
    """Raised when no artifact matches."""

    status_code = 404
    default_message = "Artifact not found"


class StoreError(ArtifactServiceError):
    """Raised when the underlying store fails. Never retried."""

    status_code = 500
    default_message = "Server error"
