"""Custom exception hierarchy for nasiya.

Every error carries the HTTP status and machine-readable code it surfaces
as at the API boundary.
"""

from typing import Any


class NasiyaError(Exception):
    """Base exception for all nasiya errors."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str = "", errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = errors or []

    def to_dict(self) -> dict[str, Any]:
        """Error envelope returned to API callers."""
        body: dict[str, Any] = {
            "status": "error",
            "code": self.code,
            "message": self.message,
        }
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(NasiyaError):
    """Raised when input or a business rule is violated."""

    status_code = 400
    code = "VALIDATION_ERROR"


class AlreadyProcessedError(ValidationError):
    """Raised when confirming or rejecting an entry that is no longer pending."""

    code = "ALREADY_PROCESSED"


class UnauthorizedError(NasiyaError):
    """Raised when no actor identity accompanies a request."""

    status_code = 401
    code = "UNAUTHORIZED"


class ForbiddenError(NasiyaError):
    """Raised when the actor's role does not allow the operation."""

    status_code = 403
    code = "FORBIDDEN"


class EntityNotFoundError(NasiyaError):
    """Raised when a referenced entity does not exist."""

    status_code = 404
    code = "NOT_FOUND"


class ReferentialIntegrityError(EntityNotFoundError):
    """Raised when a foreign key reference is violated."""


class ConflictError(NasiyaError):
    """Raised when the operation conflicts with current state."""

    status_code = 409
    code = "CONFLICT"


class InvalidEntityStateError(ConflictError):
    """Raised when an entity is in an invalid state for the operation."""


class RateLimitedError(NasiyaError):
    """Raised when an actor exceeds the edit throttle."""

    status_code = 429
    code = "RATE_LIMITED"

    def __init__(self, message: str = "", retry_after: int = 0) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class ConfigurationError(NasiyaError):
    """Raised when configuration is invalid or missing."""


class SinkError(NasiyaError):
    """Raised when an export sink operation fails."""
