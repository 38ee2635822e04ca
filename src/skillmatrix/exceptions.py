"""
Exception hierarchy for the skill matrix service.

Every error raised by a service carries a human-readable message, a context
dictionary for logging, and the HTTP status the API layer answers with.

Exception Hierarchy:
    SkillMatrixError (base, 500)
    ├── AuthenticationRequiredError (401)
    ├── PermissionDeniedError (403)
    ├── NotFoundError (404)
    ├── InvalidStatusTransitionError (409)
    ├── DuplicateEntityError (409)
    ├── RuleViolationError (422)
    ├── CSVFormatError (400)
    └── IdentityServiceError (502)
"""

from datetime import datetime, timezone
from typing import Any


class SkillMatrixError(Exception):
    """
    Base exception for all skill matrix errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (entity ids, user, etc.)
        original_exception: The original exception that was caught (if any)
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ) -> None:
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += (
                f" | Caused by: {type(self.original_exception).__name__}: "
                f"{self.original_exception}"
            )

        return base_msg

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging and error responses."""
        return {
            "error": self.__class__.__name__,
            "detail": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }


class AuthenticationRequiredError(SkillMatrixError):
    """Raised when the caller's identity is missing or unknown."""

    status_code = 401


class PermissionDeniedError(SkillMatrixError):
    """Raised when the caller's role does not allow the operation."""

    status_code = 403


class NotFoundError(SkillMatrixError):
    """
    Raised when a referenced record does not exist.

    Context should include:
        - entity: Kind of record (skill, rating, profile, ...)
        - id: The identifier that was looked up
    """

    status_code = 404


class InvalidStatusTransitionError(SkillMatrixError):
    """
    Raised when a rating or goal is moved to a status its current one forbids.

    Context should include:
        - current_status: Status of the record
        - requested_status: Status the caller asked for
    """

    status_code = 409


class DuplicateEntityError(SkillMatrixError):
    """Raised when a name is already taken within the same parent."""

    status_code = 409


class RuleViolationError(SkillMatrixError):
    """Raised when input breaks a business rule (missing comment, bad name, ...)."""

    status_code = 422


class CSVFormatError(SkillMatrixError):
    """
    Raised when an uploaded taxonomy CSV cannot be read.

    Context should include:
        - missing_columns: Header columns that were expected but absent
    """

    status_code = 400


class IdentityServiceError(SkillMatrixError):
    """
    Raised when the hosted identity service rejects or fails a call.

    Context should include:
        - operation: create, update, delete, ban, ...
        - status_code: HTTP status returned by the service (if any)
    """

    status_code = 502
