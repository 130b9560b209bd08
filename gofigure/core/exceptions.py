"""
Exception hierarchy for the GoFigure backend.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class GoFigureException(Exception):
    """Base exception for all GoFigure application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        # Messages end up verbatim in job error fields, so details stay out.
        return self.message


class ValidationError(GoFigureException):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class JobNotFoundError(GoFigureException):
    """Raised when a job cannot be found."""

    def __init__(self, job_id: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["job_id"] = job_id
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}", details)


class InvalidJobStateError(GoFigureException):
    """Raised when an operation is not allowed in the job's current state."""

    def __init__(
        self,
        message: str,
        job_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if job_id:
            details["job_id"] = job_id
        super().__init__(message, details)


class SourceImageMissingError(GoFigureException):
    """Raised when a job's source image is not present in storage."""

    def __init__(self, job_id: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["job_id"] = job_id
        super().__init__("Source image not found", details)


class StorageError(GoFigureException):
    """Raised when artifact storage operations fail."""

    def __init__(
        self,
        message: str,
        key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if key:
            details["key"] = key
        super().__init__(message, details)


class ExternalServiceError(GoFigureException):
    """Base exception for failures of external generation services."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if status_code is not None:
            details["status_code"] = status_code
        self.status_code = status_code
        super().__init__(message, details)


class TransformServiceError(ExternalServiceError):
    """Raised when the image transform service call fails."""

    pass


class MeshServiceError(ExternalServiceError):
    """Raised when a mesh service call fails."""

    pass


class ArtifactFetchError(ExternalServiceError):
    """Raised when a finished model artifact cannot be fetched upstream."""

    pass


class ArtifactNotFoundError(GoFigureException):
    """Raised when a job has no model artifact for the requested format."""

    def __init__(self, message: str, job_id: str | None = None) -> None:
        super().__init__(message, {"job_id": job_id} if job_id else None)
