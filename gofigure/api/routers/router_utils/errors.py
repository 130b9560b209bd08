"""
Domain exception to HTTP error mapping.

Dependencies: fastapi, gofigure.core.exceptions
System role: Consistent error responses across routers
"""

from fastapi import HTTPException

from gofigure.core.exceptions import (
    ArtifactFetchError,
    ArtifactNotFoundError,
    ExternalServiceError,
    GoFigureException,
    InvalidJobStateError,
    JobNotFoundError,
    StorageError,
    ValidationError,
)

_STATUS_CODES: tuple[tuple[type[GoFigureException], int], ...] = (
    (ValidationError, 400),
    (JobNotFoundError, 404),
    (ArtifactNotFoundError, 404),
    (InvalidJobStateError, 409),
    (ArtifactFetchError, 502),
    (ExternalServiceError, 502),
    (StorageError, 502),
)


def to_http_exception(exc: GoFigureException) -> HTTPException:
    """
    Map a domain exception onto an HTTPException.

    Args:
        exc: Raised domain exception

    Returns:
        HTTPException: 400/404/409/502, or 500 for anything unmapped
    """
    for exc_type, status_code in _STATUS_CODES:
        if isinstance(exc, exc_type):
            return HTTPException(status_code=status_code, detail=exc.message)
    return HTTPException(status_code=500, detail=exc.message)
