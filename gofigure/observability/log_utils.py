"""
Structured logging helpers for job orchestration events.

The transform runner and mesh poller log one record per state change with
the job and task identifiers as `extra` fields. Values are normalized so
enum members log as their value, numbers stay numeric and upstream text
(error bodies, signed URLs) cannot flood a log line.

Dependencies: logging (stdlib)
System role: Logging helper functions
"""

import enum
import logging
from typing import Any

from gofigure.core.exceptions import GoFigureException

MAX_VALUE_LENGTH = 300


def log_value(value: Any, max_length: int = MAX_VALUE_LENGTH) -> Any:
    """
    Normalize a context value for a log record.

    Args:
        value: Value to normalize
        max_length: Maximum string length before truncating

    Returns:
        Any: None, bool, int and float unchanged; everything else as a string
    """
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, enum.Enum):
        value = value.value
    text = str(value)
    if len(text) > max_length:
        return text[:max_length] + f"... ({len(text)} chars)"
    return text


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **context,
) -> None:
    """
    Log a job event with normalized context fields.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        message: Log message
        **context: Fields such as job_id, mesh_task_id, elapsed_ms
    """
    logger.log(
        level,
        message,
        extra={key: log_value(val) for key, val in context.items()},
    )


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: Exception,
    **context,
) -> None:
    """
    Log a failed job step with its traceback.

    Upstream HTTP status codes carried by service errors are logged as
    `status_code`.

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception instance
        **context: Fields such as job_id, mesh_task_id, elapsed_ms
    """
    extra = {key: log_value(val) for key, val in context.items()}
    extra["error_type"] = type(exc).__name__
    extra["error_msg"] = log_value(str(exc))
    if isinstance(exc, GoFigureException) and "status_code" in exc.details:
        extra["status_code"] = exc.details["status_code"]
    logger.exception(message, extra=extra)
