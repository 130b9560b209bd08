"""
Job state rules shared by the orchestrator and the API.

Reset scopes, stuck-job detection and the display-only phase 1 progress
estimate live here as plain functions over JobModel.

Dependencies: gofigure.boundary.db.models
System role: Pure job state logic
"""

import enum
import time
from datetime import datetime, timedelta, timezone
from typing import Any

from gofigure.boundary.db.base import as_utc
from gofigure.boundary.db.models.job_model import JobModel, JobStatus, MeshStatus
from gofigure.core.exceptions import ValidationError


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def from_epoch_ms(value: int) -> datetime:
    """Aware UTC datetime for an epoch-milliseconds timestamp."""
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


class ResetScope(str, enum.Enum):
    """Which phase(s) a reset-for-retry clears."""

    PHASE1 = "phase1"
    PHASE2 = "phase2"
    BOTH = "both"

    @classmethod
    def parse(cls, value: "str | ResetScope") -> "ResetScope":
        """
        Parse a scope name; "mesh" is accepted as an alias of phase2.

        Raises:
            ValidationError: On an unknown scope
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        if normalized == "mesh":
            return cls.PHASE2
        try:
            return cls(normalized)
        except ValueError:
            raise ValidationError(
                f"Unknown reset scope: {value}. Expected phase1, phase2 (mesh) or both",
                field="scope",
            ) from None

    @property
    def includes_phase1(self) -> bool:
        return self in (ResetScope.PHASE1, ResetScope.BOTH)

    @property
    def includes_phase2(self) -> bool:
        return self in (ResetScope.PHASE2, ResetScope.BOTH)


PHASE1_RESET_VALUES: dict[str, Any] = {
    "status": JobStatus.PENDING,
    "completed_at": None,
    "error": None,
    "result_image_ref": None,
}

PHASE2_RESET_VALUES: dict[str, Any] = {
    "mesh_task_id": None,
    "mesh_status": None,
    "mesh_progress": None,
    "mesh_thumbnail_url": None,
    "model_urls": None,
    "mesh_error": None,
    "mesh_completed_at": None,
}


def reset_values(scope: ResetScope) -> dict[str, Any]:
    """Column values that return the scoped phase(s) to a re-runnable state."""
    values: dict[str, Any] = {}
    if scope.includes_phase1:
        values.update(PHASE1_RESET_VALUES)
    if scope.includes_phase2:
        values.update(PHASE2_RESET_VALUES)
    return values


def is_stuck(job: JobModel, now: datetime, threshold: timedelta) -> bool:
    """
    Whether a job has been processing for longer than the threshold.

    Both phases are measured from the job's creation time.
    """
    if as_utc(job.created_at) >= now - threshold:
        return False
    if job.status == JobStatus.PROCESSING:
        return True
    return job.mesh_status == MeshStatus.PROCESSING and bool(job.mesh_task_id)


def estimate_transform_progress(
    job: JobModel,
    now: datetime,
    nominal_duration_seconds: int = 60,
) -> int:
    """
    Display-only phase 1 progress derived from elapsed time.

    The transform service reports no progress, so progress climbs linearly to
    90% over the first 80% of the nominal duration, then creeps towards 99%.
    """
    if job.status == JobStatus.COMPLETED:
        return 100
    if job.status == JobStatus.FAILED:
        return 0

    duration_ms = nominal_duration_seconds * 1000
    elapsed_ms = max((now - as_utc(job.created_at)).total_seconds() * 1000, 0)
    if elapsed_ms < duration_ms * 0.8:
        progress = elapsed_ms / (duration_ms * 0.8) * 90
    else:
        progress = 90 + (elapsed_ms - duration_ms * 0.8) / (duration_ms * 0.5) * 9
    return int(min(progress, 99))
