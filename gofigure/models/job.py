"""
Job domain models and schemas.

Request/response schemas for submission, status polling, retries and
ownership transfer.

Dependencies: pydantic
System role: Job API contracts
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SubmitJobRequest(BaseModel):
    """Request schema for a new figurine job."""

    image_base64: str = Field(
        min_length=1,
        description="Photo as a data URL (data:image/png;base64,...) or bare base64",
    )
    session_id: str | None = Field(
        default=None,
        max_length=128,
        description="Anonymous session ID; falls back to the session cookie",
    )


class JobResponse(BaseModel):
    """Full job status for frontend polling."""

    model_config = ConfigDict(protected_namespaces=())

    id: uuid.UUID
    session_id: str | None = None
    user_id: str | None = None
    created_at: datetime
    updated_at: datetime | None = None

    status: str
    completed_at: datetime | None = None
    error: str | None = None
    source_image_url: str | None = None
    result_image_url: str | None = None
    estimated_progress: int = Field(ge=0, le=100, description="Display-only phase 1 progress")

    mesh_task_id: str | None = None
    mesh_status: str | None = None
    mesh_progress: int | None = None
    mesh_thumbnail_url: str | None = None
    model_urls: dict[str, str] | None = None
    mesh_error: str | None = None
    mesh_completed_at: datetime | None = None


class RetryRequest(BaseModel):
    """Which phase(s) to reset before retrying."""

    scope: str = Field(default="both", description="phase1, phase2 (alias: mesh) or both")


class ClaimRequest(BaseModel):
    """Attach an anonymous session's jobs to a user."""

    session_id: str = Field(min_length=1, max_length=128)
    user_id: str | None = Field(default=None, min_length=1, max_length=128)


class ClaimResponse(BaseModel):
    claimed: int


class StuckJobsResponse(BaseModel):
    """Jobs processing for longer than the threshold."""

    threshold_minutes: int
    jobs: list[JobResponse]
