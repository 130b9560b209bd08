"""
Job (submission) ORM model.

One row per photo submission, tracking both the transform phase and the
mesh generation phase.

Dependencies: sqlalchemy, gofigure.boundary.db.base
System role: Durable job record for the orchestrator and observing clients
"""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from gofigure.boundary.db.base import Base, UUIDMixin, TimestampMixin


class JobStatus(str, enum.Enum):
    """
    Phase 1 (transform) states.

    PENDING: Job created, transform task enqueued
    PROCESSING: Transform worker claimed the job and called the service
    COMPLETED: Result image stored; result_image_ref is set
    FAILED: Transform failed; error is set
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class MeshStatus(str, enum.Enum):
    """
    Phase 2 (mesh) states. Null on the row until mesh generation is triggered.

    PENDING: Mesh task created (or being created), not started upstream
    PROCESSING: Upstream task running; mesh_progress tracks it
    COMPLETED: All four model artifact URLs stored
    FAILED: Upstream failure, cancellation, creation error or timeout
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ModelFormat(str, enum.Enum):
    """Downloadable 3D model formats produced by the mesh service."""

    GLB = "glb"
    FBX = "fbx"
    OBJ = "obj"
    USDZ = "usdz"


MODEL_FORMATS: tuple[str, ...] = tuple(fmt.value for fmt in ModelFormat)

TERMINAL_STATUSES = frozenset({MeshStatus.COMPLETED, MeshStatus.FAILED})


class JobModel(Base, UUIDMixin, TimestampMixin):
    """
    Submission ORM model.

    Attributes:
        id: UUID primary key (auto-generated, immutable)
        session_id: Anonymous owner tag (cookie session)
        user_id: Authenticated owner tag, attachable later via claim
        source_image_ref: S3 key of the uploaded photo (immutable)
        status: Phase 1 status
        completed_at: Set when phase 1 reaches a terminal state
        error: Phase 1 failure message
        result_image_ref: S3 key of the transformed figurine image
        mesh_task_id: External mesh task handle (set once per mesh run)
        mesh_status: Phase 2 status (null until triggered)
        mesh_progress: Upstream progress 0-100
        mesh_thumbnail_url: Upstream thumbnail, may arrive before completion
        model_urls: {glb, fbx, obj, usdz}, written whole and only on success
        mesh_error: Phase 2 failure message
        mesh_completed_at: Set when phase 2 reaches a terminal state
        created_at: Submission time; origin for phase 1 progress and stuck checks

    Workflow:
        1. API stores the photo, inserts the row (status=PENDING), enqueues transform
        2. Transform worker claims PENDING -> PROCESSING, then COMPLETED/FAILED
        3. Client triggers mesh; mesh_status goes PENDING and mesh_task_id is recorded
        4. Poll tasks patch mesh_status/mesh_progress until COMPLETED/FAILED
    """

    __tablename__ = "submissions"

    session_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        index=True,
        doc="Anonymous session owner tag",
    )
    user_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        index=True,
        doc="Authenticated user owner tag",
    )

    source_image_ref: Mapped[str] = mapped_column(
        String(1024),
        nullable=False,
        doc="S3 key of the uploaded source photo",
    )

    status: Mapped[JobStatus] = mapped_column(
        Enum(JobStatus, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=JobStatus.PENDING,
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    result_image_ref: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    mesh_task_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        index=True,
        doc="External mesh task handle",
    )
    mesh_status: Mapped[MeshStatus | None] = mapped_column(
        Enum(MeshStatus, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        nullable=True,
    )
    mesh_progress: Mapped[int | None] = mapped_column(Integer, nullable=True)
    mesh_thumbnail_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    model_urls: Mapped[dict | None] = mapped_column(
        JSON(none_as_null=True),
        nullable=True,
        doc="All four model artifact URLs, or null",
    )
    mesh_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    mesh_completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
