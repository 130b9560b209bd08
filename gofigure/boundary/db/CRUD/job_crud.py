"""
Job CRUD operations.

Provides persistence for JobModel with the phase-specific patches used by
the orchestrator. Every orchestrator write is a partial update that owns its
columns; writes that must not race carry WHERE preconditions.

Dependencies: sqlalchemy, gofigure.boundary.db.models
System role: Job record store operations
"""

from datetime import datetime
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import and_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from gofigure.boundary.db.base import utcnow
from gofigure.boundary.db.CRUD.base_crud import BaseCRUD
from gofigure.boundary.db.models.job_model import (
    MODEL_FORMATS,
    JobModel,
    JobStatus,
    MeshStatus,
)


def validate_model_urls(model_urls: dict[str, Any] | None) -> dict[str, str]:
    """
    Ensure a model artifact mapping carries every format with a non-empty URL.

    Args:
        model_urls: Mapping of format -> URL as returned upstream

    Returns:
        dict[str, str]: Mapping restricted to the four known formats

    Raises:
        ValueError: If any format is missing or empty
    """
    model_urls = model_urls or {}
    missing = [fmt for fmt in MODEL_FORMATS if not model_urls.get(fmt)]
    if missing:
        raise ValueError(f"Model artifacts incomplete, missing: {', '.join(missing)}")
    return {fmt: str(model_urls[fmt]) for fmt in MODEL_FORMATS}


class JobCRUD(BaseCRUD[JobModel]):
    """
    CRUD operations for JobModel.

    Extends BaseCRUD with owner listings, mesh task correlation and the
    phase 1 / phase 2 state transitions.
    """

    def __init__(self) -> None:
        """Initialize JobCRUD with JobModel."""
        super().__init__(JobModel)

    # ==================== LOOKUPS ====================

    async def get_by_mesh_task_id(
        self,
        session: AsyncSession,
        mesh_task_id: str,
    ) -> JobModel | None:
        """
        Retrieve job by external mesh task ID.

        Args:
            session: Async database session
            mesh_task_id: Mesh service task handle

        Returns:
            JobModel if found, None otherwise
        """
        stmt = select(JobModel).where(JobModel.mesh_task_id == mesh_task_id).limit(1)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_session(
        self,
        session: AsyncSession,
        session_id: str,
        limit: int | None = None,
    ) -> Sequence[JobModel]:
        """Jobs owned by an anonymous session, newest first."""
        stmt = (
            select(JobModel)
            .where(JobModel.session_id == session_id)
            .order_by(JobModel.created_at.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def list_by_user(
        self,
        session: AsyncSession,
        user_id: str,
        limit: int | None = None,
    ) -> Sequence[JobModel]:
        """Jobs owned by an authenticated user, newest first."""
        stmt = (
            select(JobModel)
            .where(JobModel.user_id == user_id)
            .order_by(JobModel.created_at.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def find_stuck(
        self,
        session: AsyncSession,
        created_before: datetime,
    ) -> Sequence[JobModel]:
        """
        Jobs still processing although created before the cutoff.

        A job qualifies if phase 1 is PROCESSING, or if phase 2 is PROCESSING
        with a mesh task recorded.

        Args:
            session: Async database session
            created_before: Cutoff; jobs created at or after it are not stuck

        Returns:
            Sequence of stuck JobModels, oldest first
        """
        stmt = (
            select(JobModel)
            .where(
                JobModel.created_at < created_before,
                or_(
                    JobModel.status == JobStatus.PROCESSING,
                    and_(
                        JobModel.mesh_status == MeshStatus.PROCESSING,
                        JobModel.mesh_task_id.is_not(None),
                    ),
                ),
            )
            .order_by(JobModel.created_at.asc())
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    # ==================== PHASE 1 ====================

    async def claim_transform(self, session: AsyncSession, id: UUID) -> JobModel | None:
        """
        Move a PENDING job to PROCESSING.

        Returns:
            Updated JobModel, or None if the job is not PENDING (already claimed
            by an earlier delivery of the same task, or terminal)
        """
        return await self.update_where(
            session,
            id,
            (JobModel.status == JobStatus.PENDING,),
            status=JobStatus.PROCESSING,
        )

    async def complete_transform(
        self,
        session: AsyncSession,
        id: UUID,
        result_image_ref: str,
        now: datetime | None = None,
    ) -> JobModel | None:
        """Record the stored result image and mark phase 1 COMPLETED."""
        return await self.update_by_id(
            session,
            id,
            status=JobStatus.COMPLETED,
            result_image_ref=result_image_ref,
            completed_at=now or utcnow(),
        )

    async def fail_transform(
        self,
        session: AsyncSession,
        id: UUID,
        error: str,
        now: datetime | None = None,
    ) -> JobModel | None:
        """Mark phase 1 FAILED with the failure message."""
        return await self.update_by_id(
            session,
            id,
            status=JobStatus.FAILED,
            error=error,
            completed_at=now or utcnow(),
        )

    # ==================== PHASE 2 ====================

    async def claim_mesh(self, session: AsyncSession, id: UUID) -> JobModel | None:
        """
        Reserve the job for mesh generation.

        Succeeds only once per mesh run: phase 1 must be COMPLETED and no mesh
        status or task may be recorded yet.

        Returns:
            Updated JobModel, or None if another trigger already won
        """
        return await self.update_where(
            session,
            id,
            (
                JobModel.status == JobStatus.COMPLETED,
                JobModel.mesh_status.is_(None),
                JobModel.mesh_task_id.is_(None),
            ),
            mesh_status=MeshStatus.PENDING,
            mesh_progress=0,
        )

    async def start_mesh(
        self,
        session: AsyncSession,
        id: UUID,
        mesh_task_id: str,
    ) -> JobModel | None:
        """Record the created mesh task; never overwrites an existing task ID."""
        return await self.update_where(
            session,
            id,
            (JobModel.mesh_task_id.is_(None),),
            mesh_task_id=mesh_task_id,
            mesh_status=MeshStatus.PENDING,
            mesh_progress=0,
        )

    async def update_mesh_progress(
        self,
        session: AsyncSession,
        id: UUID,
        mesh_task_id: str,
        status: MeshStatus,
        progress: int,
        thumbnail_url: str | None = None,
    ) -> JobModel | None:
        """
        Patch in-flight mesh progress.

        The thumbnail is only written when provided, so an earlier thumbnail is
        never erased by a later poll that lacks one.
        """
        fields: dict[str, Any] = {"mesh_status": status, "mesh_progress": progress}
        if thumbnail_url:
            fields["mesh_thumbnail_url"] = thumbnail_url
        return await self.update_where(
            session,
            id,
            (JobModel.mesh_task_id == mesh_task_id,),
            **fields,
        )

    async def complete_mesh(
        self,
        session: AsyncSession,
        id: UUID,
        mesh_task_id: str,
        thumbnail_url: str | None,
        model_urls: dict[str, Any],
        now: datetime | None = None,
    ) -> JobModel | None:
        """
        Mark phase 2 COMPLETED with all four model artifacts in one write.

        Raises:
            ValueError: If model_urls does not carry all four formats
        """
        return await self.update_where(
            session,
            id,
            (JobModel.mesh_task_id == mesh_task_id,),
            mesh_status=MeshStatus.COMPLETED,
            mesh_progress=100,
            mesh_thumbnail_url=thumbnail_url,
            model_urls=validate_model_urls(model_urls),
            mesh_completed_at=now or utcnow(),
        )

    async def fail_mesh(
        self,
        session: AsyncSession,
        id: UUID,
        error: str,
        mesh_task_id: str | None = None,
        now: datetime | None = None,
    ) -> JobModel | None:
        """
        Mark phase 2 FAILED.

        Args:
            mesh_task_id: Task the failure belongs to; None when the task was
                never created (creation call failed)
        """
        condition = (
            JobModel.mesh_task_id.is_(None)
            if mesh_task_id is None
            else JobModel.mesh_task_id == mesh_task_id
        )
        return await self.update_where(
            session,
            id,
            (condition,),
            mesh_status=MeshStatus.FAILED,
            mesh_error=error,
            mesh_completed_at=now or utcnow(),
        )

    # ==================== OWNERSHIP ====================

    async def claim_for_user(
        self,
        session: AsyncSession,
        session_id: str,
        user_id: str,
    ) -> int:
        """
        Attach a user ID to every unowned job of an anonymous session.

        Jobs that already carry a user ID are left alone.

        Returns:
            int: Number of jobs claimed
        """
        stmt = (
            update(JobModel)
            .where(JobModel.session_id == session_id, JobModel.user_id.is_(None))
            .values(user_id=user_id)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount or 0


job_crud = JobCRUD()
