"""
Job service orchestrator.

Coordinates submission, status reporting, mesh triggering, retries, cloning
and ownership transfer for figurine jobs. Background work is handed to the
scheduler; this service never blocks on the external generation services.

Dependencies: gofigure.boundary, gofigure.core, gofigure.models
System role: Job management orchestration
"""

import asyncio
import base64
import binascii
import logging
import re
import uuid
from datetime import datetime, timedelta
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from gofigure.boundary.aws.s3_client import S3ArtifactClient, source_image_key
from gofigure.boundary.db.base import utcnow
from gofigure.boundary.db.CRUD.job_crud import job_crud
from gofigure.boundary.db.models.job_model import JobModel, JobStatus
from gofigure.boundary.providers.mesh_client import MeshClient
from gofigure.configs import Settings
from gofigure.core.exceptions import (
    InvalidJobStateError,
    JobNotFoundError,
    ValidationError,
)
from gofigure.core.job_state import (
    ResetScope,
    estimate_transform_progress,
    reset_values,
)
from gofigure.core.mesh_poller import MeshPoller
from gofigure.core.scheduling import JobScheduler
from gofigure.models.job import JobResponse

logger = logging.getLogger(__name__)

_DATA_URL_PATTERN = re.compile(r"^data:(image/[a-zA-Z0-9.+-]+);base64,(.*)$", re.DOTALL)

# Source photo formats accepted on submission, keyed by content type.
IMAGE_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/webp": "webp",
}

MAX_IMAGE_BYTES = 10 * 1024 * 1024


def decode_image_payload(payload: str) -> tuple[bytes, str]:
    """
    Decode a submitted photo.

    Accepts a data URL or bare base64 (assumed PNG).

    Args:
        payload: data:image/<type>;base64,<data> or raw base64

    Returns:
        tuple[bytes, str]: (image bytes, content type)

    Raises:
        ValidationError: On unsupported type, bad base64 or empty/oversized image
    """
    content_type = "image/png"
    data = payload.strip()
    match = _DATA_URL_PATTERN.match(data)
    if match:
        content_type = match.group(1).lower()
        data = match.group(2)
    elif data.startswith("data:"):
        raise ValidationError("Image must be a base64 data URL", field="image_base64")

    if content_type not in IMAGE_EXTENSIONS:
        raise ValidationError(
            f"Unsupported image type: {content_type}", field="image_base64"
        )

    try:
        image_bytes = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError("Image is not valid base64", field="image_base64") from None

    if not image_bytes:
        raise ValidationError("Image is empty", field="image_base64")
    if len(image_bytes) > MAX_IMAGE_BYTES:
        raise ValidationError("Image exceeds 10MB", field="image_base64")
    return image_bytes, content_type


def parse_job_id(value: str | UUID) -> UUID:
    """Parse a job ID; malformed IDs are reported as missing jobs."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        raise JobNotFoundError(str(value)) from None


class JobService:
    """
    Job service orchestrator.

    Args:
        db: AsyncSession for database operations
        storage: S3 client for source/result images
        mesh_client: Mesh service client used when triggering phase 2
        scheduler: Durable scheduler for background steps
        settings: Application settings
    """

    def __init__(
        self,
        db: AsyncSession,
        storage: S3ArtifactClient,
        mesh_client: MeshClient,
        scheduler: JobScheduler,
        settings: Settings,
    ) -> None:
        self.db = db
        self.storage = storage
        self.mesh_client = mesh_client
        self.scheduler = scheduler
        self.settings = settings

    # ==================== SUBMISSION ====================

    async def submit_job(
        self,
        image_base64: str,
        session_id: str | None = None,
        user_id: str | None = None,
    ) -> JobModel:
        """
        Store the photo, create a PENDING job and enqueue its transform.

        Args:
            image_base64: Photo as data URL or bare base64
            session_id: Anonymous session owning the job
            user_id: Authenticated user owning the job

        Returns:
            JobModel: Created job (status PENDING)

        Raises:
            ValidationError: If the image payload is invalid
            StorageError: If the photo cannot be stored
        """
        image_bytes, content_type = decode_image_payload(image_base64)
        job_id = uuid.uuid4()
        key = source_image_key(str(job_id), IMAGE_EXTENSIONS[content_type])
        await asyncio.to_thread(self.storage.upload_bytes, key, image_bytes, content_type)

        job = await job_crud.create(
            self.db,
            id=job_id,
            session_id=session_id,
            user_id=user_id,
            source_image_ref=key,
            status=JobStatus.PENDING,
        )
        await self.db.commit()

        self.scheduler.schedule_transform(str(job.id))
        logger.info(
            "Job submitted",
            extra={"job_id": str(job.id), "session_id": session_id, "user_id": user_id},
        )
        return job

    # ==================== QUERIES ====================

    async def get_job(self, job_id: str | UUID) -> JobModel:
        """
        Raises:
            JobNotFoundError: If the job does not exist
        """
        job_id = parse_job_id(job_id)
        job = await job_crud.get_by_id(self.db, job_id)
        if job is None:
            raise JobNotFoundError(str(job_id))
        return job

    async def list_jobs(
        self,
        session_id: str | None = None,
        user_id: str | None = None,
        limit: int | None = None,
    ) -> Sequence[JobModel]:
        """
        List jobs owned by a user, or by an anonymous session.

        The user ID takes precedence when both are given.

        Raises:
            ValidationError: If neither owner is given
        """
        if user_id:
            return await job_crud.list_by_user(self.db, user_id, limit=limit)
        if session_id:
            return await job_crud.list_by_session(self.db, session_id, limit=limit)
        raise ValidationError("session_id or user_id is required")

    async def find_stuck_jobs(
        self,
        threshold_minutes: int | None = None,
        now: datetime | None = None,
    ) -> Sequence[JobModel]:
        """
        Jobs that have been processing (either phase) longer than the threshold.

        Diagnostic only; nothing is modified.
        """
        if threshold_minutes is None:
            threshold_minutes = self.settings.orchestration.stuck_threshold_minutes
        if threshold_minutes < 0:
            raise ValidationError("threshold_minutes must be non-negative", field="threshold_minutes")
        cutoff = (now or utcnow()) - timedelta(minutes=threshold_minutes)
        return await job_crud.find_stuck(self.db, cutoff)

    async def to_response(self, job: JobModel, now: datetime | None = None) -> JobResponse:
        """
        Serialize a job for the API with fresh presigned image URLs.
        """
        source_url = await self._presign(job.source_image_ref)
        result_url = await self._presign(job.result_image_ref)
        return JobResponse(
            id=job.id,
            session_id=job.session_id,
            user_id=job.user_id,
            created_at=job.created_at,
            updated_at=job.updated_at,
            status=job.status.value,
            completed_at=job.completed_at,
            error=job.error,
            source_image_url=source_url,
            result_image_url=result_url,
            estimated_progress=estimate_transform_progress(
                job,
                now or utcnow(),
                self.settings.orchestration.transform_nominal_duration_seconds,
            ),
            mesh_task_id=job.mesh_task_id,
            mesh_status=job.mesh_status.value if job.mesh_status else None,
            mesh_progress=job.mesh_progress,
            mesh_thumbnail_url=job.mesh_thumbnail_url,
            model_urls=job.model_urls,
            mesh_error=job.mesh_error,
            mesh_completed_at=job.mesh_completed_at,
        )

    # ==================== PHASE 2 ====================

    async def trigger_mesh(self, job_id: str | UUID) -> JobModel:
        """
        Start mesh generation for a job whose transform has completed.

        Idempotent: a job that already has a mesh run (pending, processing or
        terminal) is returned unchanged, and concurrent triggers create at
        most one external task.

        Returns:
            JobModel: Job after the trigger

        Raises:
            JobNotFoundError: If the job does not exist
            InvalidJobStateError: If phase 1 has not completed
        """
        job = await self.get_job(job_id)
        if job.mesh_task_id or job.mesh_status is not None:
            return job
        if job.status != JobStatus.COMPLETED or not job.result_image_ref:
            raise InvalidJobStateError(
                "Transformed image is not ready",
                job_id=str(job.id),
                details={"current_state": job.status.value},
            )

        job_id = job.id
        claimed = await job_crud.claim_mesh(self.db, job_id)
        await self.db.commit()
        if claimed is None:
            return await self.get_job(job_id)

        # The job is reserved from here on; every failure must land on the record.
        try:
            image_url = await self._presign(claimed.result_image_ref)
            poller = MeshPoller(self.db, self.mesh_client, self.scheduler)
            started = await poller.start(job_id, image_url)
        except Exception as e:
            logger.exception("Mesh start failed", extra={"job_id": str(job_id)})
            await self.db.rollback()
            await job_crud.fail_mesh(
                self.db,
                job_id,
                f"Failed to start mesh generation: {str(e) or type(e).__name__}",
            )
            await self.db.commit()
            return await self.get_job(job_id)
        return started or await self.get_job(job_id)

    # ==================== RETRY / CLONE ====================

    async def reset_for_retry(self, job_id: str | UUID, scope: str | ResetScope) -> JobModel:
        """
        Clear the scoped phase(s) so they can run again.

        Phase 1 fields survive a phase2 reset and vice versa.

        Raises:
            ValidationError: On an unknown scope
            JobNotFoundError: If the job does not exist
        """
        scope = ResetScope.parse(scope)
        job_id = parse_job_id(job_id)
        job = await job_crud.update_by_id(self.db, job_id, **reset_values(scope))
        if job is None:
            raise JobNotFoundError(str(job_id))
        await self.db.commit()
        logger.info("Job reset", extra={"job_id": str(job_id), "scope": scope.value})
        return job

    async def retry(self, job_id: str | UUID, scope: str | ResetScope) -> JobModel:
        """
        Reset the scoped phase(s) and re-enqueue the transform when phase 1 was reset.

        A phase2-only retry leaves the job ready for a fresh mesh trigger.
        """
        scope = ResetScope.parse(scope)
        job = await self.reset_for_retry(job_id, scope)
        if scope.includes_phase1:
            self.scheduler.schedule_transform(str(job.id))
        return job

    async def clone_job(self, job_id: str | UUID) -> JobModel:
        """
        Create a new job from an existing job's photo.

        When the source job already has a transformed image it is reused and
        the clone starts with phase 1 COMPLETED; otherwise the clone starts
        PENDING and its transform is enqueued. Phase 2 always starts empty.
        """
        source = await self.get_job(job_id)
        fields = {
            "session_id": source.session_id,
            "user_id": source.user_id,
            "source_image_ref": source.source_image_ref,
        }
        if source.status == JobStatus.COMPLETED and source.result_image_ref:
            fields.update(
                status=JobStatus.COMPLETED,
                result_image_ref=source.result_image_ref,
                completed_at=utcnow(),
            )
        else:
            fields["status"] = JobStatus.PENDING

        clone = await job_crud.create(self.db, **fields)
        await self.db.commit()
        if clone.status == JobStatus.PENDING:
            self.scheduler.schedule_transform(str(clone.id))
        logger.info(
            "Job cloned",
            extra={"job_id": str(clone.id), "source_job_id": str(source.id)},
        )
        return clone

    # ==================== OWNERSHIP ====================

    async def claim_jobs(self, session_id: str, user_id: str) -> int:
        """Attach all unowned jobs of an anonymous session to a user."""
        claimed = await job_crud.claim_for_user(self.db, session_id, user_id)
        await self.db.commit()
        logger.info(
            "Session jobs claimed",
            extra={"session_id": session_id, "user_id": user_id, "claimed": claimed},
        )
        return claimed

    async def _presign(self, key: str | None) -> str | None:
        if not key:
            return None
        url, _ = await asyncio.to_thread(
            self.storage.generate_presigned_download_url,
            key,
            self.settings.storage.presigned_url_expiry,
        )
        return url
