"""
Figurine transform Celery task.

Task: run_transform(job_id)
Flow: claim -> presign source -> transform -> download -> store result -> complete

Dependencies: gofigure.core, gofigure.boundary, gofigure.workers
System role: Phase 1 background task
"""

import asyncio
from uuid import UUID

from gofigure.boundary.aws.s3_client import S3ArtifactClient
from gofigure.boundary.db.connection import worker_session
from gofigure.boundary.providers.transform_client import TransformClient
from gofigure.configs import get_settings
from gofigure.core.transform_runner import TransformRunner
from gofigure.observability.correlation import clear_correlation_id, set_correlation_id
from gofigure.workers import celery_app
from gofigure.workers.scheduler import RUN_TRANSFORM_TASK


async def _run(job_id: UUID) -> str | None:
    settings = get_settings()
    storage = S3ArtifactClient(
        bucket=settings.storage.bucket,
        region=settings.storage.region,
    )
    async with worker_session() as db, TransformClient(settings.transform) as client:
        runner = TransformRunner(
            db,
            storage,
            client,
            presigned_url_expiry=settings.storage.presigned_url_expiry,
        )
        job = await runner.run(job_id)
        return job.status.value if job else None


@celery_app.task(bind=True, name=RUN_TRANSFORM_TASK)
def run_transform(self, job_id: str):
    """
    Run phase 1 for a job.

    Not retried: a failed transform is recorded on the job and the user
    retries explicitly.

    Args:
        job_id: Job UUID as string

    Returns:
        str | None: Final phase 1 status, or None if the job was not pending
    """
    set_correlation_id(self.request.id or job_id)
    try:
        return asyncio.run(_run(UUID(job_id)))
    finally:
        clear_correlation_id()
