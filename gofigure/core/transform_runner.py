"""
Phase 1 runner: turn a submitted photo into a figurine-style image.

Dependencies: gofigure.boundary.db, gofigure.boundary.aws, gofigure.boundary.providers
System role: Background transform step executed by the task queue
"""

import asyncio
import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from gofigure.boundary.aws.s3_client import S3ArtifactClient, result_image_key
from gofigure.boundary.db.CRUD.job_crud import job_crud
from gofigure.boundary.db.models.job_model import JobModel
from gofigure.boundary.providers.transform_client import TransformClient
from gofigure.core.exceptions import SourceImageMissingError
from gofigure.observability.log_utils import log_exception_with_context, log_with_context

logger = logging.getLogger(__name__)


class TransformRunner:
    """
    Runs the transform for one job and records the terminal outcome.

    Every failure on the way (missing source, transform error, download or
    upload error) is written to the job's error field. Nothing is retried.
    """

    def __init__(
        self,
        db: AsyncSession,
        storage: S3ArtifactClient,
        transform_client: TransformClient,
        presigned_url_expiry: int = 3600,
    ) -> None:
        self.db = db
        self.storage = storage
        self.transform_client = transform_client
        self.presigned_url_expiry = presigned_url_expiry

    async def run(self, job_id: UUID) -> JobModel | None:
        """
        Execute phase 1 for a job.

        Args:
            job_id: Job to transform

        Returns:
            JobModel: Job after its terminal phase 1 patch, or None when the
                job was not PENDING (missing, or already claimed by an earlier
                delivery of the same task)
        """
        job = await job_crud.claim_transform(self.db, job_id)
        await self.db.commit()
        if job is None:
            log_with_context(
                logger,
                logging.WARNING,
                "Transform skipped, job not pending",
                job_id=str(job_id),
            )
            return None

        log_with_context(logger, logging.INFO, "Transform started", job_id=str(job_id))
        try:
            result_key = await self._transform(job)
        except Exception as e:
            log_exception_with_context(
                logger, "Transform failed", e, job_id=str(job_id)
            )
            failed = await job_crud.fail_transform(self.db, job_id, str(e) or type(e).__name__)
            await self.db.commit()
            return failed

        completed = await job_crud.complete_transform(self.db, job_id, result_key)
        await self.db.commit()
        log_with_context(
            logger,
            logging.INFO,
            "Transform completed",
            job_id=str(job_id),
            result_image_ref=result_key,
        )
        return completed

    async def _transform(self, job: JobModel) -> str:
        source_key = job.source_image_ref
        if not source_key or not await asyncio.to_thread(self.storage.file_exists, source_key):
            raise SourceImageMissingError(str(job.id))

        source_url, _ = await asyncio.to_thread(
            self.storage.generate_presigned_download_url,
            source_key,
            self.presigned_url_expiry,
        )
        output_url = await self.transform_client.transform(source_url)
        image_bytes = await self.transform_client.download(output_url)

        return await asyncio.to_thread(
            self.storage.upload_bytes,
            result_image_key(str(job.id)),
            image_bytes,
            "image/png",
        )
