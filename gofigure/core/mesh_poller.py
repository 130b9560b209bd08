"""
Phase 2 orchestration: create the mesh task and poll it to completion.

Polling is a chain of self-scheduling iterations. Each iteration reads the
external task status once, patches the job and, when the task is still
running, hands the next iteration to the durable scheduler with the original
start time so the total polling window survives restarts.

Dependencies: gofigure.boundary.db, gofigure.boundary.providers, gofigure.core
System role: Mesh generation orchestrator
"""

import enum
import logging
from typing import Callable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from gofigure.boundary.db.CRUD.job_crud import job_crud
from gofigure.boundary.db.models.job_model import TERMINAL_STATUSES, JobModel, MeshStatus
from gofigure.boundary.providers.mesh_client import MeshClient
from gofigure.core.backoff import is_timed_out, is_within_transient_grace, next_interval
from gofigure.core.job_state import from_epoch_ms, now_ms
from gofigure.core.mesh_status import failure_message, map_mesh_status
from gofigure.core.scheduling import JobScheduler
from gofigure.observability.log_utils import log_exception_with_context, log_with_context

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Mesh generation timed out after 1 hour"


class PollOutcome(str, enum.Enum):
    """Result of a single poll iteration."""

    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    RESCHEDULED = "rescheduled"
    STALE = "stale"


class MeshPoller:
    """
    Starts mesh tasks and runs individual poll iterations.

    Args:
        db: Async database session; the poller commits its own patches
        mesh_client: External mesh service client
        scheduler: Durable scheduler for follow-up iterations
        clock: Epoch-milliseconds clock, injectable for tests
    """

    def __init__(
        self,
        db: AsyncSession,
        mesh_client: MeshClient,
        scheduler: JobScheduler,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.db = db
        self.mesh_client = mesh_client
        self.scheduler = scheduler
        self.clock = clock

    async def start(self, job_id: UUID, image_url: str) -> JobModel | None:
        """
        Create the external mesh task for a claimed job and schedule the first poll.

        The caller must have reserved the job via job_crud.claim_mesh. A failed
        creation call or a failure to schedule the first poll marks phase 2
        FAILED.

        Args:
            job_id: Job whose phase 2 is starting
            image_url: Fetchable URL of the phase 1 result image

        Returns:
            JobModel: Job after the start (or failure) patch
        """
        try:
            mesh_task_id = await self.mesh_client.create_task(image_url)
        except Exception as e:
            log_exception_with_context(
                logger, "Mesh task creation failed", e, job_id=str(job_id)
            )
            failed = await job_crud.fail_mesh(self.db, job_id, str(e) or type(e).__name__)
            await self.db.commit()
            return failed

        started = await job_crud.start_mesh(self.db, job_id, mesh_task_id)
        await self.db.commit()
        if started is None:
            log_with_context(
                logger,
                logging.WARNING,
                "Mesh task created but job no longer accepts it",
                job_id=str(job_id),
                mesh_task_id=mesh_task_id,
            )
            return await job_crud.get_by_id(self.db, job_id)

        start_time_ms = self.clock()
        try:
            self.scheduler.schedule_mesh_poll(str(job_id), mesh_task_id, start_time_ms, 0)
        except Exception as e:
            log_exception_with_context(
                logger,
                "First mesh poll could not be scheduled",
                e,
                job_id=str(job_id),
                mesh_task_id=mesh_task_id,
            )
            failed = await job_crud.fail_mesh(
                self.db,
                job_id,
                f"Failed to schedule mesh polling: {str(e) or type(e).__name__}",
                mesh_task_id=mesh_task_id,
                now=from_epoch_ms(start_time_ms),
            )
            await self.db.commit()
            return failed

        log_with_context(
            logger,
            logging.INFO,
            "Mesh generation started",
            job_id=str(job_id),
            mesh_task_id=mesh_task_id,
        )
        return started

    async def poll_once(
        self,
        job_id: UUID,
        mesh_task_id: str,
        start_time_ms: int,
    ) -> PollOutcome:
        """
        Run one poll iteration.

        Args:
            job_id: Job being polled
            mesh_task_id: External task this chain belongs to
            start_time_ms: Epoch milliseconds at which polling began

        Returns:
            PollOutcome: What the iteration did
        """
        job = await job_crud.get_by_id(self.db, job_id)
        if (
            job is None
            or job.mesh_task_id != mesh_task_id
            or job.mesh_status in TERMINAL_STATUSES
        ):
            log_with_context(
                logger,
                logging.INFO,
                "Dropping stale mesh poll",
                job_id=str(job_id),
                mesh_task_id=mesh_task_id,
            )
            return PollOutcome.STALE

        current_ms = self.clock()
        elapsed_ms = current_ms - start_time_ms
        now = from_epoch_ms(current_ms)

        if is_timed_out(elapsed_ms):
            await job_crud.fail_mesh(
                self.db, job_id, TIMEOUT_MESSAGE, mesh_task_id=mesh_task_id, now=now
            )
            await self.db.commit()
            log_with_context(
                logger,
                logging.WARNING,
                "Mesh generation timed out",
                job_id=str(job_id),
                mesh_task_id=mesh_task_id,
                elapsed_ms=elapsed_ms,
            )
            return PollOutcome.TIMED_OUT

        try:
            snapshot = await self.mesh_client.get_task(mesh_task_id)
        except Exception as e:
            if is_within_transient_grace(elapsed_ms):
                log_exception_with_context(
                    logger,
                    "Mesh status query failed, retrying",
                    e,
                    job_id=str(job_id),
                    mesh_task_id=mesh_task_id,
                    elapsed_ms=elapsed_ms,
                )
                self._reschedule(job_id, mesh_task_id, start_time_ms, elapsed_ms)
                return PollOutcome.RESCHEDULED

            log_exception_with_context(
                logger,
                "Mesh status query failed past grace period",
                e,
                job_id=str(job_id),
                mesh_task_id=mesh_task_id,
            )
            await job_crud.fail_mesh(
                self.db,
                job_id,
                str(e) or type(e).__name__,
                mesh_task_id=mesh_task_id,
                now=now,
            )
            await self.db.commit()
            return PollOutcome.FAILED

        status = map_mesh_status(snapshot.status)

        if status == MeshStatus.COMPLETED:
            try:
                await job_crud.complete_mesh(
                    self.db,
                    job_id,
                    mesh_task_id,
                    snapshot.thumbnail_url,
                    snapshot.model_urls,
                    now=now,
                )
            except ValueError as e:
                await job_crud.fail_mesh(
                    self.db, job_id, str(e), mesh_task_id=mesh_task_id, now=now
                )
                await self.db.commit()
                log_with_context(
                    logger,
                    logging.ERROR,
                    "Mesh task succeeded without all model artifacts",
                    job_id=str(job_id),
                    mesh_task_id=mesh_task_id,
                )
                return PollOutcome.FAILED
            await self.db.commit()
            log_with_context(
                logger,
                logging.INFO,
                "Mesh generation completed",
                job_id=str(job_id),
                mesh_task_id=mesh_task_id,
            )
            return PollOutcome.COMPLETED

        if status == MeshStatus.FAILED:
            message = failure_message(snapshot.status, snapshot.error_message)
            await job_crud.fail_mesh(
                self.db, job_id, message, mesh_task_id=mesh_task_id, now=now
            )
            await self.db.commit()
            log_with_context(
                logger,
                logging.WARNING,
                "Mesh generation failed",
                job_id=str(job_id),
                mesh_task_id=mesh_task_id,
                upstream_status=snapshot.status.value,
                error=message,
            )
            return PollOutcome.FAILED

        await job_crud.update_mesh_progress(
            self.db,
            job_id,
            mesh_task_id,
            status,
            snapshot.progress,
            thumbnail_url=snapshot.thumbnail_url,
        )
        await self.db.commit()
        self._reschedule(job_id, mesh_task_id, start_time_ms, elapsed_ms)
        return PollOutcome.RESCHEDULED

    def _reschedule(
        self,
        job_id: UUID,
        mesh_task_id: str,
        start_time_ms: int,
        elapsed_ms: int,
    ) -> None:
        delay = next_interval(elapsed_ms)
        self.scheduler.schedule_mesh_poll(str(job_id), mesh_task_id, start_time_ms, delay)
        log_with_context(
            logger,
            logging.DEBUG,
            "Next mesh poll scheduled",
            job_id=str(job_id),
            mesh_task_id=mesh_task_id,
            delay_seconds=delay,
        )
