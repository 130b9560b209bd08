"""
Mesh polling Celery task.

Task: poll_mesh_once(job_id, mesh_task_id, start_time_ms)
Flow: guard -> timeout check -> status query -> patch job -> schedule next

Dependencies: celery, gofigure.core, gofigure.boundary, gofigure.workers
System role: Phase 2 background task
"""

import asyncio
from uuid import UUID

from kombu.exceptions import OperationalError

from gofigure.boundary.db.connection import worker_session
from gofigure.boundary.providers.mesh_client import MeshClient
from gofigure.configs import get_settings
from gofigure.core.mesh_poller import MeshPoller
from gofigure.observability.correlation import clear_correlation_id, set_correlation_id
from gofigure.workers import celery_app
from gofigure.workers.scheduler import POLL_MESH_TASK, CeleryJobScheduler


async def _poll(job_id: UUID, mesh_task_id: str, start_time_ms: int) -> str:
    settings = get_settings()
    mesh_client = MeshClient(
        base_url=settings.mesh.base_url,
        api_key=settings.mesh.api_key,
        timeout=settings.mesh.request_timeout,
    )
    async with worker_session() as db, mesh_client:
        poller = MeshPoller(db, mesh_client, CeleryJobScheduler())
        outcome = await poller.poll_once(job_id, mesh_task_id, start_time_ms)
        return outcome.value


@celery_app.task(
    bind=True,
    name=POLL_MESH_TASK,
    # Only broker hiccups while scheduling the next iteration are retried;
    # re-running an iteration costs one extra status read.
    autoretry_for=(OperationalError,),
    max_retries=5,
    retry_backoff=5,
    retry_backoff_max=60,
)
def poll_mesh_once(self, job_id: str, mesh_task_id: str, start_time_ms: int):
    """
    Run one mesh poll iteration.

    Args:
        job_id: Job UUID as string
        mesh_task_id: External mesh task the chain belongs to
        start_time_ms: Epoch milliseconds at which polling started

    Returns:
        str: PollOutcome value
    """
    set_correlation_id(self.request.id or job_id)
    try:
        return asyncio.run(_poll(UUID(job_id), mesh_task_id, int(start_time_ms)))
    finally:
        clear_correlation_id()
