"""
Celery-backed job scheduler.

Tasks are published by name so the API process never imports worker
modules.

Dependencies: celery, gofigure.workers
System role: Durable delayed scheduling for the orchestrator
"""

import logging

from gofigure.workers import celery_app

logger = logging.getLogger(__name__)

RUN_TRANSFORM_TASK = "gofigure.run_transform"
POLL_MESH_TASK = "gofigure.poll_mesh_once"


class CeleryJobScheduler:
    """Publishes orchestrator steps to the broker."""

    def __init__(self, app=celery_app) -> None:
        self.app = app

    def schedule_transform(self, job_id: str) -> None:
        self.app.send_task(RUN_TRANSFORM_TASK, args=[job_id])
        logger.info("Transform enqueued", extra={"job_id": job_id})

    def schedule_mesh_poll(
        self,
        job_id: str,
        mesh_task_id: str,
        start_time_ms: int,
        delay_seconds: int,
    ) -> None:
        self.app.send_task(
            POLL_MESH_TASK,
            args=[job_id, mesh_task_id, start_time_ms],
            countdown=delay_seconds,
        )
