"""
Delayed task scheduling contract used by the orchestrator.

The orchestrator never keeps continuations in memory; every next step is
handed to a durable scheduler together with all the state it needs.

Dependencies: None
System role: Port between orchestration logic and the task queue
"""

from typing import Protocol


class JobScheduler(Protocol):
    """Durable, at-least-once delayed task scheduler."""

    def schedule_transform(self, job_id: str) -> None:
        """Enqueue the phase 1 transform for a job."""
        ...

    def schedule_mesh_poll(
        self,
        job_id: str,
        mesh_task_id: str,
        start_time_ms: int,
        delay_seconds: int,
    ) -> None:
        """Enqueue one mesh poll iteration after a delay."""
        ...
