"""
Test suite for MeshPoller.

Runs poll iterations against an in-memory database with a mocked mesh
client, a recording scheduler and a fixed clock.

System role: Verification of the mesh generation orchestrator
"""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from gofigure.boundary.db.CRUD.job_crud import job_crud
from gofigure.boundary.db.models.job_model import JobStatus, MeshStatus
from gofigure.boundary.providers.schemas import MeshTaskSnapshot
from gofigure.core.backoff import MINUTE_MS
from gofigure.core.exceptions import MeshServiceError
from gofigure.core.mesh_poller import TIMEOUT_MESSAGE, MeshPoller, PollOutcome
from gofigure.core.mesh_status import ExternalMeshStatus

START_MS = 1_700_000_000_000
TASK_ID = "mesh-task-1"
MODEL_URLS = {
    "glb": "https://assets.example/model.glb",
    "fbx": "https://assets.example/model.fbx",
    "obj": "https://assets.example/model.obj",
    "usdz": "https://assets.example/model.usdz",
}


class Clock:
    """Settable epoch-milliseconds clock."""

    def __init__(self, now_ms: int = START_MS):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, minutes: float) -> None:
        self.now_ms += int(minutes * MINUTE_MS)


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def mesh_client() -> AsyncMock:
    client = AsyncMock()
    client.create_task.return_value = TASK_ID
    return client


@pytest.fixture
def poller(test_async_db, mesh_client, scheduler, clock) -> MeshPoller:
    return MeshPoller(test_async_db, mesh_client, scheduler, clock=clock)


@pytest.fixture
async def polling_job(make_job):
    """Job whose mesh task has been created and is being polled."""
    return await make_job(
        status=JobStatus.COMPLETED,
        result_image_ref="submissions/x/result.png",
        mesh_task_id=TASK_ID,
        mesh_status=MeshStatus.PENDING,
        mesh_progress=0,
    )


def _snapshot(status: ExternalMeshStatus, **fields) -> MeshTaskSnapshot:
    return MeshTaskSnapshot(id=TASK_ID, status=status, **fields)


async def _reload(db, job_id):
    return await job_crud.get_by_id(db, job_id)


class TestStart:
    """Test suite for MeshPoller.start."""

    async def test_start_should_record_task_and_schedule_immediate_poll(
        self, poller, make_job, test_async_db, scheduler, mesh_client
    ) -> None:
        # Arrange
        job = await make_job(status=JobStatus.COMPLETED, result_image_ref="r.png")
        await job_crud.claim_mesh(test_async_db, job.id)
        await test_async_db.commit()

        # Act
        started = await poller.start(job.id, "https://signed.example/r.png")

        # Assert
        mesh_client.create_task.assert_awaited_once_with("https://signed.example/r.png")
        assert started.mesh_task_id == TASK_ID
        assert started.mesh_status == MeshStatus.PENDING
        assert scheduler.mesh_polls == [{
            "job_id": str(job.id),
            "mesh_task_id": TASK_ID,
            "start_time_ms": START_MS,
            "delay_seconds": 0,
        }]

    async def test_start_failure_should_mark_failed_and_schedule_nothing(
        self, poller, make_job, test_async_db, scheduler, mesh_client
    ) -> None:
        job = await make_job(status=JobStatus.COMPLETED, result_image_ref="r.png")
        await job_crud.claim_mesh(test_async_db, job.id)
        await test_async_db.commit()
        mesh_client.create_task.side_effect = MeshServiceError(
            "Failed to create mesh task: quota exceeded"
        )

        failed = await poller.start(job.id, "https://signed.example/r.png")

        assert failed.mesh_status == MeshStatus.FAILED
        assert failed.mesh_error == "Failed to create mesh task: quota exceeded"
        assert failed.mesh_task_id is None
        assert scheduler.mesh_polls == []

    async def test_scheduling_failure_should_mark_failed_with_task_id(
        self, poller, make_job, test_async_db, scheduler
    ) -> None:
        job = await make_job(status=JobStatus.COMPLETED, result_image_ref="r.png")
        await job_crud.claim_mesh(test_async_db, job.id)
        await test_async_db.commit()
        scheduler.schedule_mesh_poll = MagicMock(side_effect=ConnectionError("broker down"))

        failed = await poller.start(job.id, "https://signed.example/r.png")

        assert failed.mesh_status == MeshStatus.FAILED
        assert failed.mesh_task_id == TASK_ID
        assert failed.mesh_error == "Failed to schedule mesh polling: broker down"
        stored = await _reload(test_async_db, job.id)
        assert stored.mesh_status == MeshStatus.FAILED


class TestPollOnce:
    """Test suite for MeshPoller.poll_once."""

    async def test_in_progress_should_patch_progress_and_reschedule(
        self, poller, polling_job, mesh_client, scheduler, clock, test_async_db
    ) -> None:
        # Arrange
        clock.advance(2)
        mesh_client.get_task.return_value = _snapshot(
            ExternalMeshStatus.IN_PROGRESS, progress=40, thumbnail_url="https://t/1.png"
        )

        # Act
        outcome = await poller.poll_once(polling_job.id, TASK_ID, START_MS)

        # Assert
        assert outcome == PollOutcome.RESCHEDULED
        job = await _reload(test_async_db, polling_job.id)
        assert job.mesh_status == MeshStatus.PROCESSING
        assert job.mesh_progress == 40
        assert job.mesh_thumbnail_url == "https://t/1.png"
        assert scheduler.mesh_polls[-1]["delay_seconds"] == 5
        assert scheduler.mesh_polls[-1]["start_time_ms"] == START_MS

    async def test_later_poll_without_thumbnail_should_keep_earlier_thumbnail(
        self, poller, polling_job, mesh_client, clock, test_async_db
    ) -> None:
        mesh_client.get_task.side_effect = [
            _snapshot(ExternalMeshStatus.IN_PROGRESS, progress=10, thumbnail_url="https://t/1.png"),
            _snapshot(ExternalMeshStatus.IN_PROGRESS, progress=60),
        ]

        await poller.poll_once(polling_job.id, TASK_ID, START_MS)
        clock.advance(1)
        await poller.poll_once(polling_job.id, TASK_ID, START_MS)

        job = await _reload(test_async_db, polling_job.id)
        assert job.mesh_progress == 60
        assert job.mesh_thumbnail_url == "https://t/1.png"

    async def test_backoff_should_follow_elapsed_time(
        self, poller, polling_job, mesh_client, scheduler, clock
    ) -> None:
        mesh_client.get_task.return_value = _snapshot(ExternalMeshStatus.IN_PROGRESS, progress=50)
        clock.advance(12)

        await poller.poll_once(polling_job.id, TASK_ID, START_MS)

        assert scheduler.mesh_polls[-1]["delay_seconds"] == 60

    async def test_succeeded_should_complete_with_all_artifacts(
        self, poller, polling_job, mesh_client, scheduler, test_async_db
    ) -> None:
        mesh_client.get_task.return_value = _snapshot(
            ExternalMeshStatus.SUCCEEDED,
            progress=100,
            thumbnail_url="https://t/final.png",
            model_urls=MODEL_URLS,
        )

        outcome = await poller.poll_once(polling_job.id, TASK_ID, START_MS)

        assert outcome == PollOutcome.COMPLETED
        job = await _reload(test_async_db, polling_job.id)
        assert job.mesh_status == MeshStatus.COMPLETED
        assert job.mesh_progress == 100
        assert job.model_urls == MODEL_URLS
        assert job.mesh_thumbnail_url == "https://t/final.png"
        assert job.mesh_completed_at is not None
        assert scheduler.mesh_polls == []

    async def test_succeeded_with_missing_artifact_should_fail(
        self, poller, polling_job, mesh_client, test_async_db
    ) -> None:
        partial = {k: v for k, v in MODEL_URLS.items() if k != "usdz"}
        mesh_client.get_task.return_value = _snapshot(
            ExternalMeshStatus.SUCCEEDED, progress=100, model_urls=partial
        )

        outcome = await poller.poll_once(polling_job.id, TASK_ID, START_MS)

        assert outcome == PollOutcome.FAILED
        job = await _reload(test_async_db, polling_job.id)
        assert job.mesh_status == MeshStatus.FAILED
        assert job.model_urls is None
        assert "usdz" in job.mesh_error

    async def test_failed_should_record_upstream_message(
        self, poller, polling_job, mesh_client, scheduler, test_async_db
    ) -> None:
        mesh_client.get_task.return_value = _snapshot(
            ExternalMeshStatus.FAILED, task_error={"message": "Image has no subject"}
        )

        outcome = await poller.poll_once(polling_job.id, TASK_ID, START_MS)

        assert outcome == PollOutcome.FAILED
        job = await _reload(test_async_db, polling_job.id)
        assert job.mesh_status == MeshStatus.FAILED
        assert job.mesh_error == "Image has no subject"
        assert scheduler.mesh_polls == []

    async def test_canceled_without_message_should_fail_with_cancel_text(
        self, poller, polling_job, mesh_client, test_async_db
    ) -> None:
        mesh_client.get_task.return_value = _snapshot(ExternalMeshStatus.CANCELED)

        await poller.poll_once(polling_job.id, TASK_ID, START_MS)

        job = await _reload(test_async_db, polling_job.id)
        assert job.mesh_status == MeshStatus.FAILED
        assert job.mesh_error == "Mesh generation was canceled"

    async def test_past_one_hour_should_time_out_without_querying(
        self, poller, polling_job, mesh_client, scheduler, clock, test_async_db
    ) -> None:
        clock.advance(61)

        outcome = await poller.poll_once(polling_job.id, TASK_ID, START_MS)

        assert outcome == PollOutcome.TIMED_OUT
        mesh_client.get_task.assert_not_awaited()
        job = await _reload(test_async_db, polling_job.id)
        assert job.mesh_status == MeshStatus.FAILED
        assert job.mesh_error == TIMEOUT_MESSAGE
        assert scheduler.mesh_polls == []

    async def test_query_error_within_grace_should_reschedule(
        self, poller, polling_job, mesh_client, scheduler, clock, test_async_db
    ) -> None:
        clock.advance(9)
        mesh_client.get_task.side_effect = MeshServiceError("Failed to get mesh task status: 503")

        outcome = await poller.poll_once(polling_job.id, TASK_ID, START_MS)

        assert outcome == PollOutcome.RESCHEDULED
        job = await _reload(test_async_db, polling_job.id)
        assert job.mesh_status == MeshStatus.PENDING
        assert scheduler.mesh_polls[-1]["delay_seconds"] == 15

    async def test_query_error_past_grace_should_fail(
        self, poller, polling_job, mesh_client, scheduler, clock, test_async_db
    ) -> None:
        clock.advance(11)
        mesh_client.get_task.side_effect = MeshServiceError("Failed to get mesh task status: 503")

        outcome = await poller.poll_once(polling_job.id, TASK_ID, START_MS)

        assert outcome == PollOutcome.FAILED
        job = await _reload(test_async_db, polling_job.id)
        assert job.mesh_status == MeshStatus.FAILED
        assert job.mesh_error == "Failed to get mesh task status: 503"
        assert scheduler.mesh_polls == []

    async def test_transient_errors_then_fatal_should_fail_once_past_grace(
        self, poller, polling_job, mesh_client, scheduler, clock, test_async_db
    ) -> None:
        mesh_client.get_task.side_effect = MeshServiceError("connection reset")
        outcomes = []
        for minutes in (1, 4, 6):
            clock.advance(minutes)
            outcomes.append(await poller.poll_once(polling_job.id, TASK_ID, START_MS))

        assert outcomes == [PollOutcome.RESCHEDULED, PollOutcome.RESCHEDULED, PollOutcome.FAILED]
        assert len(scheduler.mesh_polls) == 2

    async def test_poll_for_replaced_task_should_be_dropped(
        self, poller, polling_job, mesh_client, scheduler
    ) -> None:
        outcome = await poller.poll_once(polling_job.id, "old-task", START_MS)

        assert outcome == PollOutcome.STALE
        mesh_client.get_task.assert_not_awaited()
        assert scheduler.mesh_polls == []

    async def test_poll_after_terminal_should_be_dropped(
        self, poller, make_job, mesh_client
    ) -> None:
        job = await make_job(
            status=JobStatus.COMPLETED,
            mesh_task_id=TASK_ID,
            mesh_status=MeshStatus.COMPLETED,
            model_urls=MODEL_URLS,
        )

        outcome = await poller.poll_once(job.id, TASK_ID, START_MS)

        assert outcome == PollOutcome.STALE
        mesh_client.get_task.assert_not_awaited()

    async def test_poll_for_missing_job_should_be_dropped(self, poller, mesh_client) -> None:
        outcome = await poller.poll_once(uuid.uuid4(), TASK_ID, START_MS)

        assert outcome == PollOutcome.STALE
