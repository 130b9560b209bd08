"""
Shared test fixtures and configuration for entire test suite.

Provides: In-memory async database, job factory, fake scheduler, storage mocks
Dependencies: pytest, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from gofigure.configs.settings import Settings


class RecordingScheduler:
    """In-memory JobScheduler that records what would be enqueued."""

    def __init__(self):
        self.transforms: list[str] = []
        self.mesh_polls: list[dict] = []

    def schedule_transform(self, job_id: str) -> None:
        self.transforms.append(job_id)

    def schedule_mesh_poll(
        self,
        job_id: str,
        mesh_task_id: str,
        start_time_ms: int,
        delay_seconds: int,
    ) -> None:
        self.mesh_polls.append({
            "job_id": job_id,
            "mesh_task_id": mesh_task_id,
            "start_time_ms": start_time_ms,
            "delay_seconds": delay_seconds,
        })


@pytest.fixture
async def test_async_db():
    """
    Create in-memory SQLite async database for testing.

    Yields:
        AsyncSession: Test database session with cleanup (lazy imported to avoid settings issues)
    """
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
    from sqlalchemy.pool import StaticPool

    from gofigure.boundary.db.base import Base

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def make_job(test_async_db):
    """
    Factory inserting a job row with the given column values.

    Usage:
        job = await make_job(status=JobStatus.COMPLETED, result_image_ref="k")
    """
    from gofigure.boundary.db.CRUD.job_crud import job_crud

    async def _make(**fields):
        fields.setdefault("session_id", "session-1")
        fields.setdefault("source_image_ref", "submissions/x/source.png")
        job = await job_crud.create(test_async_db, **fields)
        await test_async_db.commit()
        return job

    return _make


@pytest.fixture
def scheduler() -> RecordingScheduler:
    return RecordingScheduler()


@pytest.fixture
def mock_storage() -> MagicMock:
    """S3ArtifactClient stand-in with deterministic presigned URLs."""
    storage = MagicMock()
    storage.file_exists.return_value = True
    storage.upload_bytes.side_effect = lambda key, data, content_type: key
    storage.generate_presigned_download_url.side_effect = lambda key, expires_in=3600: (
        f"https://signed.example/{key}",
        datetime(2030, 1, 1, tzinfo=timezone.utc),
    )
    return storage


@pytest.fixture
def settings() -> Settings:
    return Settings()
