"""
Dependency injection container.

Factory functions for FastAPI dependencies.

Dependencies: gofigure.configs, gofigure.application, gofigure.boundary
System role: DI container for service injection
"""

import httpx
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gofigure.application.services import ArtifactService, JobService
from gofigure.boundary.aws.s3_client import S3ArtifactClient
from gofigure.boundary.db import get_async_db
from gofigure.boundary.providers.mesh_client import MeshClient
from gofigure.configs import Settings, get_settings
from gofigure.core.scheduling import JobScheduler


class ServiceCache:
    """Container for cached, process-wide client instances."""

    def __init__(self):
        self._storage = None
        self._mesh_client = None
        self._artifact_http = None
        self._scheduler = None

    @property
    def storage(self) -> S3ArtifactClient:
        """Get cached S3 artifact client."""
        if self._storage is None:
            settings = get_settings()
            self._storage = S3ArtifactClient(
                bucket=settings.storage.bucket,
                region=settings.storage.region,
            )
        return self._storage

    @property
    def mesh_client(self) -> MeshClient:
        """Get cached mesh service client."""
        if self._mesh_client is None:
            settings = get_settings()
            self._mesh_client = MeshClient(
                base_url=settings.mesh.base_url,
                api_key=settings.mesh.api_key,
                timeout=settings.mesh.request_timeout,
            )
        return self._mesh_client

    @property
    def artifact_http(self) -> httpx.AsyncClient:
        """Get cached HTTP client for relaying model artifacts."""
        if self._artifact_http is None:
            settings = get_settings()
            self._artifact_http = httpx.AsyncClient(
                timeout=settings.mesh.artifact_timeout,
                follow_redirects=True,
            )
        return self._artifact_http

    @property
    def scheduler(self) -> JobScheduler:
        """Get cached task scheduler."""
        if self._scheduler is None:
            # Importing the worker package builds the Celery app.
            from gofigure.workers.scheduler import CeleryJobScheduler
            self._scheduler = CeleryJobScheduler()
        return self._scheduler

    async def aclose(self) -> None:
        """Close open HTTP clients and clear all cached instances."""
        if self._mesh_client is not None:
            await self._mesh_client.aclose()
        if self._artifact_http is not None:
            await self._artifact_http.aclose()
        self._storage = None
        self._mesh_client = None
        self._artifact_http = None
        self._scheduler = None


# Global service cache
_service_cache = ServiceCache()


def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache


def get_settings_dependency() -> Settings:
    """Get settings singleton."""
    return get_settings()


def get_storage_client() -> S3ArtifactClient:
    """
    Get S3 artifact client for uploads and presigned URL generation.

    Returns:
        S3ArtifactClient: Client for the artifact bucket
    """
    return get_service_cache().storage


def get_mesh_client() -> MeshClient:
    return get_service_cache().mesh_client


def get_job_scheduler() -> JobScheduler:
    return get_service_cache().scheduler


def get_artifact_http_client() -> httpx.AsyncClient:
    return get_service_cache().artifact_http


def get_job_service(
    db: AsyncSession = Depends(get_async_db),
    storage: S3ArtifactClient = Depends(get_storage_client),
    mesh_client: MeshClient = Depends(get_mesh_client),
    scheduler: JobScheduler = Depends(get_job_scheduler),
    settings: Settings = Depends(get_settings_dependency),
) -> JobService:
    """
    Get job service instance.

    Args:
        db: Async database session (injected via Depends)
        storage: S3 artifact client (injected)
        mesh_client: Mesh service client (injected)
        scheduler: Task scheduler (injected)
        settings: Application settings (injected)

    Returns:
        JobService: Job service instance
    """
    return JobService(
        db=db,
        storage=storage,
        mesh_client=mesh_client,
        scheduler=scheduler,
        settings=settings,
    )


def get_artifact_service(
    db: AsyncSession = Depends(get_async_db),
    http_client: httpx.AsyncClient = Depends(get_artifact_http_client),
) -> ArtifactService:
    """
    Get model artifact relay service.

    Returns:
        ArtifactService: Service streaming models from upstream storage
    """
    return ArtifactService(db=db, http_client=http_client)
