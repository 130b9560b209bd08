"""
Model artifact relay.

Streams finished 3D model files from the mesh service's storage through our
own origin, so browsers and viewers never need cross-origin access to the
upstream URLs.

Dependencies: httpx, gofigure.boundary.db
System role: Same-origin model download proxy
"""

import logging
from dataclasses import dataclass
from uuid import UUID

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from gofigure.boundary.db.CRUD.job_crud import job_crud
from gofigure.boundary.db.models.job_model import MODEL_FORMATS, MeshStatus
from gofigure.core.exceptions import (
    ArtifactFetchError,
    ArtifactNotFoundError,
    JobNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

MODEL_CONTENT_TYPES = {
    "glb": "model/gltf-binary",
    "fbx": "application/octet-stream",
    "obj": "text/plain",
    "usdz": "model/vnd.usdz+zip",
}

DEFAULT_MODEL_FORMAT = "glb"
ARTIFACT_CACHE_CONTROL = "public, max-age=86400"


@dataclass
class ModelArtifactStream:
    """An open upstream response plus the headers to relay it with."""

    response: httpx.Response
    model_format: str
    content_type: str

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Content-Disposition": f'inline; filename="model.{self.model_format}"',
            "Cache-Control": ARTIFACT_CACHE_CONTROL,
        }

    async def aclose(self) -> None:
        await self.response.aclose()


def normalize_model_format(model_format: str | None) -> str:
    """
    Raises:
        ValidationError: If the format is not one of glb, fbx, obj, usdz
    """
    normalized = (model_format or DEFAULT_MODEL_FORMAT).strip().lower()
    if normalized not in MODEL_FORMATS:
        raise ValidationError(
            f"Invalid format: {model_format}. Expected one of {', '.join(MODEL_FORMATS)}",
            field="format",
        )
    return normalized


class ArtifactService:
    """
    Opens upstream model artifacts for relaying.

    Args:
        db: AsyncSession for job lookups
        http_client: Shared client used for upstream downloads
    """

    def __init__(self, db: AsyncSession, http_client: httpx.AsyncClient) -> None:
        self.db = db
        self.http_client = http_client

    async def open_model(self, job_id: str, model_format: str | None = None) -> ModelArtifactStream:
        """
        Open a streaming download of a job's model in the requested format.

        The caller must close the returned stream.

        Args:
            job_id: Job UUID as string
            model_format: glb (default), fbx, obj or usdz

        Returns:
            ModelArtifactStream: Open upstream response with relay headers

        Raises:
            ValidationError: Unknown format
            JobNotFoundError: Job does not exist
            ArtifactNotFoundError: Job has no finished model in that format
            ArtifactFetchError: Upstream download failed
        """
        model_format = normalize_model_format(model_format)
        try:
            parsed_id = UUID(str(job_id))
        except ValueError:
            raise JobNotFoundError(str(job_id)) from None

        job = await job_crud.get_by_id(self.db, parsed_id)
        if job is None:
            raise JobNotFoundError(str(job_id))

        url = (job.model_urls or {}).get(model_format)
        if job.mesh_status != MeshStatus.COMPLETED or not url:
            raise ArtifactNotFoundError(
                f"Model not available in {model_format} format", job_id=str(job_id)
            )

        request = self.http_client.build_request("GET", url)
        try:
            response = await self.http_client.send(request, stream=True)
        except httpx.HTTPError as e:
            logger.warning(
                "Model artifact fetch failed",
                extra={"job_id": str(job_id), "format": model_format, "error": str(e)},
            )
            raise ArtifactFetchError("Failed to fetch model") from e

        if response.is_error:
            await response.aclose()
            logger.warning(
                "Model artifact upstream error",
                extra={
                    "job_id": str(job_id),
                    "format": model_format,
                    "status_code": response.status_code,
                },
            )
            raise ArtifactFetchError("Failed to fetch model", status_code=response.status_code)

        return ModelArtifactStream(
            response=response,
            model_format=model_format,
            content_type=MODEL_CONTENT_TYPES[model_format],
        )
