"""
Model artifact relay endpoint.

Routes: GET /model/{job_id}?format=glb|fbx|obj|usdz

Dependencies: gofigure.application.services.artifact_service
System role: Same-origin 3D model download HTTP API
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from gofigure.api.deps import get_artifact_service
from gofigure.application.services.artifact_service import (
    DEFAULT_MODEL_FORMAT,
    ArtifactService,
)
from gofigure.core.exceptions import GoFigureException

from .router_utils import to_http_exception

router = APIRouter(prefix="/model", tags=["models"])


@router.get("/{job_id}")
async def get_model(
    job_id: str,
    model_format: str = Query(default=DEFAULT_MODEL_FORMAT, alias="format"),
    artifact_service: ArtifactService = Depends(get_artifact_service),
) -> StreamingResponse:
    """
    Stream a finished model through this origin.

    Raises:
        HTTPException(400): Unknown format
        HTTPException(404): Job or model missing
        HTTPException(502): Upstream download failed
    """
    try:
        artifact = await artifact_service.open_model(job_id, model_format)
    except GoFigureException as e:
        raise to_http_exception(e)

    return StreamingResponse(
        artifact.response.aiter_bytes(),
        media_type=artifact.content_type,
        headers=artifact.headers,
        background=BackgroundTask(artifact.aclose),
    )
