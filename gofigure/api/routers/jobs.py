"""
Job API endpoints.

Routes: POST /jobs, GET /jobs, GET /jobs/stuck, GET /jobs/{id},
POST /jobs/{id}/mesh, POST /jobs/{id}/retry, POST /jobs/{id}/clone,
POST /jobs/claim

Dependencies: gofigure.application.services.job_service, gofigure.models
System role: Job HTTP API
"""

from fastapi import APIRouter, Depends, Header, Query, Request, Response, status

from gofigure.api.deps import get_job_service, get_settings_dependency
from gofigure.application.services.job_service import JobService
from gofigure.configs import Settings
from gofigure.core.exceptions import GoFigureException, ValidationError
from gofigure.models.job import (
    ClaimRequest,
    ClaimResponse,
    JobResponse,
    RetryRequest,
    StuckJobsResponse,
    SubmitJobRequest,
)

from .router_utils import resolve_session_id, set_session_cookie, to_http_exception

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post("", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
async def submit_job(
    body: SubmitJobRequest,
    request: Request,
    response: Response,
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    job_service: JobService = Depends(get_job_service),
    settings: Settings = Depends(get_settings_dependency),
) -> JobResponse:
    """
    Submit a photo for figurine generation.

    The photo is stored, a PENDING job is created and its transform is
    enqueued. The response returns immediately; poll GET /jobs/{id}.

    Raises:
        HTTPException(400): Invalid image payload
        HTTPException(502): Photo could not be stored
    """
    session_id = resolve_session_id(request, settings, body.session_id, create=True)
    try:
        job = await job_service.submit_job(
            body.image_base64,
            session_id=session_id,
            user_id=x_user_id,
        )
        set_session_cookie(response, settings, session_id)
        return await job_service.to_response(job)
    except GoFigureException as e:
        raise to_http_exception(e)


@router.get("", response_model=list[JobResponse])
async def list_jobs(
    request: Request,
    session_id: str | None = Query(default=None),
    user_id: str | None = Query(default=None),
    limit: int | None = Query(default=None, ge=1, le=200),
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    job_service: JobService = Depends(get_job_service),
    settings: Settings = Depends(get_settings_dependency),
) -> list[JobResponse]:
    """
    List jobs newest first, for a user or an anonymous session.

    Falls back to the X-User-Id header and then the session cookie.

    Raises:
        HTTPException(400): No owner could be determined
    """
    user_id = user_id or x_user_id
    session_id = resolve_session_id(request, settings, session_id)
    try:
        jobs = await job_service.list_jobs(session_id=session_id, user_id=user_id, limit=limit)
        return [await job_service.to_response(job) for job in jobs]
    except GoFigureException as e:
        raise to_http_exception(e)


@router.post("/claim", response_model=ClaimResponse)
async def claim_jobs(
    body: ClaimRequest,
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
    job_service: JobService = Depends(get_job_service),
) -> ClaimResponse:
    """
    Attach every unowned job of an anonymous session to a user.

    The X-User-Id header wins over a user_id in the body.
    """
    user_id = x_user_id or body.user_id
    if not user_id:
        raise to_http_exception(ValidationError("user_id is required", field="user_id"))
    try:
        claimed = await job_service.claim_jobs(body.session_id, user_id)
        return ClaimResponse(claimed=claimed)
    except GoFigureException as e:
        raise to_http_exception(e)


@router.get("/stuck", response_model=StuckJobsResponse)
async def list_stuck_jobs(
    threshold_minutes: int | None = Query(default=None, ge=0),
    job_service: JobService = Depends(get_job_service),
    settings: Settings = Depends(get_settings_dependency),
) -> StuckJobsResponse:
    """
    Diagnostic listing of jobs processing longer than the threshold.

    Nothing is modified; defaults to the configured threshold (5 minutes).
    """
    if threshold_minutes is None:
        threshold_minutes = settings.orchestration.stuck_threshold_minutes
    try:
        jobs = await job_service.find_stuck_jobs(threshold_minutes)
        return StuckJobsResponse(
            threshold_minutes=threshold_minutes,
            jobs=[await job_service.to_response(job) for job in jobs],
        )
    except GoFigureException as e:
        raise to_http_exception(e)


@router.get("/{job_id}", response_model=JobResponse)
async def get_job_status(
    job_id: str,
    job_service: JobService = Depends(get_job_service),
) -> JobResponse:
    """
    Get job status and progress for frontend polling.

    Frontend should poll this endpoint every 1-2 seconds while either phase
    is pending or processing.

    Example Response:
        {
            "id": "123e4567-e89b-12d3-a456-426614174000",
            "status": "completed",
            "result_image_url": "https://...",
            "estimated_progress": 100,
            "mesh_status": "processing",
            "mesh_progress": 42,
            "model_urls": null,
            ...
        }

    Raises:
        HTTPException(404): Job not found
    """
    try:
        job = await job_service.get_job(job_id)
        return await job_service.to_response(job)
    except GoFigureException as e:
        raise to_http_exception(e)


@router.post("/{job_id}/mesh", response_model=JobResponse, status_code=status.HTTP_202_ACCEPTED)
async def trigger_mesh(
    job_id: str,
    job_service: JobService = Depends(get_job_service),
) -> JobResponse:
    """
    Start 3D mesh generation from the transformed image.

    Idempotent: repeated calls return the job without starting a second run.
    A failure to create the mesh task is reported on the job (mesh_status
    failed), not as an HTTP error.

    Raises:
        HTTPException(404): Job not found
        HTTPException(409): Transformed image not ready
    """
    try:
        job = await job_service.trigger_mesh(job_id)
        return await job_service.to_response(job)
    except GoFigureException as e:
        raise to_http_exception(e)


@router.post("/{job_id}/retry", response_model=JobResponse)
async def retry_job(
    job_id: str,
    body: RetryRequest,
    job_service: JobService = Depends(get_job_service),
) -> JobResponse:
    """
    Reset phase1, phase2 (alias mesh) or both, and re-run the transform if reset.

    Raises:
        HTTPException(400): Unknown scope
        HTTPException(404): Job not found
    """
    try:
        job = await job_service.retry(job_id, body.scope)
        return await job_service.to_response(job)
    except GoFigureException as e:
        raise to_http_exception(e)


@router.post("/{job_id}/clone", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
async def clone_job(
    job_id: str,
    job_service: JobService = Depends(get_job_service),
) -> JobResponse:
    """
    Create a new job from an existing job's photo.

    Raises:
        HTTPException(404): Job not found
    """
    try:
        job = await job_service.clone_job(job_id)
        return await job_service.to_response(job)
    except GoFigureException as e:
        raise to_http_exception(e)
