"""API-specific dependencies."""

# Re-export common dependencies
from .dependencies import (
    get_artifact_http_client,
    get_artifact_service,
    get_job_scheduler,
    get_job_service,
    get_mesh_client,
    get_service_cache,
    get_settings_dependency,
    get_storage_client,
)

__all__ = [
    "get_artifact_http_client",
    "get_artifact_service",
    "get_job_scheduler",
    "get_job_service",
    "get_mesh_client",
    "get_service_cache",
    "get_settings_dependency",
    "get_storage_client",
]
