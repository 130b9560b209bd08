"""
Application services.

Dependencies: gofigure.boundary, gofigure.core
System role: Use-case orchestration behind the HTTP API
"""

from gofigure.application.services.artifact_service import ArtifactService, ModelArtifactStream
from gofigure.application.services.job_service import JobService

__all__ = ["ArtifactService", "JobService", "ModelArtifactStream"]
