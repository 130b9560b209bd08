"""
Payload schemas for the external generation services.

Dependencies: pydantic
System role: Validated views of third-party API responses
"""

from pydantic import BaseModel, ConfigDict, Field

from gofigure.core.mesh_status import ExternalMeshStatus


class MeshTaskError(BaseModel):
    """Error detail attached to a failed mesh task."""

    model_config = ConfigDict(extra="ignore")

    message: str | None = None


class MeshTaskSnapshot(BaseModel):
    """One status read of a mesh task."""

    model_config = ConfigDict(extra="ignore", protected_namespaces=())

    id: str | None = None
    status: ExternalMeshStatus
    progress: int = Field(default=0, ge=0, le=100)
    thumbnail_url: str | None = None
    model_urls: dict[str, str | None] | None = None
    task_error: MeshTaskError | None = None

    @property
    def error_message(self) -> str | None:
        """Upstream error message, if any."""
        if self.task_error is None:
            return None
        return self.task_error.message or None


class TransformPrediction(BaseModel):
    """A prediction resource returned by the transform service."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    status: str
    output: str | list[str] | None = None
    error: str | None = None
    urls: dict[str, str] = Field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return self.status in ("succeeded", "failed", "canceled")

    @property
    def output_url(self) -> str | None:
        """First output asset URL, whether output is a single URL or a list."""
        if isinstance(self.output, list):
            return self.output[0] if self.output else None
        return self.output or None
