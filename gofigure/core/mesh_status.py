"""
External mesh task status and its mapping onto the job's mesh status.

Dependencies: gofigure.boundary.db.models
System role: Exhaustive translation table between the mesh service and the job record
"""

import enum
from types import MappingProxyType

from gofigure.boundary.db.models.job_model import MeshStatus


class ExternalMeshStatus(str, enum.Enum):
    """Task states reported by the mesh service."""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELED = "CANCELED"


MESH_STATUS_MAP = MappingProxyType({
    ExternalMeshStatus.PENDING: MeshStatus.PENDING,
    ExternalMeshStatus.IN_PROGRESS: MeshStatus.PROCESSING,
    ExternalMeshStatus.SUCCEEDED: MeshStatus.COMPLETED,
    ExternalMeshStatus.FAILED: MeshStatus.FAILED,
    ExternalMeshStatus.CANCELED: MeshStatus.FAILED,
})

# Used when the service reports a terminal failure without a message.
FAILURE_FALLBACK_MESSAGES = MappingProxyType({
    ExternalMeshStatus.FAILED: "Mesh generation failed",
    ExternalMeshStatus.CANCELED: "Mesh generation was canceled",
})


def map_mesh_status(external: ExternalMeshStatus) -> MeshStatus:
    """Translate an external task status into the job's mesh status."""
    return MESH_STATUS_MAP[external]


def failure_message(external: ExternalMeshStatus, upstream_message: str | None) -> str:
    """Message recorded on the job for a FAILED or CANCELED task."""
    if upstream_message:
        return upstream_message
    return FAILURE_FALLBACK_MESSAGES.get(external, "Mesh generation failed")
