"""External generation service clients (transform and mesh)."""

from gofigure.boundary.providers.mesh_client import MeshClient
from gofigure.boundary.providers.schemas import MeshTaskSnapshot, TransformPrediction
from gofigure.boundary.providers.transform_client import TransformClient

__all__ = [
    "MeshClient",
    "MeshTaskSnapshot",
    "TransformClient",
    "TransformPrediction",
]
