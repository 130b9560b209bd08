"""
Database models package.

Exports:
  - JobModel: Submission ORM model
  - JobStatus, MeshStatus, ModelFormat: Enums for phase state and artifacts

Dependencies: sqlalchemy, gofigure.boundary.db.base
System role: Database model definitions for domain entities
"""

from gofigure.boundary.db.models.job_model import (
    MODEL_FORMATS,
    JobModel,
    JobStatus,
    MeshStatus,
    ModelFormat,
)

__all__ = [
    "MODEL_FORMATS",
    "JobModel",
    "JobStatus",
    "MeshStatus",
    "ModelFormat",
]
