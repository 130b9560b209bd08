"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, UUIDMixin, TimestampMixin: Model building blocks
  - get_engine(), get_async_engine(), get_async_db(), worker_session(): Connections
  - JobModel, JobStatus, MeshStatus, ModelFormat: Job record and its enums
  - job_crud: CRUD singleton

Dependencies: sqlalchemy, gofigure.configs
System role: Durable job record store
"""

from gofigure.boundary.db.base import Base, TimestampMixin, UUIDMixin
from gofigure.boundary.db.connection import (
    get_async_db,
    get_async_engine,
    get_async_session_factory,
    get_engine,
    worker_session,
)
from gofigure.boundary.db.models import JobModel, JobStatus, MeshStatus, ModelFormat
from gofigure.boundary.db.CRUD import BaseCRUD, JobCRUD, job_crud

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "get_async_db",
    "get_async_engine",
    "get_async_session_factory",
    "get_engine",
    "worker_session",
    "JobModel",
    "JobStatus",
    "MeshStatus",
    "ModelFormat",
    "BaseCRUD",
    "JobCRUD",
    "job_crud",
]
