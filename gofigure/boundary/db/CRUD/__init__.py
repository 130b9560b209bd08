"""
CRUD operations for database models.

Usage:
    from gofigure.boundary.db.CRUD import job_crud

    job = await job_crud.get_by_id(db, job_id)
"""

from gofigure.boundary.db.CRUD.base_crud import BaseCRUD
from gofigure.boundary.db.CRUD.job_crud import JobCRUD, job_crud, validate_model_urls

__all__ = [
    "BaseCRUD",
    "JobCRUD",
    "job_crud",
    "validate_model_urls",
]
