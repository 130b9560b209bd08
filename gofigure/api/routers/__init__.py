"""API routers."""

from .health import router as health_router
from .jobs import router as jobs_router
from .models import router as models_router

__all__ = [
    "health_router",
    "jobs_router",
    "models_router",
]
