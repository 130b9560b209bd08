"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from gofigure.configs.base import BaseSettings
from gofigure.configs.celery_config import CelerySettings
from gofigure.configs.database import DatabaseSettings
from gofigure.configs.mesh_service import MeshServiceSettings
from gofigure.configs.orchestration import OrchestrationSettings
from gofigure.configs.storage import StorageSettings
from gofigure.configs.transform_service import TransformServiceSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    # Aggregated settings
    database: DatabaseSettings = DatabaseSettings()
    celery: CelerySettings = CelerySettings()
    storage: StorageSettings = StorageSettings()
    transform: TransformServiceSettings = TransformServiceSettings()
    mesh: MeshServiceSettings = MeshServiceSettings()
    orchestration: OrchestrationSettings = OrchestrationSettings()


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from gofigure.configs import get_settings
        settings = get_settings()
    """
    return Settings()
