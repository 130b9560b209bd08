"""
Mesh service configuration.

Settings for the external image-to-3D task API (Meshy-style).

Dependencies: pydantic_settings
System role: Phase 2 external service configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MeshServiceSettings(BaseSettings):
    """Mesh generation API configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MESH_",
        case_sensitive=False,
        extra="ignore",
    )

    base_url: str = Field(
        default="https://api.meshy.ai/openapi/v1/image-to-3d",
        description="Image-to-3D task endpoint",
    )
    api_key: str = Field(default="", description="Bearer API key")
    request_timeout: float = Field(default=30.0, description="HTTP timeout per request in seconds")
    artifact_timeout: float = Field(
        default=120.0,
        description="HTTP timeout when relaying model artifacts",
    )
