"""
S3 artifact storage configuration.

Settings for the bucket holding uploaded source photos and transformed
figurine images, plus presigned URL generation.

Dependencies: pydantic_settings
System role: Artifact storage configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Settings for S3 artifact bucket operations."""

    model_config = SettingsConfigDict(
        env_prefix="S3_STORAGE_",
        case_sensitive=False,
        extra="ignore",
    )

    bucket: str = Field(
        default="gofigure-dev-artifacts",
        description="S3 bucket for source and result images",
    )
    region: str = Field(
        default="eu-central-1",
        description="AWS region for S3 bucket",
    )
    presigned_url_expiry: int = Field(
        default=3600,
        description="Presigned URL expiry in seconds (default 1 hour)",
    )
