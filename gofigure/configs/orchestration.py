"""
Job orchestration configuration.

Tunables for recovery diagnostics, progress estimation and the anonymous
session cookie.

Dependencies: pydantic_settings
System role: Orchestrator configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class OrchestrationSettings(BaseSettings):
    """Orchestrator and session configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ORCHESTRATION_",
        case_sensitive=False,
        extra="ignore",
    )

    stuck_threshold_minutes: int = Field(
        default=5,
        description="Age after which a processing job is reported as stuck",
    )
    transform_nominal_duration_seconds: int = Field(
        default=60,
        description="Nominal transform duration used for display-only progress estimation",
    )
    session_cookie_name: str = Field(default="sessionId", description="Anonymous session cookie")
    session_cookie_max_age: int = Field(
        default=60 * 60 * 24 * 365,
        description="Session cookie max age in seconds (1 year)",
    )
