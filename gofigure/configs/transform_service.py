"""
Transform service configuration.

Settings for the external image-to-figurine generation API
(Replicate-style predictions endpoint).

Dependencies: pydantic_settings
System role: Phase 1 external service configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

FIGURINE_PROMPT = (
    "Based on the passed picture create a 2d figurine in a style of funko pop model "
    "with white background that I will use for doing 2d -> 3d ai-based conversion. "
    "Make sure its full body and not just a head or a torso. It's ok if it's a few "
    "people too! Add a flat circular base so it is easier to 3d print"
)


class TransformServiceSettings(BaseSettings):
    """Transform (image generation) API configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TRANSFORM_",
        case_sensitive=False,
        extra="ignore",
    )

    base_url: str = Field(
        default="https://api.replicate.com/v1",
        description="Prediction API base URL",
    )
    api_token: str = Field(default="", description="Bearer token for the prediction API")
    model: str = Field(default="google/nano-banana-pro", description="Model identifier")
    prompt: str = Field(default=FIGURINE_PROMPT, description="Fixed figurine prompt")
    resolution: str = Field(default="2K", description="Output resolution")
    aspect_ratio: str = Field(default="1:1", description="Output aspect ratio")
    output_format: str = Field(default="png", description="Output image format")
    safety_filter_level: str = Field(
        default="block_only_high",
        description="Safety filter level passed to the model",
    )

    request_timeout: float = Field(default=90.0, description="HTTP timeout per request in seconds")
    max_wait_seconds: float = Field(
        default=600.0,
        description="Ceiling for waiting on a single prediction to finish",
    )
    poll_interval_seconds: float = Field(
        default=2.0,
        description="Delay between prediction re-fetches while it is still running",
    )
