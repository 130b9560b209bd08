"""
Transform service client.

Async HTTP client for the prediction API that turns a photo into a
figurine image. Callers see a single request/response: the client waits on
the prediction until it finishes and returns the result asset URL.

Dependencies: httpx, pydantic, gofigure.configs
System role: Phase 1 external service boundary
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable

import httpx
from pydantic import ValidationError as PydanticValidationError

from gofigure.boundary.providers.schemas import TransformPrediction
from gofigure.configs.transform_service import TransformServiceSettings
from gofigure.core.exceptions import TransformServiceError

logger = logging.getLogger(__name__)


class TransformClient:
    """Client for the figurine image transform service."""

    def __init__(
        self,
        settings: TransformServiceSettings,
        http_client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize transform client.

        Args:
            settings: Transform service configuration (endpoint, model, prompt)
            http_client: Pre-built client (tests inject a MockTransport here)
            sleep: Awaitable used between prediction re-fetches
        """
        self._settings = settings
        self._http = http_client or httpx.AsyncClient(timeout=settings.request_timeout)
        self._sleep = sleep
        self._headers = {"Authorization": f"Bearer {settings.api_token}"}

    def build_input(self, image_url: str) -> dict:
        """Fixed model input for a source image URL."""
        return {
            "prompt": self._settings.prompt,
            "resolution": self._settings.resolution,
            "image_input": [image_url],
            "aspect_ratio": self._settings.aspect_ratio,
            "output_format": self._settings.output_format,
            "safety_filter_level": self._settings.safety_filter_level,
        }

    async def transform(self, image_url: str) -> str:
        """
        Run the figurine transform on an image.

        Args:
            image_url: Resolvable URL of the source photo

        Returns:
            str: URL of the generated figurine image

        Raises:
            TransformServiceError: On transport failure, error response, failed
                or canceled prediction, missing output, or exceeding the wait ceiling
        """
        url = f"{self._settings.base_url.rstrip('/')}/models/{self._settings.model}/predictions"
        prediction = await self._request(
            "POST",
            url,
            json={"input": self.build_input(image_url)},
            headers={**self._headers, "Prefer": "wait"},
        )

        deadline = time.monotonic() + self._settings.max_wait_seconds
        while not prediction.is_terminal:
            if time.monotonic() >= deadline:
                raise TransformServiceError(
                    f"Transform did not finish within {int(self._settings.max_wait_seconds)}s"
                )
            await self._sleep(self._settings.poll_interval_seconds)
            prediction = await self._request("GET", self._prediction_url(prediction), headers=self._headers)

        if prediction.status != "succeeded":
            raise TransformServiceError(prediction.error or f"Transform {prediction.status}")

        output_url = prediction.output_url
        if not output_url:
            raise TransformServiceError("Transform returned no output")

        logger.info(f"Transform prediction {prediction.id} succeeded")
        return output_url

    async def download(self, url: str) -> bytes:
        """
        Download a generated asset.

        Raises:
            TransformServiceError: If the asset cannot be fetched
        """
        try:
            response = await self._http.get(url, follow_redirects=True)
        except httpx.HTTPError as e:
            raise TransformServiceError(f"Failed to download result image: {e}") from e
        if response.is_error:
            raise TransformServiceError(
                "Failed to download result image",
                status_code=response.status_code,
            )
        return response.content

    def _prediction_url(self, prediction: TransformPrediction) -> str:
        if prediction.urls.get("get"):
            return prediction.urls["get"]
        if not prediction.id:
            raise TransformServiceError("Transform prediction has no id to follow")
        return f"{self._settings.base_url.rstrip('/')}/predictions/{prediction.id}"

    async def _request(self, method: str, url: str, **kwargs) -> TransformPrediction:
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise TransformServiceError(f"Transform request failed: {e}") from e

        if response.is_error:
            # Raw body is surfaced verbatim into the job's error field.
            raise TransformServiceError(response.text, status_code=response.status_code)

        try:
            return TransformPrediction.model_validate(response.json())
        except (PydanticValidationError, ValueError) as e:
            raise TransformServiceError(f"Malformed transform response: {e}") from e

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._http.aclose()

    async def __aenter__(self) -> "TransformClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
