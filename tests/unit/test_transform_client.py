"""
Test suite for TransformClient.

System role: Verification of the image transform HTTP boundary
"""

import json
from unittest.mock import AsyncMock

import httpx
import pytest

from gofigure.boundary.providers.transform_client import TransformClient
from gofigure.configs.transform_service import FIGURINE_PROMPT, TransformServiceSettings
from gofigure.core.exceptions import TransformServiceError


@pytest.fixture
def transform_settings() -> TransformServiceSettings:
    return TransformServiceSettings(
        base_url="https://predict.example/v1",
        api_token="tok",
        poll_interval_seconds=0,
    )


def _client(settings, handler, sleep=None) -> TransformClient:
    return TransformClient(
        settings,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        sleep=sleep or AsyncMock(),
    )


class TestTransform:
    """Test suite for TransformClient.transform."""

    async def test_synchronous_success_should_return_output_url(self, transform_settings) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["prefer"] = request.headers.get("Prefer")
            seen["input"] = json.loads(request.content)["input"]
            return httpx.Response(
                201,
                json={"id": "p1", "status": "succeeded", "output": "https://out/f.png"},
            )

        async with _client(transform_settings, handler) as client:
            url = await client.transform("https://src/photo.png")

        assert url == "https://out/f.png"
        assert seen["path"] == "/v1/models/google/nano-banana-pro/predictions"
        assert seen["prefer"] == "wait"
        assert seen["input"]["image_input"] == ["https://src/photo.png"]
        assert seen["input"]["prompt"] == FIGURINE_PROMPT
        assert seen["input"]["resolution"] == "2K"

    async def test_running_prediction_should_be_followed_until_done(
        self, transform_settings
    ) -> None:
        responses = iter([
            httpx.Response(
                201,
                json={
                    "id": "p1",
                    "status": "processing",
                    "urls": {"get": "https://predict.example/v1/predictions/p1"},
                },
            ),
            httpx.Response(200, json={"id": "p1", "status": "processing"}),
            httpx.Response(200, json={"id": "p1", "status": "succeeded", "output": ["https://out/a.png"]}),
        ])
        sleep = AsyncMock()

        async with _client(transform_settings, lambda request: next(responses), sleep) as client:
            url = await client.transform("https://src/photo.png")

        assert url == "https://out/a.png"
        assert sleep.await_count == 2

    async def test_failed_prediction_should_raise_with_upstream_error(
        self, transform_settings
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(201, json={"id": "p1", "status": "failed", "error": "NSFW content"})

        async with _client(transform_settings, handler) as client:
            with pytest.raises(TransformServiceError, match="NSFW content"):
                await client.transform("https://src/photo.png")

    async def test_error_response_body_should_be_raised_verbatim(self, transform_settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(422, text='{"detail":"bad input"}')

        async with _client(transform_settings, handler) as client:
            with pytest.raises(TransformServiceError) as exc_info:
                await client.transform("https://src/photo.png")

        assert str(exc_info.value) == '{"detail":"bad input"}'
        assert exc_info.value.status_code == 422

    async def test_missing_output_should_raise(self, transform_settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(201, json={"id": "p1", "status": "succeeded", "output": None})

        async with _client(transform_settings, handler) as client:
            with pytest.raises(TransformServiceError, match="no output"):
                await client.transform("https://src/photo.png")


class TestDownload:
    """Test suite for TransformClient.download."""

    async def test_download_should_return_bytes(self, transform_settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"png-bytes")

        async with _client(transform_settings, handler) as client:
            assert await client.download("https://out/f.png") == b"png-bytes"

    async def test_download_error_should_raise(self, transform_settings) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

        async with _client(transform_settings, handler) as client:
            with pytest.raises(TransformServiceError, match="Failed to download result image"):
                await client.download("https://out/f.png")
