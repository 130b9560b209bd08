"""
Test suite for the model artifact relay endpoint.

System role: Verification of same-origin model streaming
"""

import uuid
from unittest.mock import AsyncMock

import httpx
import pytest
from fastapi.testclient import TestClient

from gofigure.api.deps import get_artifact_service
from gofigure.api.main import create_app
from gofigure.application.services.artifact_service import ModelArtifactStream
from gofigure.core.exceptions import (
    ArtifactFetchError,
    ArtifactNotFoundError,
    JobNotFoundError,
    ValidationError,
)


@pytest.fixture
def client():
    app = create_app()
    return TestClient(app)


@pytest.fixture
def mock_artifact_service():
    return AsyncMock()


@pytest.fixture(autouse=True)
def override_service(client, mock_artifact_service):
    client.app.dependency_overrides[get_artifact_service] = lambda: mock_artifact_service
    yield
    client.app.dependency_overrides.clear()


def _stream(model_format: str, content_type: str, body: bytes) -> ModelArtifactStream:
    return ModelArtifactStream(
        response=httpx.Response(200, content=body),
        model_format=model_format,
        content_type=content_type,
    )


def test_get_model_should_stream_glb_by_default(client, mock_artifact_service):
    job_id = str(uuid.uuid4())
    mock_artifact_service.open_model.return_value = _stream("glb", "model/gltf-binary", b"glTF-bytes")

    response = client.get(f"/model/{job_id}")

    assert response.status_code == 200
    assert response.content == b"glTF-bytes"
    assert response.headers["content-type"] == "model/gltf-binary"
    assert response.headers["content-disposition"] == 'inline; filename="model.glb"'
    assert response.headers["cache-control"] == "public, max-age=86400"
    mock_artifact_service.open_model.assert_awaited_once_with(job_id, "glb")


def test_get_model_should_pass_requested_format(client, mock_artifact_service):
    mock_artifact_service.open_model.return_value = _stream("usdz", "model/vnd.usdz+zip", b"usdz")

    response = client.get("/model/abc?format=usdz")

    assert response.status_code == 200
    assert response.headers["content-type"] == "model/vnd.usdz+zip"
    mock_artifact_service.open_model.assert_awaited_once_with("abc", "usdz")


@pytest.mark.parametrize(
    ("error", "status_code"),
    [
        (ValidationError("Invalid format: stl"), 400),
        (JobNotFoundError("abc"), 404),
        (ArtifactNotFoundError("Model not available in glb format"), 404),
        (ArtifactFetchError("Failed to fetch model", status_code=403), 502),
    ],
)
def test_get_model_errors(client, mock_artifact_service, error, status_code):
    mock_artifact_service.open_model.side_effect = error

    response = client.get("/model/abc")

    assert response.status_code == status_code
