"""
Mesh service client.

Async HTTP client for the image-to-3D task API: create a task from an image
URL, read task status.

Dependencies: httpx, pydantic
System role: Phase 2 external service boundary
"""

import logging

import httpx
from pydantic import ValidationError as PydanticValidationError

from gofigure.boundary.providers.schemas import MeshTaskSnapshot
from gofigure.core.exceptions import MeshServiceError

logger = logging.getLogger(__name__)


class MeshClient:
    """Client for the mesh generation task API."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize mesh client.

        Args:
            base_url: Task collection URL (POST creates, GET /{id} reads)
            api_key: Bearer API key
            timeout: Per-request timeout in seconds
            http_client: Pre-built client (tests inject a MockTransport here)
        """
        self._base_url = base_url.rstrip("/")
        self._http = http_client or httpx.AsyncClient(timeout=timeout)
        self._headers = {"Authorization": f"Bearer {api_key}"}

    async def create_task(self, image_url: str) -> str:
        """
        Create a mesh generation task.

        Args:
            image_url: Publicly resolvable URL of the figurine image

        Returns:
            str: External task ID

        Raises:
            MeshServiceError: On transport failure, non-2xx response, or a
                response without a task ID
        """
        try:
            response = await self._http.post(
                self._base_url,
                json={"image_url": image_url},
                headers=self._headers,
            )
        except httpx.HTTPError as e:
            raise MeshServiceError(f"Failed to create mesh task: {e}") from e

        if response.is_error:
            raise MeshServiceError(
                f"Failed to create mesh task: {response.text}",
                status_code=response.status_code,
            )

        try:
            task_id = response.json().get("result")
        except (ValueError, AttributeError):
            task_id = None
        if not task_id:
            raise MeshServiceError("Failed to create mesh task: no task id in response")

        logger.info(f"Created mesh task {task_id}")
        return str(task_id)

    async def get_task(self, task_id: str) -> MeshTaskSnapshot:
        """
        Read the current status of a mesh task.

        Args:
            task_id: External task ID

        Returns:
            MeshTaskSnapshot: Validated status payload

        Raises:
            MeshServiceError: On transport failure, non-2xx response, or a
                payload that does not validate (including unknown statuses)
        """
        try:
            response = await self._http.get(
                f"{self._base_url}/{task_id}",
                headers=self._headers,
            )
        except httpx.HTTPError as e:
            raise MeshServiceError(f"Failed to get mesh task status: {e}") from e

        if response.is_error:
            raise MeshServiceError(
                f"Failed to get mesh task status: {response.text}",
                status_code=response.status_code,
            )

        try:
            return MeshTaskSnapshot.model_validate(response.json())
        except (PydanticValidationError, ValueError) as e:
            raise MeshServiceError(f"Malformed mesh task status for {task_id}: {e}") from e

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._http.aclose()

    async def __aenter__(self) -> "MeshClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
