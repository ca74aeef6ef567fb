import logging
import mimetypes
from typing import Any, Dict, Optional

import httpx

from comfy_video.models.request import ComfyUIConnection

logger = logging.getLogger(__name__)

# Deadline for a single call; the poll loop has its own attempt budget on top
DEFAULT_REQUEST_TIMEOUT = 300.0


class ComfyUIClient:
    """
    Thin async wrapper around the ComfyUI HTTP API.

    Every call is a single request with its own deadline. Nothing is retried
    here; callers decide what a failure means.
    """

    def __init__(
        self,
        connection: ComfyUIConnection,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.connection = connection
        self.base_url = connection.api_url
        self._client = httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=transport)

    async def __aenter__(self) -> "ComfyUIClient":
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def aclose(self):
        await self._client.aclose()

    def headers(self, json_body: bool = True) -> Dict[str, str]:
        headers = {}
        if json_body:
            headers["Content-Type"] = "application/json"
        if self.connection.api_key:
            headers["Authorization"] = f"Bearer {self.connection.api_key}"
        return headers

    def url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def check_health(self) -> httpx.Response:
        """Fail fast if the backend is unreachable or unhealthy; any 2xx will do."""
        response = await self._client.get(self.url("/system_stats"), headers=self.headers())
        response.raise_for_status()
        return response

    async def upload_image(self, content: bytes, filename: str) -> httpx.Response:
        """
        POST a file to the backend's input folder, replacing any file with the same name.

        The raw response is returned so the caller can decide what counts as a valid handle.
        """
        content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
        return await self._client.post(
            self.url("/upload/image"),
            headers=self.headers(json_body=False),
            files={"image": (filename, content, content_type)},
            data={"subfolder": "", "overwrite": "true"},
        )

    async def queue_prompt(self, prompt: Dict[str, Any]) -> httpx.Response:
        return await self._client.post(
            self.url("/prompt"),
            headers=self.headers(),
            json={"prompt": prompt},
        )

    async def get_history(self, prompt_id: str) -> Dict[str, Any]:
        response = await self._client.get(self.url(f"/history/{prompt_id}"), headers=self.headers())
        response.raise_for_status()
        return response.json()

    async def get_bytes(self, url: str, with_auth: bool = True) -> httpx.Response:
        """Raw binary GET. External URLs are fetched without backend credentials."""
        headers = self.headers(json_body=False) if with_auth else {}
        return await self._client.get(url, headers=headers)
