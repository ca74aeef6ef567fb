"""
Test configuration and fixtures: an in-memory ComfyUI backend served through httpx.MockTransport.
"""
import json
import re
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from comfy_video.config.settings import Settings
from comfy_video.models.request import ComfyUIConnection
from comfy_video.services.comfyui_client import ComfyUIClient

API_URL = "http://comfy.test"


class FakeComfyUI:
    """Records every request and answers like a minimal ComfyUI server."""

    def __init__(self):
        self.calls: List[httpx.Request] = []
        self.uploads: Dict[str, bytes] = {}
        self.upload_status = 200
        self.upload_body: Optional[Any] = None
        self.prompt_id = "prompt-123"
        self.prompt_status = 200
        self.prompt_body: Optional[Any] = None
        self.submitted: List[Dict[str, Any]] = []
        self.history: List[Dict[str, Any]] = []
        self.files: Dict[str, bytes] = {}
        self.external: Dict[str, bytes] = {}

    def paths(self, method: Optional[str] = None) -> List[str]:
        return [r.url.path for r in self.calls if method is None or r.method == method]

    def count(self, path_prefix: str) -> int:
        return sum(1 for path in self.paths() if path.startswith(path_prefix))

    def complete(self, outputs: Dict[str, Any], status_str: str = "success", after: int = 0, messages=None):
        """Queue ``after`` pending answers followed by a completed record."""
        pending = {self.prompt_id: {"status": {"completed": False, "status_str": "running"}, "outputs": {}}}
        self.history = [pending] * after + [{
            self.prompt_id: {
                "status": {"completed": True, "status_str": status_str, "messages": messages or []},
                "outputs": outputs,
            }
        }]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        url = str(request.url)
        if url in self.external:
            return httpx.Response(200, content=self.external[url])

        path = request.url.path
        if path == "/system_stats":
            return httpx.Response(200, json={"system": {"os": "posix"}, "devices": []})

        if path == "/upload/image":
            filename = re.search(rb'filename="([^"]+)"', request.content).group(1).decode()
            self.uploads[filename] = request.content
            body = self.upload_body if self.upload_body is not None else {
                "name": filename, "subfolder": "", "type": "input"
            }
            if isinstance(body, (bytes, str)):
                return httpx.Response(self.upload_status, content=body)
            return httpx.Response(self.upload_status, json=body)

        if path == "/prompt":
            self.submitted.append(json.loads(request.content))
            body = self.prompt_body if self.prompt_body is not None else {
                "prompt_id": self.prompt_id, "number": 1, "node_errors": {}
            }
            return httpx.Response(self.prompt_status, json=body)

        if path.startswith("/history/"):
            if not self.history:
                return httpx.Response(200, json={})
            answer = self.history.pop(0) if len(self.history) > 1 else self.history[0]
            return httpx.Response(200, json=answer)

        if path == "/view":
            filename = parse_qs(urlparse(url).query).get("filename", [""])[0]
            if filename not in self.files:
                return httpx.Response(404, text="Not Found")
            return httpx.Response(200, content=self.files[filename])

        return httpx.Response(404)


class RecordingSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float):
        self.delays.append(delay)


@pytest.fixture
def backend():
    return FakeComfyUI()


@pytest.fixture
def transport(backend):
    return httpx.MockTransport(backend.handler)


@pytest.fixture
def connection():
    return ComfyUIConnection(api_url=API_URL)


@pytest.fixture
def make_client(connection, transport):
    """Factory so each asyncio.run gets a client bound to its own event loop."""
    def factory(conn: Optional[ComfyUIConnection] = None) -> ComfyUIClient:
        return ComfyUIClient(conn or connection, transport=transport)
    return factory


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def settings():
    return Settings(
        COMFYUI_API_URL=API_URL,
        COMFYUI_API_KEY=None,
        API_KEY=None,
        POLL_WARMUP_SECONDS=5,
        POLL_INTERVAL_SECONDS=1,
    )


def video_outputs(*files, node_id: str = "9", key: str = "images") -> Dict[str, Any]:
    """Build a history ``outputs`` mapping; files are (filename, type) pairs."""
    return {node_id: {key: [{"filename": name, "subfolder": "", "type": kind} for name, kind in files]}}
