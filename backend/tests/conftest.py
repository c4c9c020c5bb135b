# backend/tests/conftest.py
"""
Pytest configuration for the Notion gallery proxy backend tests.

- Ensures that the project root (backend/) is added to sys.path
  so that `import notion_proxy.*` works without installing the package.
- Provides a fake Notion upstream built on httpx.MockTransport.
"""

import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest


def _ensure_project_root_in_sys_path() -> None:
    # This file is located at: backend/tests/conftest.py
    # parents[1] -> backend/
    project_root = Path(__file__).resolve().parents[1]
    project_root_str = str(project_root)

    if project_root_str not in sys.path:
        sys.path.insert(0, project_root_str)


_ensure_project_root_in_sys_path()

from notion_proxy.notion.config import NotionProxyConfig, get_notion_config  # noqa: E402

API = "https://api.notion.com/v1"


Handler = Callable[[httpx.Request], httpx.Response]


class FakeNotion:
    """
    Minimal stand-in for the Notion API.

    Routes are registered as (method, path) -> handler, and every request
    that reaches the transport is recorded in `calls` for assertions.
    """

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], Handler] = {}
        self.calls: List[httpx.Request] = []

    def on(self, method: str, path: str, handler: Handler) -> None:
        self.routes[(method, path)] = handler

    def json(self, method: str, path: str, body: Any, status_code: int = 200) -> None:
        self.on(method, path, lambda _req: httpx.Response(status_code, json=body))

    def calls_to(self, method: str, path: str) -> List[httpx.Request]:
        return [
            r for r in self.calls if r.method == method and r.url.path == f"/v1{path}"
        ]

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        path = request.url.path.removeprefix("/v1")
        handler = self.routes.get((request.method, path))
        if handler is None:
            return httpx.Response(
                404,
                json={"object": "error", "status": 404, "message": f"no route {path}"},
            )
        return handler(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


def request_body(request: httpx.Request) -> Dict[str, Any]:
    return json.loads(request.content.decode("utf-8")) if request.content else {}


def make_page(
    page_id: str,
    title: str = "",
    *,
    cover: Optional[Dict[str, Any]] = None,
    files: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    properties: Dict[str, Any] = {
        "Name": {"id": "title", "type": "title", "title": [{"plain_text": title}]},
    }
    if files is not None:
        properties["Photos"] = {"id": "abc", "type": "files", "files": files}
    return {"object": "page", "id": page_id, "cover": cover, "properties": properties}


def image_block(
    url: str,
    *,
    source: str = "file",
    caption: str = "",
    block_id: str = "blk",
) -> Dict[str, Any]:
    image: Dict[str, Any] = {"type": source, source: {"url": url}, "caption": []}
    if caption:
        image["caption"] = [{"plain_text": caption}]
    return {"object": "block", "id": block_id, "type": "image", "image": image}


@pytest.fixture
def fake_notion() -> FakeNotion:
    return FakeNotion()


@pytest.fixture
def config() -> NotionProxyConfig:
    return NotionProxyConfig()


@pytest.fixture(autouse=True)
def _clear_config_cache():
    get_notion_config.cache_clear()
    yield
    get_notion_config.cache_clear()
