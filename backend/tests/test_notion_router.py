# backend/tests/test_notion_router.py

from unittest.mock import patch

from fastapi.testclient import TestClient

from conftest import make_page
from notion_proxy.main import create_app
from notion_proxy.notion.client import NotionAPIError
from notion_proxy.notion.router import get_notion_service
from notion_proxy.notion.service import NotionProxyService, PageSet


def create_test_client(service=None) -> TestClient:
    app = create_app()
    if service is not None:
        app.dependency_overrides[get_notion_service] = lambda: service
    return TestClient(app)


def test_health():
    client = create_test_client()

    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_preflight_returns_empty_200_with_cors_headers():
    client = create_test_client()

    resp = client.options("/notion/query")

    assert resp.status_code == 200
    assert resp.content == b""
    assert resp.headers["access-control-allow-origin"] == "*"
    assert "POST" in resp.headers["access-control-allow-methods"]


def test_query_success_end_to_end(fake_notion, config):
    items = [make_page("a", "One")]
    fake_notion.json("GET", "/databases/db-1", {"data_sources": []})
    fake_notion.json("POST", "/databases/db-1/query", {"results": items, "has_more": False})
    client = create_test_client(
        NotionProxyService(config=config, transport=fake_notion.transport)
    )

    resp = client.post("/notion/query", json={"token": "secret", "dbId": "db-1"})

    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"
    assert resp.json() == {"results": items}


def test_query_includes_null_highlights_when_requested():
    # NotionProxyService.fetch_page_set をモックしてハイライト未検出ケースをシミュレート
    client = create_test_client()

    with patch(
        "notion_proxy.notion.service.NotionProxyService.fetch_page_set",
        return_value=PageSet(items=[], highlights=None, highlights_requested=True),
    ):
        resp = client.post(
            "/notion/query",
            json={"token": "secret", "dbId": "db-1", "fetchHighlights": True},
        )

    assert resp.status_code == 200
    assert resp.json() == {"results": [], "_highlights": None}


def test_query_upstream_error_returns_500_with_message():
    client = create_test_client()

    with patch(
        "notion_proxy.notion.service.NotionProxyService.fetch_page_set",
        side_effect=NotionAPIError(404, "Could not find database with ID: db-1."),
    ):
        resp = client.post("/notion/query", json={"token": "secret", "dbId": "db-1"})

    assert resp.status_code == 500
    assert resp.json() == {"message": "Could not find database with ID: db-1."}
    assert resp.headers["access-control-allow-origin"] == "*"


def test_query_invalid_body_returns_400():
    client = create_test_client()

    resp = client.post("/notion/query", json={"token": "secret"})

    assert resp.status_code == 400
    assert "dbId" in resp.json()["message"]
    assert resp.headers["access-control-allow-origin"] == "*"


def test_query_non_json_body_returns_400():
    client = create_test_client()

    resp = client.post(
        "/notion/query",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert resp.status_code == 400
    assert resp.headers["access-control-allow-origin"] == "*"


def test_cors_origin_is_configurable(monkeypatch):
    monkeypatch.setenv("CORS_ALLOW_ORIGIN", "https://gallery.example.com")
    client = create_test_client()

    resp = client.options("/notion/query")

    assert resp.headers["access-control-allow-origin"] == "https://gallery.example.com"


def test_framework_errors_also_carry_cors_headers():
    client = create_test_client()

    not_allowed = client.get("/notion/query")
    not_found = client.post("/notion/unknown", json={})

    assert not_allowed.status_code == 405
    assert not_allowed.headers["access-control-allow-origin"] == "*"
    assert "message" in not_allowed.json()
    assert not_found.status_code == 404
    assert not_found.headers["access-control-allow-origin"] == "*"
