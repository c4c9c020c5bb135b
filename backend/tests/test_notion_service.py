# backend/tests/test_notion_service.py

import pytest

from conftest import image_block, make_page, request_body
from notion_proxy.notion.client import NotionAPIError
from notion_proxy.notion.schemas import NotionQueryRequest
from notion_proxy.notion.service import NotionProxyService


def _request(**overrides):
    body = {"token": "secret", "dbId": "db-1"}
    body.update(overrides)
    return NotionQueryRequest.model_validate(body)


def _legacy_database(fake_notion, items):
    # プローブは失敗させて旧規約に落とす
    fake_notion.json(
        "GET", "/databases/db-1", {"message": "Invalid request URL."}, status_code=400
    )
    fake_notion.json(
        "POST",
        "/databases/db-1/query",
        {"results": items, "has_more": False, "next_cursor": None},
    )


@pytest.mark.asyncio
async def test_plain_query_returns_results_without_enrichment(fake_notion, config):
    items = [make_page("a", "One"), make_page("b", "Two")]
    _legacy_database(fake_notion, items)
    service = NotionProxyService(config=config, transport=fake_notion.transport)

    page_set = await service.fetch_page_set(_request())
    body = page_set.to_response_body()

    assert body == {"results": items}
    assert "_highlights" not in body
    assert all("_imageBlocks" not in item for item in body["results"])
    # プローブ 1 回 + クエリ 1 回のみ
    assert len(fake_notion.calls) == 2
    assert request_body(fake_notion.calls_to("POST", "/databases/db-1/query")[0]) == {
        "page_size": 50
    }


@pytest.mark.asyncio
async def test_data_source_convention_is_used_for_every_call(fake_notion, config):
    items = [make_page("a", "Highlights"), make_page("b", "Plain")]
    fake_notion.json("GET", "/databases/db-1", {"data_sources": [{"id": "ds-9"}]})
    fake_notion.json(
        "PATCH", "/data_sources/ds-9/query", {"results": items, "has_more": False}
    )
    fake_notion.json(
        "GET", "/blocks/a/children", {"results": [image_block("https://example.com/h.jpg")]}
    )
    fake_notion.json(
        "GET", "/blocks/b/children", {"results": [image_block("https://example.com/b.jpg")]}
    )
    service = NotionProxyService(config=config, transport=fake_notion.transport)

    page_set = await service.fetch_page_set(
        _request(fetchBlocks=True, fetchHighlights=True, pageSize=10)
    )

    assert fake_notion.calls_to("POST", "/databases/db-1/query") == []
    assert request_body(fake_notion.calls_to("PATCH", "/data_sources/ds-9/query")[0]) == {
        "page_size": 10
    }
    assert {c.headers["Notion-Version"] for c in fake_notion.calls} == {"2025-09-03"}
    body = page_set.to_response_body()
    assert body["_highlights"] == [{"url": "https://example.com/h.jpg", "label": "h"}]


@pytest.mark.asyncio
async def test_enrichment_and_highlights_assembled_in_original_order(fake_notion, config):
    items = [
        make_page("covered", "Cover", cover={"type": "external", "external": {"url": "c"}}),
        make_page("plain", "Plain"),
        make_page("broken", "Broken"),
    ]
    _legacy_database(fake_notion, items)
    fake_notion.json(
        "GET",
        "/blocks/plain/children",
        {"results": [image_block("https://example.com/p.jpg", caption="Pic")]},
    )
    fake_notion.json(
        "GET", "/blocks/broken/children", {"message": "boom"}, status_code=500
    )
    service = NotionProxyService(config=config, transport=fake_notion.transport)

    page_set = await service.fetch_page_set(_request(fetchBlocks=True, fetchHighlights=True))
    body = page_set.to_response_body()

    assert [r["id"] for r in body["results"]] == ["covered", "plain", "broken"]
    assert "_imageBlocks" not in body["results"][0]
    assert body["results"][1]["_imageBlocks"] == [
        {"url": "https://example.com/p.jpg", "name": "Pic"}
    ]
    assert body["results"][2]["_imageBlocks"] == []
    # 該当ページ無しは null
    assert body["_highlights"] is None
    # 上流のアイテムは変更しない
    assert "_imageBlocks" not in items[1]


@pytest.mark.asyncio
async def test_blocks_limit_from_request(fake_notion, config):
    items = [make_page(f"p{i}") for i in range(4)]
    _legacy_database(fake_notion, items)
    for i in range(4):
        fake_notion.json("GET", f"/blocks/p{i}/children", {"results": []})
    service = NotionProxyService(config=config, transport=fake_notion.transport)

    page_set = await service.fetch_page_set(_request(fetchBlocks=True, blocksLimit=1))
    body = page_set.to_response_body()

    assert [("_imageBlocks" in r) for r in body["results"]] == [True, False, False, False]


@pytest.mark.asyncio
async def test_query_failure_propagates(fake_notion, config):
    fake_notion.json("GET", "/databases/db-1", {"data_sources": []})
    fake_notion.json(
        "POST",
        "/databases/db-1/query",
        {"message": "API token is invalid."},
        status_code=401,
    )
    service = NotionProxyService(config=config, transport=fake_notion.transport)

    with pytest.raises(NotionAPIError) as excinfo:
        await service.fetch_page_set(_request(fetchBlocks=True))

    assert str(excinfo.value) == "API token is invalid."
