# backend/notion_proxy/notion/pagination.py

"""
データベース（data source）クエリの全ページ取得。

has_more と next_cursor を辿って全件を 1 本のリストに積み上げる。
途中のページで 1 回でも失敗した場合は、部分結果を返さずに例外をそのまま伝播させる。
"""

import logging
from typing import Any, Dict, List, Optional, Set

from .client import NotionClient, NotionClientError
from .endpoint import NegotiatedEndpoint

logger = logging.getLogger(__name__)

# Notion API の page_size 上限
MAX_NOTION_PAGE_SIZE = 100


class NotionPaginationLimitError(NotionClientError):
    """ページ数の安全上限を超えても has_more が終わらない場合の例外。"""

    def __init__(self, max_pages: int) -> None:
        super().__init__(
            f"Notion query did not finish within {max_pages} pages; aborting."
        )
        self.max_pages = max_pages


def clamp_page_size(page_size: int) -> int:
    return max(1, min(int(page_size), MAX_NOTION_PAGE_SIZE))


def _next_cursor(data: Dict[str, Any]) -> Optional[str]:
    """
    続きがある場合のみカーソルを返す。

    has_more が真でもカーソルが無い（壊れた応答）場合はそこで打ち切る。
    """
    if not data.get("has_more"):
        return None
    cursor = data.get("next_cursor")
    if isinstance(cursor, str) and cursor:
        return cursor
    logger.warning("Notion reported has_more without next_cursor; stopping pagination.")
    return None


async def collect_all_pages(
    client: NotionClient,
    endpoint: NegotiatedEndpoint,
    *,
    page_size: int,
    timeout: float,
    max_pages: int,
) -> List[Dict[str, Any]]:
    """
    クエリを繰り返し呼び出し、全ページ分の results を上流の順序のまま返す。

    - 各呼び出しには個別に timeout を掛ける（全体の所要時間ではない）
    - 同じ id のアイテムが再度現れた場合は最初のものだけを残す
    - max_pages 回呼んでも終わらない場合は NotionPaginationLimitError

    :raises NotionClientError: いずれかのページ取得に失敗した場合
    """
    items: List[Dict[str, Any]] = []
    seen_ids: Set[str] = set()
    body: Dict[str, Any] = {"page_size": clamp_page_size(page_size)}
    pages_fetched = 0

    while True:
        if pages_fetched >= max_pages:
            raise NotionPaginationLimitError(max_pages)

        response = await client.request(
            endpoint.method,
            endpoint.query_url,
            headers=endpoint.header_dict(),
            json=dict(body),
            timeout=timeout,
        )
        pages_fetched += 1

        batch = response.data.get("results")
        if not isinstance(batch, list):
            batch = []

        for item in batch:
            if not isinstance(item, dict):
                continue
            item_id = item.get("id")
            if isinstance(item_id, str):
                if item_id in seen_ids:
                    continue
                seen_ids.add(item_id)
            items.append(item)

        cursor = _next_cursor(response.data)
        if cursor is None:
            break
        body["start_cursor"] = cursor

    logger.info(
        "Collected %d items in %d page(s) (%s)",
        len(items),
        pages_fetched,
        endpoint.convention.value,
    )
    return items
