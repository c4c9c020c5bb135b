# backend/notion_proxy/notion/highlights.py

"""
タイトルの部分一致で「ハイライト」ページを探し、その本文の画像にラベルを付けて返す。

戻り値の区別:
  - None : 該当ページが存在しない
  - []   : ページはあるが取得に失敗した / 画像が無い
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from .blocks import highlight_entries, page_title
from .client import NotionClient
from .endpoint import NegotiatedEndpoint
from .enrichment import fetch_block_children
from .schemas import HighlightEntry

logger = logging.getLogger(__name__)

DEFAULT_HIGHLIGHTS_PAGE_NAME = "highlights"


def normalize_fragment(page_name: Optional[str]) -> str:
    fragment = (page_name or "").strip().lower()
    return fragment or DEFAULT_HIGHLIGHTS_PAGE_NAME


def title_matches(title: str, fragment: str) -> bool:
    """
    大文字小文字を無視した双方向の部分一致。

    空タイトルは何にでも含まれてしまうので一致扱いにしない。
    """
    normalized = title.strip().lower()
    if not normalized:
        return False
    return fragment in normalized or normalized in fragment


def find_highlights_item(
    items: Sequence[Dict[str, Any]], page_name: Optional[str]
) -> Optional[Dict[str, Any]]:
    """最初に一致したアイテムを返す。無ければ None。"""
    fragment = normalize_fragment(page_name)
    for item in items:
        if title_matches(page_title(item), fragment):
            return item
    return None


async def extract_highlights(
    client: NotionClient,
    endpoint: NegotiatedEndpoint,
    items: Sequence[Dict[str, Any]],
    *,
    page_name: Optional[str],
    timeout: float,
    page_size: int,
) -> Optional[List[HighlightEntry]]:
    """
    ハイライトページを探して画像一覧を返す。

    - 該当ページ無し -> None
    - 取得失敗 -> []（例外は外に出さない）
    """
    item = find_highlights_item(items, page_name)
    if item is None:
        logger.info("No highlights page matched %r", normalize_fragment(page_name))
        return None

    if not item.get("id"):
        logger.warning("Highlights page has no id; returning empty list.")
        return []

    try:
        blocks = await fetch_block_children(
            client, endpoint, item["id"], page_size=page_size, timeout=timeout
        )
        entries = highlight_entries(blocks)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Highlights fetch failed for %s: %s", item["id"], exc)
        return []

    logger.info("Extracted %d highlight image(s) from %s", len(entries), item["id"])
    return entries
