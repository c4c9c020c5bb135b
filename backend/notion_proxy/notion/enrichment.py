# backend/notion_proxy/notion/enrichment.py

"""
画像を持たないページに対して子ブロックを並列取得し、画像参照を補完する。

1 ページの失敗は空リストに置き換え、他のページや全体の応答には影響させない。
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from .blocks import has_existing_image, image_refs
from .client import NotionClient
from .endpoint import NegotiatedEndpoint
from .schemas import ImageRef

logger = logging.getLogger(__name__)


@dataclass
class EnrichmentResult:
    """
    1 ページ分の補完結果。

    失敗時も images は空リストで、error に理由を残す。
    """

    item_id: str
    images: List[ImageRef] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def fetch_block_children(
    client: NotionClient,
    endpoint: NegotiatedEndpoint,
    block_id: str,
    *,
    page_size: int,
    timeout: Optional[float] = None,
) -> List[Any]:
    """GET /blocks/{id}/children の results（1 ページ分のみ）を返す。"""
    response = await client.request(
        "GET",
        endpoint.block_children_url(block_id),
        headers=endpoint.header_dict(),
        params={"page_size": page_size},
        timeout=timeout,
    )
    results = response.data.get("results")
    return results if isinstance(results, list) else []


def select_enrichment_targets(items: Sequence[Dict[str, Any]], limit: int) -> List[int]:
    """
    補完対象となるアイテムの添字を、元の順序で最大 limit 件返す。

    カバー画像や files プロパティを既に持つものは対象外。
    """
    if limit <= 0:
        return []

    targets: List[int] = []
    for index, item in enumerate(items):
        if has_existing_image(item) or not item.get("id"):
            continue
        targets.append(index)
        if len(targets) >= limit:
            break
    return targets


async def _enrich_one(
    client: NotionClient,
    endpoint: NegotiatedEndpoint,
    item_id: str,
    *,
    timeout: float,
    page_size: int,
) -> EnrichmentResult:
    try:
        blocks = await fetch_block_children(
            client, endpoint, item_id, page_size=page_size, timeout=timeout
        )
        return EnrichmentResult(item_id=item_id, images=image_refs(blocks))
    except Exception as exc:  # noqa: BLE001
        # 1 件の失敗でファンアウト全体を止めない
        logger.warning("Image block fetch failed for %s: %s", item_id, exc)
        return EnrichmentResult(item_id=item_id, error=str(exc) or type(exc).__name__)


async def enrich_with_images(
    client: NotionClient,
    endpoint: NegotiatedEndpoint,
    items: Sequence[Dict[str, Any]],
    *,
    limit: int,
    timeout: float,
    page_size: int,
) -> Dict[int, EnrichmentResult]:
    """
    対象ページの子ブロックを並列に取得し、添字 -> EnrichmentResult の dict を返す。

    完了順ではなく元の添字で結果を紐付けるので、出力順は items と一致する。
    """
    targets = select_enrichment_targets(items, limit)
    if not targets:
        return {}

    results = await asyncio.gather(
        *(
            _enrich_one(
                client,
                endpoint,
                items[index]["id"],
                timeout=timeout,
                page_size=page_size,
            )
            for index in targets
        )
    )

    failed = sum(1 for r in results if not r.ok)
    logger.info(
        "Image enrichment finished: %d target(s), %d failed", len(targets), failed
    )
    return dict(zip(targets, results))
