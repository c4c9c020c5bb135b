# backend/notion_proxy/notion/service.py

"""
NotionClient と各処理（規約決定・全件取得・画像補完・ハイライト抽出）をつなぐサービス層。

1 リクエストの流れ:
  1. 呼び出し規約を 1 回だけ決定する
  2. 全ページを順番に取得する（失敗したらリクエスト全体を失敗させる）
  3. 画像補完とハイライト抽出を並列に実行する（どちらも失敗は吸収する）
  4. 応答用の構造に組み立てる
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from .client import NotionClient
from .config import NotionProxyConfig, get_notion_config
from .endpoint import NegotiatedEndpoint, negotiate_endpoint
from .enrichment import EnrichmentResult, enrich_with_images
from .highlights import extract_highlights
from .pagination import collect_all_pages
from .schemas import HighlightEntry, NotionQueryRequest

logger = logging.getLogger(__name__)


@dataclass
class PageSet:
    """
    1 回のクエリ結果。

    items は上流から受け取ったまま変更しない。
    補完結果は enrichment に添字で保持し、応答組み立て時にだけ合成する。
    """

    items: List[Dict[str, Any]]
    enrichment: Dict[int, EnrichmentResult] = field(default_factory=dict)
    highlights: Optional[List[HighlightEntry]] = None
    highlights_requested: bool = False

    def to_response_body(self) -> Dict[str, Any]:
        """
        {"results": [...], "_highlights": [...] | null} 形式の dict を返す。

        _highlights はハイライト抽出を要求した場合のみ含める。
        """
        results: List[Dict[str, Any]] = []
        for index, item in enumerate(self.items):
            enriched = self.enrichment.get(index)
            if enriched is None:
                results.append(item)
                continue
            results.append(
                {
                    **item,
                    "_imageBlocks": [ref.model_dump() for ref in enriched.images],
                }
            )

        body: Dict[str, Any] = {"results": results}
        if self.highlights_requested:
            body["_highlights"] = (
                None
                if self.highlights is None
                else [entry.model_dump() for entry in self.highlights]
            )
        return body


class NotionProxyService:
    """
    プロキシ 1 呼び出し分の処理をまとめるサービス。

    transport はテスト用（httpx.MockTransport など）。
    """

    def __init__(
        self,
        config: Optional[NotionProxyConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config = config or get_notion_config()
        self._transport = transport

    @property
    def config(self) -> NotionProxyConfig:
        return self._config

    async def fetch_page_set(self, request: NotionQueryRequest) -> PageSet:
        """
        データベースを全件取得し、要求に応じて画像補完・ハイライト抽出を行う。

        :raises NotionClientError: 全件取得に失敗した場合
        """
        config = self._config
        page_size = request.page_size or config.default_page_size
        blocks_limit = (
            request.blocks_limit
            if request.blocks_limit is not None
            else config.default_blocks_limit
        )

        async with NotionClient(
            default_timeout=config.default_timeout_seconds,
            transport=self._transport,
        ) as client:
            endpoint = await negotiate_endpoint(
                client, request.token, request.database_id, config
            )
            items = await collect_all_pages(
                client,
                endpoint,
                page_size=page_size,
                timeout=config.query_timeout_seconds,
                max_pages=config.max_query_pages,
            )

            page_set = PageSet(
                items=items,
                highlights_requested=request.fetch_highlights,
            )
            await self._run_enrichment(client, endpoint, request, page_set, blocks_limit)

        return page_set

    async def _run_enrichment(
        self,
        client: NotionClient,
        endpoint: NegotiatedEndpoint,
        request: NotionQueryRequest,
        page_set: PageSet,
        blocks_limit: int,
    ) -> None:
        """画像補完とハイライト抽出を（要求されたものだけ）並列に実行する。"""
        config = self._config

        async def _images() -> None:
            page_set.enrichment = await enrich_with_images(
                client,
                endpoint,
                page_set.items,
                limit=blocks_limit,
                timeout=config.blocks_timeout_seconds,
                page_size=config.enrichment_block_page_size,
            )

        async def _highlights() -> None:
            page_set.highlights = await extract_highlights(
                client,
                endpoint,
                page_set.items,
                page_name=request.highlights_page_name,
                timeout=config.default_timeout_seconds,
                page_size=config.highlights_block_page_size,
            )

        tasks = []
        if request.fetch_blocks:
            tasks.append(_images())
        if request.fetch_highlights:
            tasks.append(_highlights())

        if tasks:
            await asyncio.gather(*tasks)
