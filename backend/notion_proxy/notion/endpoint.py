# backend/notion_proxy/notion/endpoint.py

"""
Notion API の呼び出し規約（旧: databases/query / 新: data_sources/query）を
リクエスト毎に 1 回だけ決定するモジュール。

決定結果は NegotiatedEndpoint として以降のすべての呼び出し
（一覧取得・ブロック取得・ハイライト取得）に引き回す。
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .client import NotionClient, NotionClientError
from .config import NotionProxyConfig

logger = logging.getLogger(__name__)


class ApiConvention(str, Enum):
    LEGACY = "legacy"
    DATA_SOURCE = "data_source"


def build_headers(token: str, api_version: str) -> Dict[str, str]:
    """
    Notion API 呼び出しに必要なヘッダーを構築。
    """
    return {
        "Authorization": f"Bearer {token}",
        "Notion-Version": api_version,
        "Content-Type": "application/json",
    }


@dataclass(frozen=True)
class NegotiatedEndpoint:
    """
    1 リクエスト分の確定済み呼び出し先。

    headers は不変のタプルで保持し、使う側には header_dict() でコピーを渡す。
    """

    query_url: str
    method: str
    headers: Tuple[Tuple[str, str], ...]
    api_base_url: str
    convention: ApiConvention

    @classmethod
    def create(
        cls,
        *,
        query_url: str,
        method: str,
        headers: Dict[str, str],
        api_base_url: str,
        convention: ApiConvention,
    ) -> "NegotiatedEndpoint":
        return cls(
            query_url=query_url,
            method=method,
            headers=tuple(headers.items()),
            api_base_url=api_base_url,
            convention=convention,
        )

    def header_dict(self) -> Dict[str, str]:
        return dict(self.headers)

    @property
    def api_version(self) -> str:
        return self.header_dict().get("Notion-Version", "")

    def block_children_url(self, block_id: str) -> str:
        return f"{self.api_base_url}/blocks/{block_id}/children"


def legacy_endpoint(
    token: str, database_id: str, config: NotionProxyConfig
) -> NegotiatedEndpoint:
    return NegotiatedEndpoint.create(
        query_url=f"{config.api_base_url}/databases/{database_id}/query",
        method="POST",
        headers=build_headers(token, config.legacy_api_version),
        api_base_url=config.api_base_url,
        convention=ApiConvention.LEGACY,
    )


def data_source_endpoint(
    token: str, data_source_id: str, config: NotionProxyConfig
) -> NegotiatedEndpoint:
    return NegotiatedEndpoint.create(
        query_url=f"{config.api_base_url}/data_sources/{data_source_id}/query",
        method="PATCH",
        headers=build_headers(token, config.api_version),
        api_base_url=config.api_base_url,
        convention=ApiConvention.DATA_SOURCE,
    )


def _first_data_source_id(database: Dict[str, Any]) -> Optional[str]:
    """GET /databases/{id} の応答から最初の data source ID を取り出す。"""
    data_sources = database.get("data_sources")
    if not isinstance(data_sources, list) or not data_sources:
        return None

    first = data_sources[0]
    if not isinstance(first, dict):
        return None

    source_id = first.get("id")
    if isinstance(source_id, str) and source_id:
        return source_id
    return None


async def negotiate_endpoint(
    client: NotionClient,
    token: str,
    database_id: str,
    config: NotionProxyConfig,
) -> NegotiatedEndpoint:
    """
    新しい呼び出し規約（data source 経由）を先に試し、使えなければ旧規約にフォールバックする。

    - 新規約: GET /databases/{id} で data_sources[0].id を解決し、
      PATCH /data_sources/{id}/query を使う
    - 旧規約: POST /databases/{id}/query を直接使う

    この関数は例外を投げない。プローブの失敗は通常運転として扱う。
    """
    probe_headers = build_headers(token, config.api_version)

    try:
        response = await client.request(
            "GET",
            f"{config.api_base_url}/databases/{database_id}",
            headers=probe_headers,
            timeout=config.probe_timeout_seconds,
        )
    except NotionClientError as exc:
        logger.info("Data source probe failed, using legacy convention: %s", exc)
        return legacy_endpoint(token, database_id, config)

    data_source_id = _first_data_source_id(response.data)
    if data_source_id is None:
        logger.info("Database exposes no data sources, using legacy convention.")
        return legacy_endpoint(token, database_id, config)

    logger.info("Using data source convention (data_source_id=%s)", data_source_id)
    return data_source_endpoint(token, data_source_id, config)
