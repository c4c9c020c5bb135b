# backend/notion_proxy/notion/config.py

"""
Notion プロキシに必要な設定値をまとめるモジュール。

トークンと DB ID は呼び出し元からリクエスト毎に渡されるため、
ここで扱うのは API バージョン・タイムアウト・上限値などの運用パラメータのみ。
すべて任意項目で、未設定の場合は既定値を使う。
"""

from dataclasses import dataclass
from functools import lru_cache

from notion_proxy.utils.config import get_env, get_env_float, get_env_int

DEFAULT_API_BASE_URL = "https://api.notion.com/v1"
LEGACY_API_VERSION = "2022-06-28"
CURRENT_API_VERSION = "2025-09-03"


@dataclass(frozen=True)
class NotionProxyConfig:
    """Notion プロキシ用の設定値コンテナ。"""

    api_base_url: str = DEFAULT_API_BASE_URL
    legacy_api_version: str = LEGACY_API_VERSION
    api_version: str = CURRENT_API_VERSION

    # 1 回の HTTP 呼び出しごとのタイムアウト（秒）
    default_timeout_seconds: float = 10.0
    probe_timeout_seconds: float = 4.0
    query_timeout_seconds: float = 8.0
    blocks_timeout_seconds: float = 3.0

    max_query_pages: int = 100
    default_page_size: int = 50
    default_blocks_limit: int = 12
    enrichment_block_page_size: int = 20
    highlights_block_page_size: int = 100

    cors_allow_origin: str = "*"
    log_level: str = "INFO"


@lru_cache()
def get_notion_config() -> NotionProxyConfig:
    """
    環境変数から Notion プロキシ設定を読み込む。

    任意:
      - NOTION_API_BASE_URL               (デフォルト: https://api.notion.com/v1)
      - NOTION_LEGACY_API_VERSION         (デフォルト: 2022-06-28)
      - NOTION_API_VERSION                (デフォルト: 2025-09-03)
      - NOTION_DEFAULT_TIMEOUT_SECONDS    (デフォルト: 10)
      - NOTION_PROBE_TIMEOUT_SECONDS      (デフォルト: 4)
      - NOTION_QUERY_TIMEOUT_SECONDS      (デフォルト: 8)
      - NOTION_BLOCKS_TIMEOUT_SECONDS     (デフォルト: 3)
      - NOTION_MAX_QUERY_PAGES            (デフォルト: 100)
      - NOTION_DEFAULT_PAGE_SIZE          (デフォルト: 50)
      - NOTION_DEFAULT_BLOCKS_LIMIT       (デフォルト: 12)
      - NOTION_ENRICHMENT_BLOCK_PAGE_SIZE (デフォルト: 20)
      - NOTION_HIGHLIGHTS_BLOCK_PAGE_SIZE (デフォルト: 100)
      - CORS_ALLOW_ORIGIN                 (デフォルト: *)
      - LOG_LEVEL                         (デフォルト: INFO)
    """
    api_base_url = get_env(
        "NOTION_API_BASE_URL",
        default=DEFAULT_API_BASE_URL,
        required=False,
    )

    return NotionProxyConfig(
        api_base_url=api_base_url.rstrip("/"),
        legacy_api_version=get_env(
            "NOTION_LEGACY_API_VERSION",
            default=LEGACY_API_VERSION,
            required=False,
        ),
        api_version=get_env(
            "NOTION_API_VERSION",
            default=CURRENT_API_VERSION,
            required=False,
        ),
        default_timeout_seconds=get_env_float("NOTION_DEFAULT_TIMEOUT_SECONDS", 10.0),
        probe_timeout_seconds=get_env_float("NOTION_PROBE_TIMEOUT_SECONDS", 4.0),
        query_timeout_seconds=get_env_float("NOTION_QUERY_TIMEOUT_SECONDS", 8.0),
        blocks_timeout_seconds=get_env_float("NOTION_BLOCKS_TIMEOUT_SECONDS", 3.0),
        max_query_pages=get_env_int("NOTION_MAX_QUERY_PAGES", 100),
        default_page_size=get_env_int("NOTION_DEFAULT_PAGE_SIZE", 50),
        default_blocks_limit=get_env_int("NOTION_DEFAULT_BLOCKS_LIMIT", 12),
        enrichment_block_page_size=get_env_int("NOTION_ENRICHMENT_BLOCK_PAGE_SIZE", 20),
        highlights_block_page_size=get_env_int("NOTION_HIGHLIGHTS_BLOCK_PAGE_SIZE", 100),
        cors_allow_origin=get_env("CORS_ALLOW_ORIGIN", default="*", required=False),
        log_level=get_env("LOG_LEVEL", default="INFO", required=False),
    )
