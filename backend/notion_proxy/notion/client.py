# backend/notion_proxy/notion/client.py

"""
Notion API との通信を担当するクライアントモジュール。

1 回の呼び出しごとにハードタイムアウトを掛け、失敗を
タイムアウト / 接続エラー / HTTP エラー の 3 種類の例外に正規化する。
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

import httpx

logger = logging.getLogger(__name__)


class NotionClientError(RuntimeError):
    """Notion クライアント全般の例外。"""


class NotionTimeoutError(NotionClientError):
    """タイムアウト内に Notion から応答が無かった場合の例外。"""

    def __init__(self, method: str, url: str, timeout: float) -> None:
        super().__init__(f"Notion API timed out after {timeout:g}s: {method} {url}")
        self.timeout = timeout


class NotionNetworkError(NotionClientError):
    """接続レベルで失敗した場合の例外。"""


class NotionAPIError(NotionClientError):
    """
    Notion が 2xx 以外を返した場合の例外。

    メッセージは Notion が返した message、無ければ "HTTP {status}"。
    """

    def __init__(self, status_code: int, message: Optional[str] = None) -> None:
        super().__init__(message or f"HTTP {status_code}")
        self.status_code = status_code


@dataclass
class NotionResponse:
    """パース済みのレスポンス本体とステータスコード。"""

    status_code: int
    data: Dict[str, Any] = field(default_factory=dict)


def _parse_json_object(response: httpx.Response) -> Dict[str, Any]:
    """
    レスポンス本体を JSON オブジェクトとして読む。

    JSON でない・オブジェクトでない場合は空 dict として扱う。
    """
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _error_message(data: Mapping[str, Any]) -> Optional[str]:
    message = data.get("message")
    if isinstance(message, str) and message.strip():
        return message
    return None


class NotionClient:
    """
    Notion API の薄い非同期ラッパークライアント。

    - 1 リクエスト（プロキシへの 1 呼び出し）につき 1 インスタンスを想定
    - async with で httpx.AsyncClient のライフサイクルを管理する
    - テストでは transport に httpx.MockTransport を渡して差し替える
    """

    def __init__(
        self,
        *,
        default_timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._default_timeout = default_timeout
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "NotionClient":
        # タイムアウトは request() 側の wait_for で掛けるので httpx 側は無効化する
        self._http = httpx.AsyncClient(timeout=None, transport=self._transport)
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def request(
        self,
        method: str,
        url: str,
        *,
        headers: Mapping[str, str],
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> NotionResponse:
        """
        Notion API を 1 回呼び出す。

        :raises NotionTimeoutError: timeout 秒以内に応答が無かった場合（呼び出しはキャンセルされる）
        :raises NotionNetworkError: 接続エラー、またはリクエストを組み立てられなかった場合
        :raises NotionAPIError: 2xx 以外が返った場合
        :return: NotionResponse（本体は常に dict）
        """
        if self._http is None:
            raise NotionClientError("NotionClient must be used inside 'async with'.")

        limit = timeout if timeout is not None else self._default_timeout

        try:
            response = await asyncio.wait_for(
                self._http.request(
                    method,
                    url,
                    headers=dict(headers),
                    json=json,
                    params=params,
                ),
                timeout=limit,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise NotionTimeoutError(method, url, limit) from exc
        except httpx.RequestError as exc:
            raise NotionNetworkError(f"Failed to call Notion API: {exc}") from exc
        except (httpx.InvalidURL, UnicodeError) as exc:
            # 送信前のリクエスト組み立て（URL・ヘッダーのエンコード）で失敗した場合
            raise NotionNetworkError(f"Failed to build Notion API request: {exc}") from exc

        data = _parse_json_object(response)

        if response.status_code // 100 != 2:
            logger.debug(
                "Notion API error: %s %s -> %s", method, url, response.status_code
            )
            raise NotionAPIError(response.status_code, _error_message(data))

        return NotionResponse(status_code=response.status_code, data=data)
