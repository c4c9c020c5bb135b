# backend/notion_proxy/notion/router.py

import logging
from functools import lru_cache
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError

from .config import get_notion_config
from .schemas import ErrorResponse, NotionQueryRequest
from .service import NotionProxyService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notion", tags=["notion"])


def cors_headers() -> Dict[str, str]:
    """
    すべての応答（成功・エラー・プリフライト）に付ける CORS ヘッダー。
    """
    return {
        "Access-Control-Allow-Origin": get_notion_config().cors_allow_origin,
        "Access-Control-Allow-Headers": "Content-Type",
        "Access-Control-Allow-Methods": "POST, OPTIONS",
    }


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message).model_dump(),
        headers=cors_headers(),
    )


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "Invalid request body: " + "; ".join(parts)


@lru_cache()
def get_notion_service() -> NotionProxyService:
    """
    NotionProxyService のシングルトンインスタンスを取得する。

    サービス自体は状態を持たない（リクエスト毎に NotionClient を作る）。
    """
    return NotionProxyService()


@router.options("/query", summary="CORS プリフライト")
def preflight_notion_query() -> Response:
    return Response(status_code=status.HTTP_200_OK, headers=cors_headers())


@router.post(
    "/query",
    summary="Notion データベースを全件取得（画像補完・ハイライト抽出つき）",
    description=(
        "呼び出し元のトークンで Notion データベースを全件取得し、"
        "必要に応じて各ページの画像ブロックとハイライト画像一覧を付加して返す。"
    ),
)
async def query_notion_database(
    request: Request,
    service: NotionProxyService = Depends(get_notion_service),
) -> JSONResponse:
    """
    Notion プロキシのメインエンドポイント。

    - リクエストボディ不正 → 400 Bad Request
    - 全件取得の失敗・想定外の内部エラー → 500（message に上流のメッセージ）
    - 画像補完・ハイライト抽出の失敗は 200 のまま空結果として返す
    """
    try:
        payload: Any = await request.json()
    except ValueError:
        return _error(status.HTTP_400_BAD_REQUEST, "Request body must be valid JSON.")

    try:
        body = NotionQueryRequest.model_validate(payload)
    except ValidationError as exc:
        return _error(status.HTTP_400_BAD_REQUEST, _validation_message(exc))

    try:
        page_set = await service.fetch_page_set(body)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Notion query failed for database %s", body.database_id)
        return _error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            str(exc) or "Internal server error while querying Notion.",
        )

    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=page_set.to_response_body(),
        headers=cors_headers(),
    )
