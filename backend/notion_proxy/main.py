# backend/notion_proxy/main.py

"""
バックエンドアプリケーションのエントリーポイント。

主な責務:
- /notion/query エンドポイント（POST / OPTIONS）を公開する
- /health エンドポイントを公開する
- フレームワーク側で生成されるエラー応答にも CORS ヘッダーを付ける
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from notion_proxy.notion.config import get_notion_config
from notion_proxy.notion.router import cors_headers
from notion_proxy.notion.router import router as notion_router
from notion_proxy.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def _register_exception_handlers(app: FastAPI) -> None:
    """
    ルート外で発生したエラー（404 / 405 / 想定外例外）も {message} 形式＋CORS ヘッダーで返す。
    """

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        headers = dict(exc.headers or {})
        headers.update(cors_headers())
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=headers,
        )

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Internal server error."},
            headers=cors_headers(),
        )


def create_app() -> FastAPI:
    """
    FastAPI アプリケーションファクトリ。

    - Notion プロキシエンドポイント (/notion/query)
    - ヘルスチェックエンドポイント (/health)
    """
    setup_logging(get_notion_config().log_level)

    app = FastAPI(title="Notion Gallery Proxy")

    # ルーター登録
    app.include_router(notion_router)
    _register_exception_handlers(app)

    @app.get("/health", tags=["health"])
    def health_check() -> dict:
        """
        簡易ヘルスチェックエンドポイント。
        モニタリングや動作確認用。
        """
        return {"status": "ok"}

    return app


# uvicorn 実行時のエントリーポイント
app = create_app()
