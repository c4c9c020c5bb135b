# backend/notion_proxy/notion/schemas.py

"""
プロキシの入出力で扱うスキーマ定義。

Notion のページ（Item）自体は上流定義のまま素通しするため、ここでは
リクエストボディと、画像抽出結果の小さなモデルだけを定義する。
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class NotionQueryRequest(BaseModel):
    """
    /notion/query のリクエストボディ。

    フロントエンドからは camelCase で送られてくる。
    None の項目はサーバ側設定（NotionProxyConfig）の既定値で補う。
    """

    model_config = ConfigDict(populate_by_name=True)

    token: str = Field(..., description="Notion インテグレーショントークン（検証・保存はしない）")
    database_id: str = Field(..., alias="dbId", description="クエリ対象のデータベース ID")
    fetch_blocks: bool = Field(
        False,
        alias="fetchBlocks",
        description="画像を持たないページの子ブロックから画像を補完するか",
    )
    fetch_highlights: bool = Field(
        False,
        alias="fetchHighlights",
        description="ハイライトページの画像一覧を抽出するか",
    )
    highlights_page_name: Optional[str] = Field(
        None,
        alias="highlightsPageName",
        description="ハイライトページを探すタイトル断片（既定: highlights）",
    )
    blocks_limit: Optional[int] = Field(
        None,
        alias="blocksLimit",
        ge=0,
        description="子ブロックを取得するページ数の上限",
    )
    page_size: Optional[int] = Field(
        None,
        alias="pageSize",
        ge=1,
        description="1 回のクエリで要求する件数（Notion 上限は 100）",
    )


class ImageRef(BaseModel):
    """ページ本文から抽出した画像 1 件。url の無いものは作らない。"""

    url: str
    name: str = ""


class HighlightEntry(BaseModel):
    """ハイライトページの画像 1 件と表示用ラベル。"""

    url: str
    label: str


class ErrorResponse(BaseModel):
    message: str
