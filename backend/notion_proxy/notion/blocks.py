# backend/notion_proxy/notion/blocks.py

"""
Notion のページ / ブロック JSON から必要な値だけを取り出すパーサ群。

上流の JSON は型が緩いので、想定外の形や欠けたフィールドは
例外にせず「無いもの」として扱う。
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Literal, Optional
from urllib.parse import unquote, urlsplit

from .schemas import HighlightEntry, ImageRef

DEFAULT_HIGHLIGHT_LABEL = "Story"

_SEPARATORS = re.compile(r"[-_+\s]+")
# アップロード時に付くタイムスタンプ / ID 風の長い数字列
_TRAILING_NUMERIC_ID = re.compile(r"\s*\d{5,}$")

ImageSource = Literal["external", "file"]


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def plain_text(rich_text: Any) -> str:
    """
    Notion の rich_text 配列（title / caption など）を連結したプレーンテキストを返す。
    """
    if not isinstance(rich_text, list):
        return ""
    return "".join(
        t["plain_text"]
        for t in rich_text
        if isinstance(t, dict) and isinstance(t.get("plain_text"), str)
    )


def page_title(item: Dict[str, Any]) -> str:
    """title 型プロパティの連結テキスト。無ければ空文字。"""
    properties = _as_dict(item.get("properties"))
    for prop in properties.values():
        prop = _as_dict(prop)
        if prop.get("type") == "title":
            return plain_text(prop.get("title"))
    return ""


def has_existing_image(item: Dict[str, Any]) -> bool:
    """
    カバー画像か、中身のある files 型プロパティを既に持っているか。
    """
    if item.get("cover"):
        return True

    properties = _as_dict(item.get("properties"))
    for prop in properties.values():
        prop = _as_dict(prop)
        if prop.get("type") == "files":
            files = prop.get("files")
            if isinstance(files, list) and files:
                return True
    return False


@dataclass(frozen=True)
class ImageBlock:
    """
    image ブロック 1 件。

    source が "external" なら image.external.url、
    "file"（Notion ホスト）なら image.file.url から url を取る。
    """

    block_id: str
    source: ImageSource
    url: str
    caption: str


def parse_image_block(block: Any) -> Optional[ImageBlock]:
    """
    image 型ブロックを ImageBlock に変換する。

    画像以外のブロック・url を解決できないブロックは None。
    """
    block = _as_dict(block)
    if block.get("type") != "image":
        return None

    image = _as_dict(block.get("image"))
    source = image.get("type")
    if source not in ("external", "file"):
        # type が欠けている古い応答でも、どちらかのキーがあれば拾う
        source = "external" if "external" in image else "file"

    url = _as_dict(image.get(source)).get("url")
    if not isinstance(url, str) or not url:
        return None

    return ImageBlock(
        block_id=str(block.get("id") or ""),
        source=source,
        url=url,
        caption=plain_text(image.get("caption")),
    )


def parse_image_blocks(blocks: Iterable[Any]) -> List[ImageBlock]:
    parsed = (parse_image_block(b) for b in blocks)
    return [b for b in parsed if b is not None]


def derive_label(url: str) -> str:
    """
    画像 URL のファイル名から表示用ラベルを作る。

    例: ".../My-Photo-123456789.jpg" -> "My Photo"

    - パス末尾のセグメントを percent デコード
    - 拡張子を除去
    - 区切り文字（- _ + 空白）をスペースへ
    - 末尾の 5 桁以上の数字列を除去
    作れなかった場合は "Story"。
    """
    try:
        segment = urlsplit(url).path.rstrip("/").rsplit("/", 1)[-1]
        name = unquote(segment)
        stem, dot, _ext = name.rpartition(".")
        if dot:
            name = stem
        label = _SEPARATORS.sub(" ", name)
        label = _TRAILING_NUMERIC_ID.sub("", label).strip()
    except (AttributeError, TypeError, ValueError):
        return DEFAULT_HIGHLIGHT_LABEL

    return label or DEFAULT_HIGHLIGHT_LABEL


def image_refs(blocks: Iterable[Any]) -> List[ImageRef]:
    """子ブロック一覧から画像参照（url + キャプション）を抽出する。"""
    return [
        ImageRef(url=block.url, name=block.caption)
        for block in parse_image_blocks(blocks)
    ]


def highlight_entries(blocks: Iterable[Any]) -> List[HighlightEntry]:
    """
    子ブロック一覧からハイライト用の画像とラベルを抽出する。

    キャプションが空でなければそのまま使い、無ければ URL から作る。
    """
    entries: List[HighlightEntry] = []
    for block in parse_image_blocks(blocks):
        label = block.caption if block.caption.strip() else derive_label(block.url)
        entries.append(HighlightEntry(url=block.url, label=label))
    return entries
