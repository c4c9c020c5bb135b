# backend/notion_proxy/utils/logging.py

"""
ルートロガーの初期化ユーティリティ。

各モジュールは logging.getLogger(__name__) を使うだけにして、
ハンドラやフォーマットの設定はアプリ起動時にここで 1 回だけ行う。
"""

import logging
import sys
from typing import Optional

_HANDLER_NAME = "notion_proxy.console"


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """
    コンソール出力用のハンドラをルートロガーに登録する。

    - create_app() が複数回呼ばれても（テストなど）ハンドラは重複登録しない
    - 不明なレベル名が渡された場合は INFO にフォールバックする
    """
    level_name = (level or "INFO").upper()
    log_level = logging.getLevelName(level_name)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if not any(h.get_name() == _HANDLER_NAME for h in root_logger.handlers):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.set_name(_HANDLER_NAME)
        console_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        root_logger.addHandler(console_handler)

    logger = logging.getLogger(__name__)
    logger.debug("Logging initialized. level=%s", level_name)
    return logger
