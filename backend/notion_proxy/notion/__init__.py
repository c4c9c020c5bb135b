# backend/notion_proxy/notion/__init__.py

"""
Notion プロキシ用モジュール群。

主な責務:
- 呼び出し規約（databases / data_sources）をリクエスト毎に決定する
- データベースを全件取得する
- 画像を持たないページに子ブロックの画像を補完する
- ハイライトページの画像一覧をラベル付きで抽出する
"""
