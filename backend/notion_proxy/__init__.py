# backend/notion_proxy/__init__.py
"""
Notion gallery proxy backend package.

This package contains:
- main: FastAPI application entrypoint
- notion: Notion database query / image enrichment / highlights modules
- utils: env var and logging helpers
"""
