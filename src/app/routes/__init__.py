"""
FastAPI Routes.

페이지 라우트 (HTML, HTMX fragment) + API 라우트 (감사 실행)
"""

from . import audit, ui

__all__ = ["audit", "ui"]
