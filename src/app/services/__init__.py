"""
Application Services.

역할:
- session: 탭 단위 UI 상태 + 화면 전환
- audit: 서비스 분기 + Provider 호출 + 결과/에러 반영
- analytics: 대시보드 요약
- refactor: 포스트 양자 코드 템플릿
"""

from .analytics import build_analytics
from .audit import AuditService
from .refactor import render_refactor_template
from .session import AuditSession, Screen, SessionStore

__all__ = [
    "AuditSession",
    "Screen",
    "SessionStore",
    "AuditService",
    "build_analytics",
    "render_refactor_template",
]
