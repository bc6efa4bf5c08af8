"""
Audit Routes: 감사 실행 API.

- POST /api/audit/submit → 세션 기반 감사, 결과 영역 HTML (HTMX swap용)
- POST /api/audit → stateless JSON API
- GET /api/audit/refactor → 코드 템플릿 다운로드 (결과 있을 때만)
"""

import logging
from typing import Any

from fastapi import APIRouter, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, PlainTextResponse
from pydantic import BaseModel

from src.app.routes.ui import (
    build_screen_context,
    get_session_store,
    jinja_templates,
)
from src.app.services.audit import AuditService
from src.app.services.refactor import REFACTOR_FILENAME, render_refactor_template
from src.domain.constants import (
    DEFAULT_SERVICE,
    MSG_AUDIT_FAILED_PREFIX,
    MSG_UNKNOWN_ERROR,
    ServiceType,
)
from src.domain.errors import AuditError, ErrorCodes

logger = logging.getLogger(__name__)

# Routers
api_router = APIRouter()  # API endpoints


class AuditRequest(BaseModel):
    """Stateless 감사 요청."""
    url: str = ""
    service: ServiceType = DEFAULT_SERVICE


def get_audit_service(request: Request) -> AuditService:
    """app.state의 감사 서비스."""
    service: AuditService = request.app.state.audit_service
    return service


# =============================================================================
# API Routes
# =============================================================================


@api_router.post("/submit", response_class=HTMLResponse)
async def submit_audit(
    request: Request,
    session_id: str = Form(...),
    url: str = Form(""),  # 빈 문자열 허용 (내부에서 검증 메시지 처리)
) -> HTMLResponse:
    """
    URL 감사 실행 (세션 기반).

    Returns:
        결과 영역 HTML + 분석 패널 OOB 업데이트
    """
    session = get_session_store(request).get_or_create(session_id)
    audit_service = get_audit_service(request)

    notice: str | None = None
    try:
        await audit_service.run(session, url)
    except AuditError as e:
        if e.code != ErrorCodes.AUDIT_IN_PROGRESS:
            raise
        # 진행 중인 요청 유지, 기존 상태는 건드리지 않음
        logger.warning(f"Duplicate audit rejected: session_id={session_id}")
        notice = e.message

    context = build_screen_context(session)
    context["notice"] = notice
    context["oob"] = True

    return jinja_templates.TemplateResponse(
        request,
        "partials/results.html",
        context,
    )


@api_router.post("")
async def audit_json(request: Request, body: AuditRequest) -> dict[str, Any]:
    """
    Stateless JSON 감사.

    Returns:
        {"success": true, "result": {...}} 또는
        {"success": false, "error": "..."}
    """
    audit_service = get_audit_service(request)

    try:
        result = await audit_service.audit_url(body.url, body.service)
    except AuditError as e:
        if e.code == ErrorCodes.URL_REQUIRED:
            return {"success": False, "error": e.message, "code": e.code}
        logger.error(f"JSON audit failed: {e}")
        return {
            "success": False,
            "error": f"{MSG_AUDIT_FAILED_PREFIX}{e.message}",
            "code": e.code,
        }
    except Exception as e:
        logger.error(f"JSON audit failed: {e}", exc_info=True)
        return {
            "success": False,
            "error": f"{MSG_AUDIT_FAILED_PREFIX}{str(e) or MSG_UNKNOWN_ERROR}",
        }

    return {"success": True, "result": result.to_dict()}


@api_router.get("/refactor", response_class=PlainTextResponse)
async def download_refactor(request: Request, session_id: str) -> PlainTextResponse:
    """
    포스트 양자 코드 템플릿 다운로드.

    세션이 없거나 감사 결과가 없으면 404.
    """
    try:
        session = get_session_store(request).get(session_id)
    except AuditError as e:
        raise HTTPException(status_code=404, detail=e.message) from e

    if session.audit_result is None:
        raise HTTPException(
            status_code=404, detail="No audit result available for this session."
        )

    content = render_refactor_template(session.url, session.service_display_name)
    return PlainTextResponse(
        content=content,
        media_type="text/javascript",
        headers={
            "Content-Disposition": f'attachment; filename="{REFACTOR_FILENAME}"'
        },
    )
