"""
UI Routes: 화면 전환 (intro / landing / blog / main).

- GET / → 새 세션 + 셸 페이지
- POST /ui/... → 상태 전환 후 현재 화면 fragment 반환 (HTMX swap용)

세션 ID는 셸의 hidden input(#session-id)에 보관 → 탭 단위 상태.
"""

import logging
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from src.app.services.analytics import build_analytics
from src.app.services.session import AuditSession, SessionStore
from src.domain.constants import SERVICE_BANNERS, SERVICE_DISPLAY_NAMES, ServiceType
from src.domain.errors import AuditError

logger = logging.getLogger(__name__)

# Jinja2 템플릿 설정
_templates_dir = Path(__file__).parent.parent / "templates"
jinja_templates = Jinja2Templates(directory=_templates_dir)

# Routers
router = APIRouter()  # HTML pages


# =============================================================================
# Helpers
# =============================================================================


def get_session_store(request: Request) -> SessionStore:
    """app.state의 세션 저장소."""
    store: SessionStore = request.app.state.sessions
    return store


def build_screen_context(session: AuditSession) -> dict[str, Any]:
    """화면 렌더링 컨텍스트."""
    return {
        "session": session,
        "screen": session.screen.value,
        "services": [
            {
                "value": service.value,
                "name": SERVICE_DISPLAY_NAMES[service],
                "selected": service == session.service,
            }
            for service in ServiceType
        ],
        "service_banner": SERVICE_BANNERS[session.service],
        "analytics": build_analytics(session),
    }


def render_screen(
    request: Request, session: AuditSession, status_code: int = 200
) -> HTMLResponse:
    """현재 화면 fragment 렌더링."""
    return jinja_templates.TemplateResponse(
        request,
        "partials/screen.html",
        build_screen_context(session),
        status_code=status_code,
    )


# =============================================================================
# Page Routes
# =============================================================================


@router.get("/", response_class=HTMLResponse)
async def index(request: Request) -> HTMLResponse:
    """
    셸 페이지.

    매 로드마다 새 세션 (탭 단위 상태).
    """
    session = get_session_store(request).create()

    return jinja_templates.TemplateResponse(
        request,
        "index.html",
        build_screen_context(session),
    )


@router.post("/ui/intro/complete", response_class=HTMLResponse)
async def complete_intro(request: Request, session_id: str = Form(...)) -> HTMLResponse:
    """intro 종료 → landing."""
    session = get_session_store(request).get_or_create(session_id)
    session.complete_intro()
    return render_screen(request, session)


@router.post("/ui/landing/accept", response_class=HTMLResponse)
async def accept_landing(request: Request, session_id: str = Form(...)) -> HTMLResponse:
    """landing 수락 → main."""
    session = get_session_store(request).get_or_create(session_id)
    session.accept_landing()
    return render_screen(request, session)


@router.post("/ui/blog/open", response_class=HTMLResponse)
async def open_blog(request: Request, session_id: str = Form(...)) -> HTMLResponse:
    """landing → blog."""
    session = get_session_store(request).get_or_create(session_id)
    session.open_blog()
    return render_screen(request, session)


@router.post("/ui/landing/back", response_class=HTMLResponse)
async def back_to_landing(request: Request, session_id: str = Form(...)) -> HTMLResponse:
    """blog / main → landing."""
    session = get_session_store(request).get_or_create(session_id)
    session.back_to_landing()
    return render_screen(request, session)


@router.post("/ui/analytics/toggle", response_class=HTMLResponse)
async def toggle_analytics(
    request: Request, session_id: str = Form(...)
) -> HTMLResponse:
    """분석 패널 표시/숨김."""
    session = get_session_store(request).get_or_create(session_id)
    session.toggle_analytics()
    return render_screen(request, session)


@router.post("/ui/service/select", response_class=HTMLResponse)
async def select_service(
    request: Request,
    session_id: str = Form(...),
    service: str = Form(...),
) -> HTMLResponse:
    """
    AI 서비스 선택.

    알 수 없는 값이면 선택 유지 + 400.
    """
    session = get_session_store(request).get_or_create(session_id)
    try:
        session.select_service(service)
    except AuditError as e:
        logger.warning(f"Service selection rejected: {e}")
        return render_screen(request, session, status_code=400)
    return render_screen(request, session)
