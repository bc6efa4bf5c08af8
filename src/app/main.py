"""
FastAPI 애플리케이션 진입점.

실행:
- 개발: uvicorn src.app.main:app --reload
- 프로덕션: uvicorn src.app.main:app
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

# Routes
from src.app.routes import audit, ui
from src.app.services.audit import AuditService
from src.app.services.session import SessionStore
from src.core.logging import configure_logging
from src.domain.constants import DEFAULT_SERVICE, DEFAULT_URL, MAX_SESSIONS

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.parent

# =============================================================================
# Configuration
# =============================================================================


def load_config(config_path: Path | None = None) -> dict:
    """설정 파일 로드."""
    if config_path is None:
        # 프로젝트 루트의 default.yaml
        config_path = PROJECT_ROOT / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data: dict[Any, Any] = yaml.safe_load(f) or {}
        return data


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    애플리케이션 생명주기 관리.

    시작 시: .env 로드, 설정 로드, 세션 저장소/감사 서비스 초기화
    종료 시: Provider HTTP 클라이언트 정리
    """
    # Startup
    load_dotenv()
    config = load_config()
    configure_logging(config.get("logging", {}).get("level", "INFO"))

    ui_config = config.get("ui", {}) or {}
    app.state.config = config
    app.state.sessions = SessionStore(
        default_url=ui_config.get("default_url", DEFAULT_URL),
        default_service=ui_config.get("default_service", DEFAULT_SERVICE),
        max_sessions=int(ui_config.get("max_sessions", MAX_SESSIONS)),
    )
    app.state.audit_service = AuditService(config, prompts_dir=PROJECT_ROOT / "prompts")
    logger.info("Quantum Refactor Auditor started")

    yield

    # Shutdown
    await app.state.audit_service.aclose()
    app.state.sessions.clear()


# =============================================================================
# App Instance
# =============================================================================

app = FastAPI(
    title="Quantum Refactor Auditor",
    description="URL → LLM 기반 양자 내성 보안 감사 리포트",
    version="0.1.0",
    lifespan=lifespan,
)

# Static files (CSS)
static_dir = Path(__file__).parent / "static"
if static_dir.exists():
    app.mount("/static", StaticFiles(directory=static_dir), name="static")


# =============================================================================
# Routes
# =============================================================================

# 페이지 라우트 (HTML)
app.include_router(ui.router, prefix="", tags=["UI"])

# API 라우트
app.include_router(audit.api_router, prefix="/api/audit", tags=["Audit API"])


# =============================================================================
# Root Endpoints
# =============================================================================


@app.get("/health")
async def health() -> dict[str, str]:
    """헬스 체크."""
    return {"status": "ok"}


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
