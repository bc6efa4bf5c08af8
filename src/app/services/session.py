"""
Session Service: 탭 단위 UI 상태.

브라우저 탭 1개 = AuditSession 1개 (hidden input의 session_id로 식별).
메모리에만 보관 (영속 상태 없음).

화면 전환:
    intro → landing ⇄ blog
              ↓
             main → (back) landing
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum

from src.core.ids import generate_session_id
from src.domain.constants import (
    DEFAULT_SERVICE,
    DEFAULT_URL,
    MAX_SESSIONS,
    MSG_AUDIT_FAILED_PREFIX,
    MSG_AUDIT_IN_PROGRESS,
    MSG_UNKNOWN_ERROR,
    MSG_URL_REQUIRED,
    ServiceType,
    get_service_display_name,
)
from src.domain.errors import AuditError, ErrorCodes
from src.domain.schemas import AuditResult, AuditRun

logger = logging.getLogger(__name__)


class Screen(str, Enum):
    """표시 중인 화면."""
    INTRO = "intro"
    LANDING = "landing"
    BLOG = "blog"
    MAIN = "main"


@dataclass
class AuditSession:
    """
    탭 단위 상태.

    동시성: 진행 중인 감사는 최대 1개 (is_loading).
    """
    session_id: str
    url: str = DEFAULT_URL
    service: ServiceType = DEFAULT_SERVICE
    is_loading: bool = False
    audit_result: AuditResult | None = None
    error: str | None = None

    show_intro: bool = True
    show_landing: bool = True
    show_blog: bool = False
    show_analytics: bool = True

    runs: list[AuditRun] = field(default_factory=list)

    # =========================================================================
    # Screens
    # =========================================================================

    @property
    def screen(self) -> Screen:
        """현재 화면 (intro > blog > landing > main 우선순위)."""
        if self.show_intro:
            return Screen.INTRO
        if self.show_blog:
            return Screen.BLOG
        if self.show_landing:
            return Screen.LANDING
        return Screen.MAIN

    @property
    def service_display_name(self) -> str:
        return get_service_display_name(self.service)

    def complete_intro(self) -> None:
        self.show_intro = False

    def accept_landing(self) -> None:
        self.show_landing = False

    def open_blog(self) -> None:
        self.show_blog = True
        self.show_landing = False

    def back_to_landing(self) -> None:
        self.show_blog = False
        self.show_landing = True

    def toggle_analytics(self) -> None:
        self.show_analytics = not self.show_analytics

    def select_service(self, service: ServiceType | str) -> None:
        """
        서비스 선택.

        Raises:
            AuditError: 알 수 없는 서비스 값
        """
        try:
            self.service = ServiceType(service)
        except ValueError as e:
            raise AuditError(
                ErrorCodes.UNKNOWN_SERVICE,
                f"Unknown service: {service!r}",
                service=service,
            ) from e

    # =========================================================================
    # Audit Lifecycle
    # =========================================================================

    def begin_audit(self, url: str) -> bool:
        """
        감사 시작.

        빈 URL: 검증 에러만 설정하고 False (네트워크 호출 없음, 기존 결과 유지)
        진행 중: AuditError(AUDIT_IN_PROGRESS)

        Returns:
            True면 호출 진행
        """
        if self.is_loading:
            raise AuditError(
                ErrorCodes.AUDIT_IN_PROGRESS,
                MSG_AUDIT_IN_PROGRESS,
                session_id=self.session_id,
            )

        self.url = url
        if not url or not url.strip():
            self.error = MSG_URL_REQUIRED
            return False

        self.is_loading = True
        self.audit_result = None
        self.error = None
        return True

    def finish_success(self, result: AuditResult) -> None:
        self.audit_result = result
        self.is_loading = False

    def finish_error(self, error: BaseException) -> None:
        """실패 처리: 로딩 해제 + 에러 문자열 1개."""
        if isinstance(error, AuditError):
            message = error.message
        else:
            message = str(error) or MSG_UNKNOWN_ERROR
        self.error = f"{MSG_AUDIT_FAILED_PREFIX}{message}"
        self.audit_result = None
        self.is_loading = False


# =============================================================================
# Session Store
# =============================================================================


class SessionStore:
    """
    세션 저장소 (in-memory, LRU).

    max_sessions 초과 시 가장 오래 사용되지 않은 세션부터 제거.
    진행 중인 감사가 있는 세션도 제거 대상 (진행 중 요청은 세션 객체를 계속 참조).

    Usage:
        store = SessionStore()
        session = store.get_or_create(session_id)
    """

    def __init__(
        self,
        default_url: str = DEFAULT_URL,
        default_service: ServiceType = DEFAULT_SERVICE,
        max_sessions: int = MAX_SESSIONS,
    ) -> None:
        self.default_url = default_url
        self.default_service = ServiceType(default_service)
        self.max_sessions = max(1, max_sessions)
        self._sessions: OrderedDict[str, AuditSession] = OrderedDict()

    def _new_session(self, session_id: str) -> AuditSession:
        return AuditSession(
            session_id=session_id,
            url=self.default_url,
            service=self.default_service,
        )

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def _add(self, session: AuditSession) -> AuditSession:
        self._sessions[session.session_id] = session
        while len(self._sessions) > self.max_sessions:
            evicted_id, _ = self._sessions.popitem(last=False)
            logger.debug(f"Session evicted: {evicted_id}")
        return session

    def create(self) -> AuditSession:
        """새 세션 생성."""
        session = self._add(self._new_session(generate_session_id()))
        logger.debug(f"Session created: {session.session_id}")
        return session

    def get(self, session_id: str) -> AuditSession:
        """
        세션 조회 (최근 사용으로 갱신).

        Raises:
            AuditError: 세션 없음
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise AuditError(
                ErrorCodes.SESSION_NOT_FOUND,
                "Session not found. Reload the page to start a new session.",
                session_id=session_id,
            )
        self._sessions.move_to_end(session_id)
        return session

    def get_or_create(self, session_id: str | None) -> AuditSession:
        """세션 ID에 대응하는 세션 반환 (없으면 해당 ID로 생성)."""
        if not session_id:
            return self.create()

        if session_id in self._sessions:
            return self.get(session_id)
        return self._add(self._new_session(session_id))

    def clear(self) -> None:
        self._sessions.clear()
