"""
Run logging: 로거 설정 + audit run 기록

규칙:
- run 기록은 메모리에만 보관 (영속 상태 없음)
- 세션당 최근 MAX_RUN_HISTORY개만 유지
- API 키는 로그에 남기지 않음
"""

import logging
from datetime import UTC, datetime

from src.core.ids import generate_run_id
from src.domain.constants import MAX_RUN_HISTORY
from src.domain.schemas import AuditRun

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# =============================================================================
# Logger Setup
# =============================================================================


def configure_logging(level: str | int = "INFO") -> None:
    """
    루트 로거 설정.

    Args:
        level: 로그 레벨 (이름 또는 숫자)
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )


# =============================================================================
# Run Log Management
# =============================================================================


def create_run_log(url: str, service: str, session_id: str | None = None) -> AuditRun:
    """
    새 AuditRun 생성.

    Args:
        url: 감사 대상 URL
        service: 서비스 값 (gemini, nvidia-nim)
        session_id: 세션 ID (stateless API 호출이면 None)

    Returns:
        초기화된 AuditRun (result="pending")
    """
    now = datetime.now(UTC).isoformat()

    return AuditRun(
        run_id=generate_run_id(),
        session_id=session_id,
        url=url,
        service=service,
        started_at=now,
    )


def complete_run_log(
    run_log: AuditRun,
    success: bool,
    overall_risk: str | None = None,
    model_used: str | None = None,
    error_code: str | None = None,
    error_message: str | None = None,
) -> None:
    """
    AuditRun 완료 처리.

    Args:
        run_log: AuditRun 인스턴스
        success: 성공 여부
        overall_risk: 결과 위험도 (성공 시)
        model_used: 실제 사용된 모델 (성공 시)
        error_code: 에러 코드 (실패 시)
        error_message: 에러 메시지 (실패 시)
    """
    run_log.finished_at = datetime.now(UTC).isoformat()
    run_log.result = "success" if success else "failed"

    if success:
        run_log.overall_risk = overall_risk
        run_log.model_used = model_used
    else:
        run_log.error_code = error_code
        run_log.error_message = error_message


def append_run_log(
    runs: list[AuditRun],
    run_log: AuditRun,
    max_history: int = MAX_RUN_HISTORY,
) -> None:
    """
    run 기록 추가 (최신이 뒤).

    max_history 초과 시 오래된 것부터 제거.
    """
    runs.append(run_log)
    overflow = len(runs) - max_history
    if overflow > 0:
        del runs[:overflow]
