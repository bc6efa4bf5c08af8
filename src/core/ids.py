"""
ID 생성: session_id, run_id

규칙:
- session_id: 브라우저 탭 1개 = 세션 1개
- run_id: 감사 시도마다 새로 발급
"""

import uuid
from datetime import UTC, datetime


def generate_session_id() -> str:
    """
    Session ID 생성.

    고유성 보장: UUID v4 (hidden input으로 탭에 보관)

    Returns:
        session_id 문자열
    """
    return str(uuid.uuid4())


def generate_run_id() -> str:
    """
    Run ID 생성.

    고유성 보장: UUID v4
    포맷: RUN-{timestamp}-{uuid[:8]}

    Returns:
        run_id 문자열
    """
    now = datetime.now(UTC)
    timestamp = now.strftime("%Y%m%d%H%M%S")
    unique = uuid.uuid4().hex[:8]

    return f"RUN-{timestamp}-{unique}"
