"""
Error definitions for the auditor.

규칙:
- UI에는 에러 문자열 하나만 노출 (에러 분류 체계 없음)
- code는 로그/테스트 추적용
- 재시도 정책 없음, 부분 실패 처리 없음
"""

from typing import Any


class AuditError(Exception):
    """
    감사(audit) 흐름에서 발생하는 에러.

    사용처:
    - URL 누락, 중복 요청
    - API 키 누락, SDK 미설치
    - 외부 API 호출 실패/타임아웃
    - 응답 파싱 실패 (JSON 아님, 형태 불일치)

    Usage:
        raise AuditError("RESPONSE_NOT_JSON", "Model response is not valid JSON.", model=model)
    """

    def __init__(self, code: str, message: str, **context: Any) -> None:
        self.code = code
        self.message = message
        self.context = context
        super().__init__(f"[{code}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """로그/JSON 직렬화용."""
        return {
            "code": self.code,
            "message": self.message,
            **self.context,
        }


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """에러 코드 상수."""

    # === Input ===
    URL_REQUIRED = "URL_REQUIRED"
    AUDIT_IN_PROGRESS = "AUDIT_IN_PROGRESS"
    UNKNOWN_SERVICE = "UNKNOWN_SERVICE"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"

    # === Response Parsing ===
    INVALID_RISK_LEVEL = "INVALID_RISK_LEVEL"
    RESPONSE_SHAPE_INVALID = "RESPONSE_SHAPE_INVALID"
    RESPONSE_NOT_JSON = "RESPONSE_NOT_JSON"

    # === Provider ===
    API_KEY_MISSING = "API_KEY_MISSING"
    SDK_NOT_INSTALLED = "SDK_NOT_INSTALLED"
    API_CALL_FAILED = "API_CALL_FAILED"
    AUDIT_TIMEOUT = "AUDIT_TIMEOUT"
