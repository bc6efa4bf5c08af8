"""
Data schemas for the auditor.

규칙:
- 리포트 구조는 외부 모델 응답이 그대로 결정 (내용은 신뢰, 형태만 검사)
- 섹션 순서는 모델이 반환한 순서 유지
- 직렬화 키는 wire 포맷(camelCase)과 동일
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .errors import AuditError, ErrorCodes

# =============================================================================
# Risk Level
# =============================================================================


class RiskLevel(str, Enum):
    """
    위험도 (순서 있음).

    Low < Medium < High < Critical
    """
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

    @property
    def rank(self) -> int:
        """정렬용 순위 (0..3)."""
        return _RISK_ORDER.index(self)

    @classmethod
    def parse(cls, value: Any) -> "RiskLevel":
        """
        문자열 → RiskLevel.

        대소문자/앞뒤 공백 무시.

        Raises:
            AuditError: 알 수 없는 값
        """
        if isinstance(value, RiskLevel):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            for level in cls:
                if level.value.lower() == normalized:
                    return level
        raise AuditError(
            ErrorCodes.INVALID_RISK_LEVEL,
            f"Unknown risk level: {value!r}",
            value=value,
        )

    @classmethod
    def highest(cls, levels: Iterable["RiskLevel"]) -> "RiskLevel | None":
        """가장 높은 위험도 (빈 입력이면 None)."""
        ordered = sorted(levels, key=lambda level: level.rank)
        return ordered[-1] if ordered else None

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank >= other.rank


_RISK_ORDER = [RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH, RiskLevel.CRITICAL]


# =============================================================================
# Audit Report
# =============================================================================


def _require(data: dict[str, Any], *keys: str, expected: type = str) -> Any:
    """keys 중 처음 존재하는 값 반환 (타입 검사 포함)."""
    for key in keys:
        if key in data:
            value = data[key]
            if not isinstance(value, expected):
                raise AuditError(
                    ErrorCodes.RESPONSE_SHAPE_INVALID,
                    f"Field '{key}' must be {expected.__name__}, "
                    f"got {type(value).__name__}.",
                    field=key,
                )
            return value
    raise AuditError(
        ErrorCodes.RESPONSE_SHAPE_INVALID,
        f"Missing required field '{keys[0]}'.",
        field=keys[0],
    )


@dataclass
class AuditSection:
    """개별 finding."""
    title: str
    risk: RiskLevel
    analysis: str
    recommendation: str

    @classmethod
    def from_dict(cls, data: Any) -> "AuditSection":
        if not isinstance(data, dict):
            raise AuditError(
                ErrorCodes.RESPONSE_SHAPE_INVALID,
                "Each section must be an object.",
            )
        return cls(
            title=_require(data, "title"),
            risk=RiskLevel.parse(_require(data, "risk")),
            analysis=_require(data, "analysis"),
            recommendation=_require(data, "recommendation"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "risk": self.risk.value,
            "analysis": self.analysis,
            "recommendation": self.recommendation,
        }


@dataclass
class AuditResult:
    """
    감사 결과 (overall risk + summary + findings).

    추적 메타데이터:
    - provider: "gemini", "nvidia-nim"
    - model_requested: config에 설정된 모델
    - model_used: 응답이 보고한 모델 (없으면 requested와 동일)
    - request_id: API 응답 ID (가능한 경우)
    - prompt_hash: 프롬프트 해시
    """
    overall_risk: RiskLevel
    summary: str
    sections: list[AuditSection] = field(default_factory=list)

    provider: str | None = None
    model_requested: str | None = None
    model_used: str | None = None
    request_id: str | None = None
    prompt_hash: str | None = None
    generated_at: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "AuditResult":
        """
        wire 포맷(dict) → AuditResult.

        overallRisk / overall_risk 모두 허용.

        Raises:
            AuditError: 필수 키 누락 또는 타입 불일치
        """
        if not isinstance(data, dict):
            raise AuditError(
                ErrorCodes.RESPONSE_SHAPE_INVALID,
                "Audit report must be a JSON object.",
            )

        raw_sections = _require(data, "sections", expected=list)

        return cls(
            overall_risk=RiskLevel.parse(
                _require(data, "overallRisk", "overall_risk")
            ),
            summary=_require(data, "summary"),
            sections=[AuditSection.from_dict(s) for s in raw_sections],
        )

    @property
    def highest_section_risk(self) -> RiskLevel | None:
        return RiskLevel.highest(s.risk for s in self.sections)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "overallRisk": self.overall_risk.value,
            "summary": self.summary,
            "sections": [s.to_dict() for s in self.sections],
            "provider": self.provider,
            "modelRequested": self.model_requested,
            "modelUsed": self.model_used,
            "requestId": self.request_id,
            "promptHash": self.prompt_hash,
            "generatedAt": self.generated_at,
        }
        # None 값 제거
        return {k: v for k, v in result.items() if v is not None}


# =============================================================================
# Audit Run (in-memory log)
# =============================================================================


@dataclass
class AuditRun:
    """
    감사 시도 1회 기록.

    메모리에만 보관 (영속 상태 없음).
    """
    run_id: str
    session_id: str | None
    url: str
    service: str
    started_at: str
    result: str = "pending"  # pending, success, failed
    finished_at: str | None = None
    overall_risk: str | None = None
    model_used: str | None = None
    error_code: str | None = None
    error_message: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.result == "success"

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "session_id": self.session_id,
            "url": self.url,
            "service": self.service,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "result": self.result,
            "overall_risk": self.overall_risk,
            "model_used": self.model_used,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }
