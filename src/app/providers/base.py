"""
AI Provider 추상 인터페이스.

- Provider 추상화로 서비스 교체 가능 (gemini / nvidia-nim)
- 요청 1회 = 네트워크 호출 1회 (재시도 없음)
- model_requested + model_used 기록

응답 처리:
- 모델 응답 텍스트를 리포트 구조(AuditResult)로 파싱
- 내용은 그대로 신뢰, 형태만 검사
"""

import hashlib
import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from src.domain.constants import ServiceType, get_service_display_name
from src.domain.errors import AuditError, ErrorCodes
from src.domain.schemas import AuditResult


@dataclass
class LLMCallParams:
    """
    LLM 호출 파라미터 기록.

    재현성에 영향을 주는 파라미터.
    """
    temperature: float | None = None
    top_p: float | None = None
    max_tokens: int | None = None

    def to_dict(self) -> dict[str, Any]:
        result = {
            "temperature": self.temperature,
            "top_p": self.top_p,
            "max_tokens": self.max_tokens,
        }
        return {k: v for k, v in result.items() if v is not None}


def compute_hash(content: str) -> str:
    """SHA-256 해시 계산."""
    return f"sha256:{hashlib.sha256(content.encode()).hexdigest()[:16]}"


# =============================================================================
# Prompt / Response Helpers
# =============================================================================


def build_audit_prompt(url: str, prompt_template: str) -> str:
    """프롬프트 구성 ({url} 치환)."""
    return prompt_template.replace("{url}", url)


_CODE_FENCE_RE = re.compile(r"```[^\n`]*\n(.*?)```", re.DOTALL)


def _outermost_object(text: str) -> str:
    """첫 '{' 부터 마지막 '}' 까지."""
    return text[text.find("{"):text.rfind("}") + 1]


def _extract_json_text(response_text: str) -> str:
    """응답에서 JSON 부분만 추출."""
    # ```<tag> ... ``` 블록 (언어 표기 종류/대소문자 무관, 첫 줄 버림)
    match = _CODE_FENCE_RE.search(response_text)
    if match is not None and "{" in match.group(1):
        return _outermost_object(match.group(1))

    # 순수 JSON 응답 (앞뒤 설명문 허용, 닫히지 않은 펜스 포함)
    if "{" in response_text:
        return _outermost_object(response_text)

    raise AuditError(
        ErrorCodes.RESPONSE_NOT_JSON,
        "Model response did not contain a JSON report.",
    )


def parse_audit_response(response_text: str) -> AuditResult:
    """
    모델 응답 텍스트 → AuditResult.

    Raises:
        AuditError: RESPONSE_NOT_JSON (JSON 아님)
                    RESPONSE_SHAPE_INVALID / INVALID_RISK_LEVEL (형태 불일치)
    """
    json_str = _extract_json_text(response_text)

    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        raise AuditError(
            ErrorCodes.RESPONSE_NOT_JSON,
            f"Model response is not valid JSON: {e.msg}",
        ) from e

    return AuditResult.from_dict(data)


# =============================================================================
# Abstract Provider
# =============================================================================


class AuditProvider(ABC):
    """
    감사 Provider 추상 인터페이스.

    역할: URL → 프롬프트 → 외부 API 1회 호출 → AuditResult
    """

    service: ServiceType
    model: str

    @property
    def display_name(self) -> str:
        return get_service_display_name(self.service)

    @abstractmethod
    async def generate_audit(
        self,
        url: str,
        prompt_template: str,
    ) -> AuditResult:
        """
        URL 보안 감사 리포트 생성.

        Args:
            url: 감사 대상 URL
            prompt_template: {url} 플레이스홀더를 포함한 프롬프트 템플릿

        Returns:
            AuditResult (추적 메타데이터 포함)

        Raises:
            AuditError: 호출 실패 또는 응답 파싱 실패
        """
        ...

    @abstractmethod
    async def complete(self, prompt: str, **kwargs: Any) -> str:
        """
        일반 완성 API.

        Args:
            prompt: 프롬프트
            **kwargs: 추가 옵션 (max_tokens 등)

        Returns:
            응답 텍스트
        """
        ...
