"""
Google Gemini Provider (범용 모델).

- 요청 1회 = generate_content 1회 (재시도/fallback 없음)
- response_mime_type=application/json 으로 JSON 응답 요청
- google.api_core 예외 → 사용자 친화적 메시지
"""

import logging
import os
from datetime import UTC, datetime
from typing import Any

from src.domain.constants import GEMINI_DEFAULT_MODEL, ServiceType
from src.domain.errors import AuditError, ErrorCodes
from src.domain.schemas import AuditResult

from .base import (
    AuditProvider,
    LLMCallParams,
    build_audit_prompt,
    compute_hash,
    parse_audit_response,
)

logger = logging.getLogger(__name__)


class GeminiProvider(AuditProvider):
    """
    Gemini API Provider.

    Usage:
        provider = GeminiProvider(model="gemini-2.0-flash")
        result = await provider.generate_audit("https://example.com", prompt_template)
    """

    service = ServiceType.GEMINI

    def __init__(
        self,
        model: str = GEMINI_DEFAULT_MODEL,
        api_key: str | None = None,
        temperature: float | None = 0.2,
        max_output_tokens: int | None = 4096,
    ):
        """
        Args:
            model: 모델 ID (config에서 주입)
            api_key: API 키 (환경변수 GEMINI_API_KEY 또는 GOOGLE_API_KEY 사용 가능)
            temperature: 샘플링 온도 (None이면 API 기본값)
            max_output_tokens: 최대 출력 토큰 수

        Raises:
            AuditError: API 키가 없을 때 (fail-fast)
        """
        self.model = model
        # API 키 결정: 인자 > GEMINI_API_KEY > GOOGLE_API_KEY
        self.api_key = (
            api_key
            or os.environ.get("GEMINI_API_KEY")
            or os.environ.get("GOOGLE_API_KEY")
        )

        if not self.api_key:
            raise AuditError(
                ErrorCodes.API_KEY_MISSING,
                "Gemini API key is missing. "
                "Set the GEMINI_API_KEY or GOOGLE_API_KEY environment variable.",
            )

        self.params = LLMCallParams(
            temperature=temperature,
            max_tokens=max_output_tokens,
        )
        self._client: Any = None

    def _get_client(self) -> Any:
        """Gemini 클라이언트 (lazy init)."""
        if self._client is None:
            try:
                import google.generativeai as genai

                genai.configure(api_key=self.api_key)
                self._client = genai
            except ImportError as e:
                raise AuditError(
                    ErrorCodes.SDK_NOT_INSTALLED,
                    "google-generativeai package not installed. "
                    "Run: pip install google-generativeai",
                ) from e
        return self._client

    def _generation_config(self, json_mode: bool = True) -> dict[str, Any]:
        """GenerationConfig dict 구성."""
        config: dict[str, Any] = {}
        if self.params.temperature is not None:
            config["temperature"] = self.params.temperature
        if self.params.max_tokens is not None:
            config["max_output_tokens"] = self.params.max_tokens
        if json_mode:
            config["response_mime_type"] = "application/json"
        return config

    async def generate_audit(
        self,
        url: str,
        prompt_template: str,
    ) -> AuditResult:
        """
        URL 감사 리포트 생성.

        흐름: 프롬프트 구성 → API 1회 호출 → JSON 파싱
        """
        now = datetime.now(UTC).isoformat()
        prompt = build_audit_prompt(url, prompt_template)

        try:
            response = await self._call_api(prompt)
            response_text: str = response.text
        except AuditError:
            raise
        except Exception as e:
            logger.error(f"Gemini audit call failed: {e}", exc_info=True)
            raise AuditError(
                ErrorCodes.API_CALL_FAILED,
                self._get_user_friendly_error_message(e),
                model=self.model,
            ) from e

        result = parse_audit_response(response_text)

        result.provider = self.service.value
        result.model_requested = self.model
        # Gemini는 fallback 없으므로 requested == used
        result.model_used = self.model
        result.prompt_hash = compute_hash(prompt)
        result.generated_at = now

        logger.info(
            f"Gemini audit complete: model={result.model_used}, "
            f"overall_risk={result.overall_risk.value}, "
            f"sections={len(result.sections)}"
        )
        return result

    async def _call_api(self, prompt: str, json_mode: bool = True) -> Any:
        """실제 Gemini API 호출."""
        genai = self._get_client()
        model_instance = genai.GenerativeModel(
            self.model,
            generation_config=self._generation_config(json_mode),
        )
        return await model_instance.generate_content_async(prompt)

    async def complete(self, prompt: str, **kwargs: Any) -> str:
        """일반 완성 API."""
        try:
            response = await self._call_api(prompt, json_mode=False)
            text: str = response.text
            return text
        except AuditError:
            raise
        except Exception as e:
            raise AuditError(
                ErrorCodes.API_CALL_FAILED,
                f"Gemini API call failed: {e}",
            ) from e

    def _get_user_friendly_error_message(self, error: Exception) -> str:
        """사용자 친화적인 에러 메시지 생성."""
        try:
            from google.api_core.exceptions import (
                InvalidArgument,
                PermissionDenied,
                ResourceExhausted,
                ServiceUnavailable,
                Unauthenticated,
            )

            if isinstance(error, Unauthenticated):
                return (
                    "Google API authentication failed. "
                    "Check the GEMINI_API_KEY environment variable."
                )
            elif isinstance(error, PermissionDenied):
                return "The API key does not have permission for this request."
            elif isinstance(error, ResourceExhausted):
                return "Gemini API quota exceeded. Please try again later."
            elif isinstance(error, ServiceUnavailable):
                return (
                    "The Gemini service is temporarily unavailable. "
                    "Please try again later."
                )
            elif isinstance(error, InvalidArgument):
                return "The request was rejected as invalid by the Gemini API."
        except ImportError:
            pass

        # 기본 메시지
        error_str = str(error)
        if "api_key" in error_str.lower() or "api key" in error_str.lower():
            return "Check the Gemini API key configuration."
        elif "quota" in error_str.lower() or "limit" in error_str.lower():
            return "Gemini API quota exceeded. Please try again later."
        elif "connection" in error_str.lower():
            return "A network error occurred while contacting Gemini."
        elif "timeout" in error_str.lower():
            return "The Gemini request timed out. Please try again."

        return f"Gemini request failed: {error_str}"
