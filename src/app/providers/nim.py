"""
NVIDIA NIM Provider (IBM Granite, 양자 내성 암호 특화).

OpenAI 호환 chat-completions 엔드포인트를 httpx로 직접 호출.
- POST {base_url}/chat/completions
- Authorization: Bearer <api key>
- 요청 1회 = HTTP 호출 1회 (재시도 없음)
"""

import logging
import os
from datetime import UTC, datetime
from typing import Any

import httpx

from src.domain.constants import NIM_BASE_URL, NIM_DEFAULT_MODEL, ServiceType
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

SYSTEM_PROMPT = (
    "You are a security auditor specialising in post-quantum and "
    "quantum-resistant cryptography. You assess web endpoints for exposure to "
    "quantum attacks (Shor, Grover), weak TLS configuration, missing security "
    "headers and migration readiness toward NIST post-quantum standards "
    "(ML-KEM, ML-DSA, SLH-DSA). Always answer with a single JSON object and "
    "no surrounding prose."
)


class NimProvider(AuditProvider):
    """
    NVIDIA NIM API Provider.

    Usage:
        provider = NimProvider(model="ibm/granite-3.3-8b-instruct")
        result = await provider.generate_audit("https://example.com", prompt_template)
    """

    service = ServiceType.NVIDIA_NIM

    def __init__(
        self,
        model: str = NIM_DEFAULT_MODEL,
        api_key: str | None = None,
        base_url: str = NIM_BASE_URL,
        temperature: float | None = 0.2,
        top_p: float | None = 0.7,
        max_tokens: int | None = 2048,
        timeout: float = 60.0,
    ):
        """
        Args:
            model: 모델 ID (config에서 주입)
            api_key: API 키 (환경변수 NVIDIA_API_KEY 또는 NIM_API_KEY 사용 가능)
            base_url: OpenAI 호환 API base URL
            temperature: 샘플링 온도
            top_p: top-p 샘플링
            max_tokens: 최대 토큰 수
            timeout: HTTP 타임아웃 (초)

        Raises:
            AuditError: API 키가 없을 때 (fail-fast)
        """
        self.model = model
        # API 키 결정: 인자 > NVIDIA_API_KEY > NIM_API_KEY
        self.api_key = (
            api_key
            or os.environ.get("NVIDIA_API_KEY")
            or os.environ.get("NIM_API_KEY")
        )

        if not self.api_key:
            raise AuditError(
                ErrorCodes.API_KEY_MISSING,
                "NVIDIA NIM API key is missing. "
                "Set the NVIDIA_API_KEY or NIM_API_KEY environment variable.",
            )

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.params = LLMCallParams(
            temperature=temperature,
            top_p=top_p,
            max_tokens=max_tokens,
        )
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        """httpx 클라이언트 (lazy init)."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Accept": "application/json",
                },
            )
        return self._client

    async def aclose(self) -> None:
        """HTTP 클라이언트 정리."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _build_payload(
        self,
        messages: list[dict[str, str]],
        max_tokens: int | None = None,
    ) -> dict[str, Any]:
        """chat-completions 요청 본문 구성."""
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "stream": False,
        }
        params = self.params.to_dict()
        if max_tokens is not None:
            params["max_tokens"] = max_tokens
        payload.update(params)
        return payload

    async def _call_api(self, payload: dict[str, Any]) -> dict[str, Any]:
        """실제 NIM API 호출 (JSON 응답 반환)."""
        client = self._get_client()
        response = await client.post("/chat/completions", json=payload)
        response.raise_for_status()
        data: dict[str, Any] = response.json()
        return data

    @staticmethod
    def _extract_content(data: dict[str, Any]) -> str:
        """choices[0].message.content 추출."""
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise AuditError(
                ErrorCodes.API_CALL_FAILED,
                "NVIDIA NIM returned an empty response.",
            ) from e
        if not isinstance(content, str) or not content.strip():
            raise AuditError(
                ErrorCodes.API_CALL_FAILED,
                "NVIDIA NIM returned an empty response.",
            )
        return content

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

        payload = self._build_payload(
            [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ]
        )

        try:
            data = await self._call_api(payload)
        except Exception as e:
            logger.error(f"NIM audit call failed: {e}", exc_info=True)
            raise AuditError(
                ErrorCodes.API_CALL_FAILED,
                self._get_user_friendly_error_message(e),
                model=self.model,
            ) from e

        response_text = self._extract_content(data)
        result = parse_audit_response(response_text)

        result.provider = self.service.value
        result.model_requested = self.model
        result.model_used = data.get("model") or self.model
        result.request_id = data.get("id")
        result.prompt_hash = compute_hash(prompt)
        result.generated_at = now

        logger.info(
            f"NIM audit complete: model={result.model_used}, "
            f"overall_risk={result.overall_risk.value}, "
            f"sections={len(result.sections)}"
        )
        return result

    async def complete(self, prompt: str, **kwargs: Any) -> str:
        """일반 완성 API."""
        payload = self._build_payload(
            [{"role": "user", "content": prompt}],
            max_tokens=kwargs.get("max_tokens"),
        )
        try:
            data = await self._call_api(payload)
        except Exception as e:
            raise AuditError(
                ErrorCodes.API_CALL_FAILED,
                f"NVIDIA NIM API call failed: {e}",
            ) from e
        return self._extract_content(data)

    def _get_user_friendly_error_message(self, error: Exception) -> str:
        """사용자 친화적인 에러 메시지 생성."""
        if isinstance(error, httpx.HTTPStatusError):
            status = error.response.status_code
            if status in (401, 403):
                return (
                    "NVIDIA NIM authentication failed. "
                    "Check the NVIDIA_API_KEY environment variable."
                )
            elif status == 429:
                return "NVIDIA NIM rate limit exceeded. Please try again later."
            elif status >= 500:
                return (
                    "The NVIDIA NIM service is temporarily unavailable. "
                    "Please try again later."
                )
            return f"NVIDIA NIM rejected the request (HTTP {status})."
        elif isinstance(error, httpx.TimeoutException):
            return "The NVIDIA NIM request timed out. Please try again."
        elif isinstance(error, httpx.TransportError):
            return "A network error occurred while contacting NVIDIA NIM."

        return f"NVIDIA NIM request failed: {error}"
