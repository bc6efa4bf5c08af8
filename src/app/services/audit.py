"""
Audit Service: URL → 외부 LLM → 보안 감사 리포트.

흐름:
1. URL 검증 (빈 값이면 네트워크 호출 없이 종료)
2. 선택된 서비스로 분기 (gemini / nvidia-nim)
3. Provider 1회 호출 (타임아웃 적용, 재시도 없음)
4. 결과 또는 에러 문자열 1개를 세션에 반영
"""

import asyncio
import logging
from pathlib import Path
from typing import Any

from src.app.providers.base import AuditProvider
from src.app.providers.gemini import GeminiProvider
from src.app.providers.nim import NimProvider
from src.app.services.session import AuditSession
from src.core.logging import append_run_log, complete_run_log, create_run_log
from src.domain.constants import (
    GEMINI_DEFAULT_MODEL,
    MSG_URL_REQUIRED,
    NIM_BASE_URL,
    NIM_DEFAULT_MODEL,
    ServiceType,
)
from src.domain.errors import AuditError, ErrorCodes
from src.domain.schemas import AuditResult, AuditRun

logger = logging.getLogger(__name__)

# Default timeout for audit generation (seconds)
DEFAULT_AUDIT_TIMEOUT = 60.0

PROMPT_FILENAME = "audit_report.txt"


class AuditService:
    """
    감사 서비스.

    Provider는 서비스별로 lazy 생성 (API 키 누락은 호출 시점에 에러로 노출).
    """

    def __init__(
        self,
        config: dict,
        providers: dict[ServiceType, AuditProvider] | None = None,
        prompts_dir: Path | None = None,
    ):
        """
        Args:
            config: 설정 (ai.gemini, ai.nim, ai.audit_timeout 포함)
            providers: 서비스별 Provider (None이면 config 기반 생성)
            prompts_dir: 프롬프트 템플릿 디렉터리
        """
        self.config = config
        self.prompts_dir = prompts_dir
        self._providers: dict[ServiceType, AuditProvider] = dict(providers or {})
        self._prompt_template: str | None = None

    @property
    def ai_config(self) -> dict[str, Any]:
        ai: dict[str, Any] = self.config.get("ai", {}) or {}
        return ai

    @property
    def timeout(self) -> float:
        return float(self.ai_config.get("audit_timeout", DEFAULT_AUDIT_TIMEOUT))

    @property
    def prompt_template(self) -> str:
        """프롬프트 템플릿 로드 (lazy)."""
        if self._prompt_template is None:
            prompt_path = (
                self.prompts_dir / PROMPT_FILENAME if self.prompts_dir else None
            )
            if prompt_path is not None and prompt_path.exists():
                self._prompt_template = prompt_path.read_text(encoding="utf-8")
            else:
                self._prompt_template = self._default_prompt()
        return self._prompt_template

    # =========================================================================
    # Providers
    # =========================================================================

    def get_provider(self, service: ServiceType) -> AuditProvider:
        """
        서비스에 대응하는 Provider 반환.

        Raises:
            AuditError: API 키 누락 등 생성 실패
        """
        if service not in self._providers:
            self._providers[service] = self._create_provider(service)
        return self._providers[service]

    def _create_provider(self, service: ServiceType) -> AuditProvider:
        if service == ServiceType.NVIDIA_NIM:
            nim_config = self.ai_config.get("nim", {}) or {}
            return NimProvider(
                model=nim_config.get("model", NIM_DEFAULT_MODEL),
                base_url=nim_config.get("base_url", NIM_BASE_URL),
                temperature=nim_config.get("temperature", 0.2),
                top_p=nim_config.get("top_p", 0.7),
                max_tokens=nim_config.get("max_tokens", 2048),
                timeout=float(nim_config.get("timeout", self.timeout)),
            )

        gemini_config = self.ai_config.get("gemini", {}) or {}
        return GeminiProvider(
            model=gemini_config.get("model", GEMINI_DEFAULT_MODEL),
            temperature=gemini_config.get("temperature", 0.2),
            max_output_tokens=gemini_config.get("max_output_tokens", 4096),
        )

    async def aclose(self) -> None:
        """Provider 리소스 정리."""
        for provider in self._providers.values():
            close = getattr(provider, "aclose", None)
            if close is not None:
                await close()

    # =========================================================================
    # Audit
    # =========================================================================

    async def audit_url(self, url: str, service: ServiceType) -> AuditResult:
        """
        Stateless 감사 (JSON API용).

        Raises:
            AuditError: URL 누락, 타임아웃, 호출/파싱 실패
        """
        if not url or not url.strip():
            raise AuditError(ErrorCodes.URL_REQUIRED, MSG_URL_REQUIRED)

        provider = self.get_provider(service)
        try:
            return await asyncio.wait_for(
                provider.generate_audit(url.strip(), self.prompt_template),
                timeout=self.timeout,
            )
        except TimeoutError as e:
            raise AuditError(
                ErrorCodes.AUDIT_TIMEOUT,
                f"The AI service did not respond within {self.timeout:.0f} seconds.",
                service=service.value,
            ) from e

    async def run(self, session: AuditSession, target_url: str) -> AuditRun:
        """
        세션 기반 감사 실행.

        - 빈 URL: 검증 에러 (Provider 호출 없음)
        - 성공: session.audit_result 설정
        - 실패: session.error 설정 (항상 로딩 해제)

        Raises:
            AuditError: 이미 진행 중인 감사가 있을 때 (AUDIT_IN_PROGRESS)
        """
        run_log = create_run_log(
            url=target_url,
            service=session.service.value,
            session_id=session.session_id,
        )

        if not session.begin_audit(target_url):
            complete_run_log(
                run_log,
                success=False,
                error_code=ErrorCodes.URL_REQUIRED,
                error_message=session.error,
            )
            append_run_log(session.runs, run_log)
            logger.debug(f"Audit run recorded: {run_log.to_dict()}")
            return run_log

        logger.info(
            f"Audit started: run_id={run_log.run_id}, "
            f"service={session.service.value}, url={target_url}"
        )

        try:
            result = await self.audit_url(target_url, session.service)
        except Exception as e:
            logger.error(f"Audit failed: run_id={run_log.run_id}, error={e}")
            session.finish_error(e)
            complete_run_log(
                run_log,
                success=False,
                error_code=getattr(e, "code", type(e).__name__),
                error_message=session.error,
            )
        else:
            session.finish_success(result)
            complete_run_log(
                run_log,
                success=True,
                overall_risk=result.overall_risk.value,
                model_used=result.model_used,
            )
            logger.info(
                f"Audit finished: run_id={run_log.run_id}, "
                f"overall_risk={result.overall_risk.value}"
            )
        finally:
            # 어떤 경로든 로딩 상태는 해제
            session.is_loading = False

        append_run_log(session.runs, run_log)
        logger.debug(f"Audit run recorded: {run_log.to_dict()}")
        return run_log

    def _default_prompt(self) -> str:
        """기본 프롬프트 템플릿."""
        return """You are a cybersecurity expert focused on quantum computing threats.

## Target
{url}

## Instructions
1. Assess the target for cryptographic weaknesses that a quantum adversary could
   exploit (RSA/ECC key exchange, signatures, TLS configuration, hashing).
2. Review transport security and common security headers.
3. Assess readiness for migration to post-quantum algorithms.
4. Give each finding a risk level and one concrete recommendation.

## Response format (JSON only)
{
  "overallRisk": "Low | Medium | High | Critical",
  "summary": "...",
  "sections": [
    {
      "title": "...",
      "risk": "Low | Medium | High | Critical",
      "analysis": "...",
      "recommendation": "..."
    }
  ]
}"""
