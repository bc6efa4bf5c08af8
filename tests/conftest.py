"""
Pytest fixtures for the auditor tests.

테스트 구성:
- 정상 리포트, Provider 실패 케이스 분리
- 외부 API 호출 없음 (FakeProvider 사용)
"""

import asyncio
import copy
from pathlib import Path
from typing import Any

import pytest
import yaml

from src.app.providers.base import AuditProvider
from src.app.services.audit import AuditService
from src.app.services.session import SessionStore
from src.domain.constants import ServiceType
from src.domain.schemas import AuditResult

SAMPLE_REPORT: dict[str, Any] = {
    "overallRisk": "High",
    "summary": "RSA-2048 key exchange is exposed to harvest-now-decrypt-later attacks.",
    "sections": [
        {
            "title": "Key Exchange",
            "risk": "High",
            "analysis": "TLS handshake negotiates ECDHE with classical curves only.",
            "recommendation": "Enable hybrid X25519MLKEM768 key exchange.",
        },
        {
            "title": "Security Headers",
            "risk": "Medium",
            "analysis": "Content-Security-Policy header is missing.",
            "recommendation": "Add a restrictive Content-Security-Policy.",
        },
        {
            "title": "Hashing",
            "risk": "Low",
            "analysis": "SHA-256 is used for integrity checks.",
            "recommendation": "Plan migration to SHA-384 or SHA3-512.",
        },
    ],
}


class FakeProvider(AuditProvider):
    """네트워크 없이 고정 리포트/에러를 돌려주는 Provider."""

    def __init__(
        self,
        service: ServiceType,
        report: dict[str, Any] | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
    ):
        self.service = service
        self.model = f"fake-{service.value}"
        self.report = report if report is not None else copy.deepcopy(SAMPLE_REPORT)
        self.error = error
        self.delay = delay
        self.calls: list[str] = []

    async def generate_audit(self, url: str, prompt_template: str) -> AuditResult:
        self.calls.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        result = AuditResult.from_dict(self.report)
        result.provider = self.service.value
        result.model_requested = self.model
        result.model_used = self.model
        return result

    async def complete(self, prompt: str, **kwargs: Any) -> str:
        return "ok"


# =============================================================================
# Path / Config Fixtures
# =============================================================================


@pytest.fixture
def project_root() -> Path:
    """프로젝트 루트 경로."""
    return Path(__file__).parent.parent


@pytest.fixture
def default_config_path(project_root: Path) -> Path:
    """default.yaml 경로."""
    return project_root / "default.yaml"


@pytest.fixture
def default_config(default_config_path: Path) -> dict:
    """기본 설정 로드."""
    with open(default_config_path, encoding="utf-8") as f:
        return yaml.safe_load(f)


@pytest.fixture
def test_config() -> dict:
    """테스트용 최소 설정 (짧은 타임아웃)."""
    return {"ai": {"audit_timeout": 5}}


# =============================================================================
# Report / Provider Fixtures
# =============================================================================


@pytest.fixture
def sample_report() -> dict[str, Any]:
    """정상 리포트 (wire 포맷)."""
    return copy.deepcopy(SAMPLE_REPORT)


@pytest.fixture
def make_provider() -> type[FakeProvider]:
    """FakeProvider 생성기 (에러/지연 지정용)."""
    return FakeProvider


@pytest.fixture
def gemini_provider() -> FakeProvider:
    return FakeProvider(ServiceType.GEMINI)


@pytest.fixture
def nim_provider() -> FakeProvider:
    return FakeProvider(ServiceType.NVIDIA_NIM)


@pytest.fixture
def fake_providers(
    gemini_provider: FakeProvider, nim_provider: FakeProvider
) -> dict[ServiceType, AuditProvider]:
    """서비스별 FakeProvider."""
    return {
        ServiceType.GEMINI: gemini_provider,
        ServiceType.NVIDIA_NIM: nim_provider,
    }


@pytest.fixture
def audit_service(test_config: dict, fake_providers: dict) -> AuditService:
    """FakeProvider 기반 감사 서비스."""
    return AuditService(test_config, providers=fake_providers)


@pytest.fixture
def session_store() -> SessionStore:
    return SessionStore()
