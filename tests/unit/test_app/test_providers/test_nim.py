"""
test_nim.py - NVIDIA NIM Provider 테스트

검증 포인트:
- POST {base_url}/chat/completions, Bearer 인증
- 요청 본문 (model, messages, temperature=0.2, top_p=0.7)
- HTTP 상태/전송 오류 → 사용자 친화적 메시지
"""

import json

import httpx
import pytest

from src.app.providers.nim import SYSTEM_PROMPT, NimProvider
from src.domain.constants import NIM_BASE_URL, NIM_DEFAULT_MODEL
from src.domain.errors import AuditError, ErrorCodes
from src.domain.schemas import RiskLevel

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def provider():
    """기본 NIM provider."""
    return NimProvider(api_key="test-nim-key")


def _completion(content: str, model: str = NIM_DEFAULT_MODEL) -> dict:
    """chat-completions 응답 본문."""
    return {
        "id": "chatcmpl-123",
        "model": model,
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
    }


def _install_transport(provider: NimProvider, handler) -> list[httpx.Request]:
    """MockTransport 주입 (요청 기록 반환)."""
    requests: list[httpx.Request] = []

    def _record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    provider._client = httpx.AsyncClient(
        base_url=provider.base_url,
        transport=httpx.MockTransport(_record),
    )
    return requests


# =============================================================================
# 초기화 테스트
# =============================================================================


class TestNimProviderInit:
    """NimProvider 초기화 테스트."""

    def test_defaults(self, provider):
        assert provider.model == "ibm/granite-3.3-8b-instruct"
        assert provider.base_url == "https://integrate.api.nvidia.com/v1"
        assert provider.params.temperature == 0.2
        assert provider.params.top_p == 0.7

    def test_base_url_trailing_slash(self):
        provider = NimProvider(api_key="k", base_url=NIM_BASE_URL + "/")

        assert provider.base_url == NIM_BASE_URL

    def test_env_key(self, monkeypatch):
        monkeypatch.setenv("NVIDIA_API_KEY", "nvapi-env")

        assert NimProvider().api_key == "nvapi-env"

    def test_nim_key_fallback(self, monkeypatch):
        monkeypatch.delenv("NVIDIA_API_KEY", raising=False)
        monkeypatch.setenv("NIM_API_KEY", "nim-env")

        assert NimProvider().api_key == "nim-env"

    def test_missing_key_fails_fast(self, monkeypatch):
        monkeypatch.delenv("NVIDIA_API_KEY", raising=False)
        monkeypatch.delenv("NIM_API_KEY", raising=False)

        with pytest.raises(AuditError) as exc_info:
            NimProvider()

        assert exc_info.value.code == ErrorCodes.API_KEY_MISSING

    @pytest.mark.asyncio
    async def test_client_has_bearer_header(self, provider):
        """lazy 생성 + Authorization 헤더."""
        assert provider._client is None

        client = provider._get_client()

        assert client.headers["Authorization"] == "Bearer test-nim-key"
        assert provider._get_client() is client

        await provider.aclose()
        assert provider._client is None


# =============================================================================
# generate_audit 테스트
# =============================================================================


class TestGenerateAudit:
    """generate_audit 테스트."""

    @pytest.mark.asyncio
    async def test_success(self, provider, sample_report):
        """정상 응답 → AuditResult + 추적 메타데이터."""
        requests = _install_transport(
            provider,
            lambda request: httpx.Response(
                200, json=_completion(json.dumps(sample_report))
            ),
        )

        result = await provider.generate_audit("https://example.com", "Audit {url}")

        assert result.overall_risk == RiskLevel.HIGH
        assert result.provider == "nvidia-nim"
        assert result.model_requested == NIM_DEFAULT_MODEL
        assert result.model_used == NIM_DEFAULT_MODEL
        assert result.request_id == "chatcmpl-123"
        assert len(requests) == 1

    @pytest.mark.asyncio
    async def test_request_shape(self, provider, sample_report):
        """엔드포인트 + 요청 본문."""
        requests = _install_transport(
            provider,
            lambda request: httpx.Response(
                200, json=_completion(json.dumps(sample_report))
            ),
        )

        await provider.generate_audit("https://example.com", "Audit {url}")

        request = requests[0]
        assert request.method == "POST"
        assert request.url.path == "/v1/chat/completions"

        body = json.loads(request.content)
        assert body["model"] == NIM_DEFAULT_MODEL
        assert body["temperature"] == 0.2
        assert body["top_p"] == 0.7
        assert body["max_tokens"] == 2048
        assert body["stream"] is False
        assert body["messages"] == [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": "Audit https://example.com"},
        ]

    @pytest.mark.asyncio
    async def test_model_used_from_response(self, provider, sample_report):
        _install_transport(
            provider,
            lambda request: httpx.Response(
                200, json=_completion(json.dumps(sample_report), model="ibm/granite-alt")
            ),
        )

        result = await provider.generate_audit("https://example.com", "{url}")

        assert result.model_requested == NIM_DEFAULT_MODEL
        assert result.model_used == "ibm/granite-alt"

    @pytest.mark.asyncio
    async def test_fenced_json_content(self, provider, sample_report):
        content = f"```json\n{json.dumps(sample_report)}\n```"
        _install_transport(
            provider, lambda request: httpx.Response(200, json=_completion(content))
        )

        result = await provider.generate_audit("https://example.com", "{url}")

        assert len(result.sections) == 3

    @pytest.mark.asyncio
    async def test_empty_choices(self, provider):
        _install_transport(
            provider, lambda request: httpx.Response(200, json={"choices": []})
        )

        with pytest.raises(AuditError) as exc_info:
            await provider.generate_audit("https://example.com", "{url}")

        assert exc_info.value.code == ErrorCodes.API_CALL_FAILED
        assert "empty response" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_non_json_content(self, provider):
        _install_transport(
            provider,
            lambda request: httpx.Response(200, json=_completion("No report today.")),
        )

        with pytest.raises(AuditError) as exc_info:
            await provider.generate_audit("https://example.com", "{url}")

        assert exc_info.value.code == ErrorCodes.RESPONSE_NOT_JSON

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,expected",
        [
            (401, "authentication failed"),
            (403, "authentication failed"),
            (429, "rate limit"),
            (503, "temporarily unavailable"),
            (400, "HTTP 400"),
        ],
    )
    async def test_http_errors(self, provider, status, expected):
        """HTTP 상태 → 사용자 친화적 메시지."""
        _install_transport(
            provider, lambda request: httpx.Response(status, json={"detail": "x"})
        )

        with pytest.raises(AuditError) as exc_info:
            await provider.generate_audit("https://example.com", "{url}")

        assert exc_info.value.code == ErrorCodes.API_CALL_FAILED
        assert expected in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    @pytest.mark.asyncio
    async def test_timeout(self, provider):
        def handler(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        _install_transport(provider, handler)

        with pytest.raises(AuditError) as exc_info:
            await provider.generate_audit("https://example.com", "{url}")

        assert "timed out" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_network_error(self, provider):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        _install_transport(provider, handler)

        with pytest.raises(AuditError) as exc_info:
            await provider.generate_audit("https://example.com", "{url}")

        assert "network error" in exc_info.value.message


# =============================================================================
# complete 테스트
# =============================================================================


class TestComplete:
    """complete 테스트."""

    @pytest.mark.asyncio
    async def test_returns_content_with_max_tokens(self, provider):
        requests = _install_transport(
            provider,
            lambda request: httpx.Response(200, json=_completion("API test successful")),
        )

        text = await provider.complete("ping", max_tokens=32)

        assert text == "API test successful"
        body = json.loads(requests[0].content)
        assert body["max_tokens"] == 32
        assert body["messages"] == [{"role": "user", "content": "ping"}]

    @pytest.mark.asyncio
    async def test_error(self, provider):
        _install_transport(provider, lambda request: httpx.Response(500))

        with pytest.raises(AuditError) as exc_info:
            await provider.complete("ping")

        assert exc_info.value.code == ErrorCodes.API_CALL_FAILED
