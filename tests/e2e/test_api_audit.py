"""
test_api_audit.py - 앱 전체 E2E 테스트 (lifespan 포함)

엔드포인트:
- GET /health
- GET / → POST /ui/... → POST /api/audit/submit → GET /api/audit/refactor
- POST /api/audit (JSON)

외부 API는 호출하지 않음 (감사 서비스의 Provider를 FakeProvider로 교체).
"""

import re

import pytest
from fastapi.testclient import TestClient

from src.app.main import app, load_config
from src.app.services.audit import AuditService

pytestmark = pytest.mark.e2e

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def client(fake_providers):
    """FastAPI TestClient (Provider만 교체)."""
    with TestClient(app) as client:
        app.state.audit_service = AuditService(
            app.state.config, providers=fake_providers
        )
        yield client


def _session_id(html: str) -> str:
    match = re.search(r'name="session_id" value="([^"]+)"', html)
    assert match is not None
    return match.group(1)


# =============================================================================
# Health Check
# =============================================================================


class TestHealthCheck:
    """헬스 체크 테스트."""

    def test_health_endpoint(self, client):
        """GET /health."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


# =============================================================================
# Configuration
# =============================================================================


class TestConfiguration:
    """설정 로드 테스트."""

    def test_lifespan_loads_default_yaml(self, client, default_config):
        assert app.state.config == default_config

    def test_load_config_missing_file(self, tmp_path):
        assert load_config(tmp_path / "missing.yaml") == {}

    def test_default_config_values(self, default_config):
        assert default_config["ui"]["default_service"] == "nvidia-nim"
        assert default_config["ui"]["default_url"] == "https://google.com"
        assert default_config["ai"]["nim"]["base_url"] == (
            "https://integrate.api.nvidia.com/v1"
        )

    def test_static_css_served(self, client):
        response = client.get("/static/css/style.css")

        assert response.status_code == 200


# =============================================================================
# Full Flow
# =============================================================================


class TestAuditFlow:
    """intro → landing → main → 감사 → 다운로드."""

    def test_full_flow(self, client, nim_provider, gemini_provider):
        shell = client.get("/")
        assert shell.status_code == 200
        session_id = _session_id(shell.text)
        form = {"session_id": session_id}

        landing = client.post("/ui/intro/complete", data=form)
        assert 'data-screen="landing"' in landing.text

        main = client.post("/ui/landing/accept", data=form)
        assert 'data-screen="main"' in main.text

        client.post("/ui/service/select", data={**form, "service": "gemini"})

        results = client.post(
            "/api/audit/submit", data={**form, "url": "https://example.com"}
        )
        assert "AUDIT REPORT" in results.text
        assert gemini_provider.calls == ["https://example.com"]
        assert nim_provider.calls == []

        download = client.get("/api/audit/refactor", params=form)
        assert download.status_code == 200
        assert "AI Service: Google Gemini" in download.text

    def test_empty_url_flow(self, client, nim_provider):
        session_id = _session_id(client.get("/").text)

        results = client.post(
            "/api/audit/submit", data={"session_id": session_id, "url": " "}
        )

        assert "Please enter a valid URL." in results.text
        assert nim_provider.calls == []

    def test_json_api(self, client, nim_provider):
        response = client.post("/api/audit", json={"url": "https://example.com"})

        data = response.json()
        assert data["success"] is True
        assert data["result"]["provider"] == "nvidia-nim"
        assert nim_provider.calls == ["https://example.com"]
