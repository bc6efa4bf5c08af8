"""
Refactor Template: 포스트 양자 보안 개선 코드 템플릿.

감사 결과가 있을 때만 다운로드로 제공.
텍스트 출력이므로 HTML autoescape 미적용.
"""

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

TEMPLATE_NAME = "refactor_template.js.j2"
REFACTOR_FILENAME = "quantum_refactor.js"

_templates_dir = Path(__file__).parent.parent / "templates"
_env = Environment(
    loader=FileSystemLoader(_templates_dir),
    autoescape=False,
    undefined=StrictUndefined,
    keep_trailing_newline=True,
)


def render_refactor_template(url: str, service_name: str) -> str:
    """
    코드 리팩터링 템플릿 렌더링.

    Args:
        url: 감사 대상 URL
        service_name: 사용한 AI 서비스 표시명

    Returns:
        JavaScript 템플릿 문자열
    """
    # 주석 블록 종료 토큰이 URL에 섞이면 템플릿이 깨짐
    safe_url = url.replace("*/", "*\\/")
    return _env.get_template(TEMPLATE_NAME).render(
        url=safe_url,
        service_name=service_name,
    )
