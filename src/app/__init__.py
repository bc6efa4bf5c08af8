"""
App layer: UI 서버 (FastAPI + HTMX).

역할:
- 화면 전환 (intro / landing / blog / main), 서비스 선택
- LLM Provider 호출, 감사 리포트 렌더링
- 분석 패널, 코드 템플릿 다운로드

주의: 폴더 구분
- src/app/templates/ → Jinja2 HTML (HTMX) + JS 코드 템플릿
- prompts/ (루트) → 감사 프롬프트
"""
