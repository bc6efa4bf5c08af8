"""
Analytics Service: 대시보드 패널용 요약.

결과가 없어도 동작 (카운트 0, 위험도 None).
"""

from typing import Any

from src.app.services.session import AuditSession
from src.domain.schemas import RiskLevel


def count_by_risk(levels: list[RiskLevel]) -> dict[str, int]:
    """위험도별 개수 (Low → Critical 순서 유지)."""
    counts = {level.value: 0 for level in RiskLevel}
    for level in levels:
        counts[level.value] += 1
    return counts


def build_analytics(session: AuditSession) -> dict[str, Any]:
    """
    세션 기준 분석 요약 생성.

    Returns:
        {
            "url": "https://google.com",
            "service_name": "NVIDIA NIM (IBM Granite)",
            "overall_risk": "High" | None,
            "overall_risk_rank": 2 | None,
            "total_findings": 4,
            "risk_counts": {"Low": 1, "Medium": 1, "High": 2, "Critical": 0},
            "highest_finding_risk": "High" | None,
            "audits_run": 3,  # 시도 수 (빈 URL로 거부된 제출 포함)
            "audits_succeeded": 2,
        }
    """
    result = session.audit_result
    section_risks = [s.risk for s in result.sections] if result else []
    highest = result.highest_section_risk if result else None

    return {
        "url": session.url,
        "service_name": session.service_display_name,
        "overall_risk": result.overall_risk.value if result else None,
        "overall_risk_rank": result.overall_risk.rank if result else None,
        "total_findings": len(section_risks),
        "risk_counts": count_by_risk(section_risks),
        "highest_finding_risk": highest.value if highest else None,
        "audits_run": len(session.runs),
        "audits_succeeded": sum(1 for run in session.runs if run.succeeded),
    }
