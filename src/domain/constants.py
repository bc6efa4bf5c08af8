"""
Domain Constants: 애플리케이션 전역 상수.

서비스 식별자, 표시명, UI 메시지 등.
"""

from enum import Enum

# =============================================================================
# Services (외부 추론 엔드포인트)
# =============================================================================


class ServiceType(str, Enum):
    """
    호출 가능한 외부 LLM 서비스.

    gemini: 범용 모델 (Google Gemini)
    nvidia-nim: 양자 암호 특화 모델 (NVIDIA NIM + IBM Granite)
    """
    GEMINI = "gemini"
    NVIDIA_NIM = "nvidia-nim"


DEFAULT_SERVICE = ServiceType.NVIDIA_NIM

SERVICE_DISPLAY_NAMES = {
    ServiceType.GEMINI: "Google Gemini",
    ServiceType.NVIDIA_NIM: "NVIDIA NIM (IBM Granite)",
}

SERVICE_BANNERS = {
    ServiceType.GEMINI: "> USING GOOGLE GEMINI FOR QUANTUM SECURITY ANALYSIS",
    ServiceType.NVIDIA_NIM: (
        "> USING NVIDIA NIM WITH IBM GRANITE 3.3-8B MODEL "
        "FOR QUANTUM SECURITY ANALYSIS"
    ),
}


def get_service_display_name(service: ServiceType | str) -> str:
    """
    서비스 표시명.

    Args:
        service: ServiceType 또는 그 값 문자열

    Returns:
        UI 표시명 (gemini 외에는 NIM 표시명)
    """
    if ServiceType(service) == ServiceType.GEMINI:
        return SERVICE_DISPLAY_NAMES[ServiceType.GEMINI]
    return SERVICE_DISPLAY_NAMES[ServiceType.NVIDIA_NIM]


# =============================================================================
# UI Defaults / Messages
# =============================================================================

DEFAULT_URL = "https://google.com"

MSG_URL_REQUIRED = "Please enter a valid URL."
MSG_AUDIT_FAILED_PREFIX = "Failed to generate audit. "
MSG_UNKNOWN_ERROR = "An unknown error occurred."
MSG_AUDIT_IN_PROGRESS = "An audit is already running for this session."

# 세션당 보관하는 audit run 기록 수
MAX_RUN_HISTORY = 20

# 메모리에 유지하는 세션 수 상한 (초과 시 가장 오래 사용되지 않은 세션부터 제거)
MAX_SESSIONS = 1000

# =============================================================================
# NVIDIA NIM
# =============================================================================

NIM_BASE_URL = "https://integrate.api.nvidia.com/v1"
NIM_DEFAULT_MODEL = "ibm/granite-3.3-8b-instruct"

GEMINI_DEFAULT_MODEL = "gemini-2.0-flash"
