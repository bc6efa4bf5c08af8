"""
AI Provider Abstraction.

서비스 교체 가능하게 설계 (gemini / nvidia-nim).
모델명은 config에서 주입.
"""

from .base import AuditProvider, LLMCallParams, parse_audit_response
from .gemini import GeminiProvider
from .nim import NimProvider

__all__ = [
    "AuditProvider",
    "LLMCallParams",
    "parse_audit_response",
    "GeminiProvider",
    "NimProvider",
]
