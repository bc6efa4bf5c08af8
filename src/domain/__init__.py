"""Domain layer: errors, constants and schemas."""

from .constants import ServiceType
from .errors import AuditError, ErrorCodes
from .schemas import AuditResult, AuditRun, AuditSection, RiskLevel

__all__ = [
    "AuditError",
    "ErrorCodes",
    "ServiceType",
    "RiskLevel",
    "AuditSection",
    "AuditResult",
    "AuditRun",
]
