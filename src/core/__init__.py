"""
Core layer: ID 발급, 로깅, run 기록.

역할:
- session_id / run_id 발급
- 로거 설정, audit run 기록 (메모리)
"""

from .ids import generate_run_id, generate_session_id
from .logging import (
    append_run_log,
    complete_run_log,
    configure_logging,
    create_run_log,
)

__all__ = [
    # ids
    "generate_session_id",
    "generate_run_id",
    # logging
    "configure_logging",
    "create_run_log",
    "complete_run_log",
    "append_run_log",
]
