"""dual-layer (json + sqlite) run logging"""

from .types import LogCategory, LogEntry
from .core import AuditLogger

__all__ = [
    "LogCategory",
    "LogEntry",
    "AuditLogger",
]
