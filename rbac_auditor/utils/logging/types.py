"""run log types"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, Any, Optional


class LogCategory(Enum):
    """raw json log categories; each maps to data/logs/raw/<value>/"""
    AUDIT = "audits"
    ANOMALY = "anomalies"
    EXPORT = "exports"
    ERROR = "errors"


@dataclass
class LogEntry:
    """one run-log event as written to the raw json layer"""
    timestamp: str
    category: str
    event_type: str
    network: Optional[str]
    audit_id: Optional[str]
    data: Dict[str, Any] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)
