from .events import (
    BlockscoutLogSource,
    EventCollector,
    EVENT_TOPICS,
    extract_role_candidates,
    parse_role_event,
)
from .multicall import Multicall3Reader
from .state import StateVerifier
from .anomalies import AnomalyDetector
from .orchestrator import ALL_CONTRACTS, Auditor, compute_stats, resolve_contracts

__all__ = [
    "BlockscoutLogSource",
    "EventCollector",
    "EVENT_TOPICS",
    "extract_role_candidates",
    "parse_role_event",
    "Multicall3Reader",
    "StateVerifier",
    "AnomalyDetector",
    "ALL_CONTRACTS",
    "Auditor",
    "compute_stats",
    "resolve_contracts",
]
