from .audit import (
    EventAction,
    AnomalyType,
    Severity,
    HistoryEntry,
    Candidate,
    CurrentStateEntry,
    Anomaly,
    AuditStats,
    AuditResults,
    OWNER_ROLE_HASH,
    DEFAULT_ADMIN_ROLE_HASH,
)
from .batch import (
    OperationType,
    ExecutionState,
    ExecutionStatus,
    ContractReference,
    OperationMetadata,
    BatchOperation,
    ExecutionSummary,
    BatchExecutionResult,
    Batch,
)

__all__ = [
    'EventAction',
    'AnomalyType',
    'Severity',
    'HistoryEntry',
    'Candidate',
    'CurrentStateEntry',
    'Anomaly',
    'AuditStats',
    'AuditResults',
    'OWNER_ROLE_HASH',
    'DEFAULT_ADMIN_ROLE_HASH',
    'OperationType',
    'ExecutionState',
    'ExecutionStatus',
    'ContractReference',
    'OperationMetadata',
    'BatchOperation',
    'ExecutionSummary',
    'BatchExecutionResult',
    'Batch',
]
