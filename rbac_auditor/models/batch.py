"""batch operation model

operations are value objects; execution progress is attached through
`with_execution` which returns a new operation. a batch owns its ordered
operation list and its execution history.
"""

from enum import Enum
from dataclasses import dataclass, field, replace
from typing import List, Optional, Dict, Any
import time
import uuid

from ..errors import ExecutionStateError


class OperationType(Enum):
    GRANT = "grant"
    REVOKE = "revoke"


GRANT_ROLE_METHOD_NAME = "grantRole"
REVOKE_ROLE_METHOD_NAME = "revokeRole"

METHOD_FOR_TYPE = {
    OperationType.GRANT: GRANT_ROLE_METHOD_NAME,
    OperationType.REVOKE: REVOKE_ROLE_METHOD_NAME,
}


class ExecutionState(Enum):
    PENDING = "pending"
    SIMULATING = "simulating"
    AWAITING_SIGNATURE = "awaiting_signature"
    EXECUTING = "executing"
    SUCCESS = "success"
    FAILED = "failed"


_TRANSITIONS = {
    ExecutionState.PENDING: {ExecutionState.SIMULATING},
    ExecutionState.SIMULATING: {ExecutionState.AWAITING_SIGNATURE, ExecutionState.FAILED},
    ExecutionState.AWAITING_SIGNATURE: {ExecutionState.EXECUTING, ExecutionState.FAILED},
    ExecutionState.EXECUTING: {ExecutionState.SUCCESS, ExecutionState.FAILED},
    ExecutionState.SUCCESS: set(),
    ExecutionState.FAILED: set(),
}


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class ExecutionStatus:
    """pending -> simulating -> awaiting_signature -> executing -> success | failed"""
    state: ExecutionState = ExecutionState.PENDING
    tx_hash: Optional[str] = None
    block_number: Optional[int] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in (ExecutionState.SUCCESS, ExecutionState.FAILED)

    def advance(
        self,
        state: ExecutionState,
        tx_hash: Optional[str] = None,
        block_number: Optional[int] = None,
        error: Optional[str] = None,
    ) -> "ExecutionStatus":
        if state not in _TRANSITIONS[self.state]:
            raise ExecutionStateError(f"cannot move from {self.state.value} to {state.value}")
        if state == ExecutionState.EXECUTING and not tx_hash:
            raise ExecutionStateError("executing requires a transaction hash")
        if state == ExecutionState.SUCCESS and (not (tx_hash or self.tx_hash) or block_number is None):
            raise ExecutionStateError("success requires a transaction hash and block number")
        if state == ExecutionState.FAILED and not error:
            raise ExecutionStateError("failed requires an error message")
        return ExecutionStatus(
            state=state,
            tx_hash=tx_hash or self.tx_hash,
            block_number=block_number,
            error=error,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"state": self.state.value}
        if self.tx_hash:
            data["tx_hash"] = self.tx_hash
        if self.block_number is not None:
            data["block_number"] = self.block_number
        if self.error:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class ContractReference:
    address: str
    name: str


@dataclass(frozen=True)
class OperationMetadata:
    """display-only labels"""
    role_label: Optional[str] = None
    account_label: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class BatchOperation:
    """single contract call in a batch"""
    type: OperationType
    contract: ContractReference
    method: str
    parameters: Dict[str, str]
    metadata: Optional[OperationMetadata] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    execution: Optional[ExecutionStatus] = None

    @property
    def role(self) -> str:
        return self.parameters["role"]

    @property
    def account(self) -> str:
        return self.parameters["account"]

    @property
    def pair_key(self) -> tuple:
        """(role, contract) the operation acts on"""
        return (self.role.lower(), self.contract.address.lower())

    def with_execution(self, status: ExecutionStatus) -> "BatchOperation":
        return replace(self, execution=status)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "contract": {"address": self.contract.address, "name": self.contract.name},
            "method": self.method,
            "parameters": dict(self.parameters),
        }
        if self.metadata:
            data["metadata"] = {
                "role_label": self.metadata.role_label,
                "account_label": self.metadata.account_label,
                "description": self.metadata.description,
            }
        if self.execution:
            data["execution"] = self.execution.to_dict()
        return data

    def __repr__(self) -> str:
        label = self.metadata.role_label if self.metadata and self.metadata.role_label else self.role[:10]
        return f"BatchOperation({self.method} {label} -> {self.account} on {self.contract.name})"


@dataclass(frozen=True)
class ExecutionSummary:
    total: int
    successful: int
    failed: int
    skipped: int


@dataclass(frozen=True)
class BatchExecutionResult:
    executed_at: int
    executed_by: str
    operations: List[BatchOperation]
    summary: ExecutionSummary


@dataclass
class Batch:
    """remediation plan; operations are kept in execution order"""
    name: str
    network: str
    operations: List[BatchOperation] = field(default_factory=list)
    description: str = ""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: int = field(default_factory=now_ms)
    updated_at: int = field(default_factory=now_ms)
    created_by: Optional[str] = None
    execution_history: List[BatchExecutionResult] = field(default_factory=list)

    def touch(self) -> None:
        self.updated_at = now_ms()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "network": self.network,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "created_by": self.created_by,
            "operations": [op.to_dict() for op in self.operations],
        }

    def __repr__(self) -> str:
        return f"Batch({self.name}, {self.network}, {len(self.operations)} operations)"
