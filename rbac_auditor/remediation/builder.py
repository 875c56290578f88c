"""mutable batch builder (aggregate root until to_batch)"""

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..chain_config import normalize_network
from ..models.audit import AuditResults
from ..models.batch import Batch, BatchOperation, OperationType, now_ms
from ..utils.validation import is_valid_address, is_valid_role_hash

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchValidationError:
    code: str
    message: str
    operation_id: Optional[str] = None


@dataclass(frozen=True)
class BatchValidationWarning:
    code: str
    message: str
    operation_ids: Tuple[str, ...] = ()


@dataclass
class BatchValidationResult:
    errors: List[BatchValidationError] = field(default_factory=list)
    warnings: List[BatchValidationWarning] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def __bool__(self) -> bool:
        return self.valid

    def codes(self) -> List[str]:
        return [e.code for e in self.errors] + [w.code for w in self.warnings]


class BatchBuilder:

    def __init__(self, network: str, name: str = "Untitled Batch", description: str = ""):
        self.network = normalize_network(network)
        self.name = name
        self.description = description
        self._operations: List[BatchOperation] = []
        self._batch_id: Optional[str] = None
        self._created_at: Optional[int] = None
        self._created_by: Optional[str] = None

    def add_operation(self, operation: BatchOperation) -> str:
        self._operations.append(operation)
        return operation.id

    def add_operations(self, operations: Iterable[BatchOperation]) -> List[str]:
        return [self.add_operation(op) for op in operations]

    def remove_operation(self, operation_id: str) -> bool:
        before = len(self._operations)
        self._operations = [op for op in self._operations if op.id != operation_id]
        return len(self._operations) != before

    def move_operation_to_index(self, operation_id: str, index: int) -> bool:
        for current, op in enumerate(self._operations):
            if op.id == operation_id:
                break
        else:
            return False
        moved = self._operations.pop(current)
        index = max(0, min(index, len(self._operations)))
        self._operations.insert(index, moved)
        return True

    def clear(self) -> None:
        self._operations = []

    def set_name(self, name: str) -> None:
        self.name = name

    def set_description(self, description: str) -> None:
        self.description = description

    def get_operations(self) -> List[BatchOperation]:
        return list(self._operations)

    def __len__(self) -> int:
        return len(self._operations)

    def to_batch(self, created_by: Optional[str] = None) -> Batch:
        batch = Batch(
            name=self.name,
            network=self.network,
            operations=list(self._operations),
            description=self.description,
            created_by=created_by or self._created_by,
        )
        # rebuilding an imported batch keeps its identity
        if self._batch_id:
            batch.id = self._batch_id
            batch.created_at = self._created_at or batch.created_at
        batch.updated_at = now_ms()
        return batch

    @classmethod
    def from_batch(cls, batch: Batch) -> "BatchBuilder":
        builder = cls(batch.network, batch.name, batch.description)
        # execution status does not carry over into an editable copy
        builder._operations = [replace(op, execution=None) for op in batch.operations]
        builder._batch_id = batch.id
        builder._created_at = batch.created_at
        builder._created_by = batch.created_by
        return builder

    def validate(self, audit_results: Optional[AuditResults] = None) -> BatchValidationResult:
        result = BatchValidationResult()
        if not self._operations:
            result.errors.append(BatchValidationError("E001", "Batch has no operations"))
            return result

        for op in self._operations:
            if not is_valid_address(op.contract.address):
                result.errors.append(BatchValidationError(
                    "E002", f"Invalid contract address {op.contract.address}", op.id))
            if not is_valid_address(op.parameters.get("account")):
                result.errors.append(BatchValidationError(
                    "E002", f"Invalid account address {op.parameters.get('account')}", op.id))
            if not is_valid_role_hash(op.parameters.get("role")):
                result.errors.append(BatchValidationError(
                    "E003", f"Invalid role hash {op.parameters.get('role')}", op.id))

        self._check_duplicates(result)
        if audit_results is not None:
            self._check_against_snapshot(result, audit_results)
        self._check_rotation_order(result)

        if result.errors or result.warnings:
            logger.debug("batch %r: %d errors, %d warnings", self.name, len(result.errors), len(result.warnings))
        return result

    @staticmethod
    def _op_key(op: BatchOperation) -> Tuple[str, str, str, str]:
        return (
            op.type.value,
            str(op.parameters.get("role", "")).lower(),
            str(op.parameters.get("account", "")).lower(),
            op.contract.address.lower(),
        )

    def _check_duplicates(self, result: BatchValidationResult) -> None:
        seen: Dict[Tuple[str, str, str, str], List[str]] = {}
        for op in self._operations:
            seen.setdefault(self._op_key(op), []).append(op.id)
        for (op_type, _, account, _), ids in seen.items():
            if len(ids) > 1:
                result.warnings.append(BatchValidationWarning(
                    "W001", f"Duplicate {op_type} operation for {account} ({len(ids)} times)", tuple(ids)))

    def _check_against_snapshot(self, result: BatchValidationResult, audit_results: AuditResults) -> None:
        held: Set[Tuple[str, str, str]] = {
            (e.address.lower(), e.role_hash.lower(), e.contract_address.lower())
            for e in audit_results.current_state
        }
        for op in self._operations:
            key = (
                str(op.parameters.get("account", "")).lower(),
                str(op.parameters.get("role", "")).lower(),
                op.contract.address.lower(),
            )
            if op.type == OperationType.REVOKE and key not in held:
                result.warnings.append(BatchValidationWarning(
                    "W002", f"{op.parameters.get('account')} does not currently hold this role on {op.contract.name}", (op.id,)))
            elif op.type == OperationType.GRANT and key in held:
                result.warnings.append(BatchValidationWarning(
                    "W003", f"{op.parameters.get('account')} already holds this role on {op.contract.name}", (op.id,)))

    def _check_rotation_order(self, result: BatchValidationResult) -> None:
        """a revoke ahead of the grant for the same (role, contract) leaves a gap"""
        first_grant: Dict[Tuple[str, str], int] = {}
        first_revoke: Dict[Tuple[str, str], int] = {}
        for index, op in enumerate(self._operations):
            target = first_grant if op.type == OperationType.GRANT else first_revoke
            target.setdefault(op.pair_key, index)
        for pair, revoke_index in first_revoke.items():
            grant_index = first_grant.get(pair)
            if grant_index is not None and revoke_index < grant_index:
                ids = (self._operations[revoke_index].id, self._operations[grant_index].id)
                result.warnings.append(BatchValidationWarning(
                    "W004", f"Revoke precedes grant for role {pair[0][:10]}... on {self._operations[revoke_index].contract.name}", ids))
