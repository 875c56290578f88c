"""sequential execution: stop at first failure, no rollback"""

from typing import Dict, List, Optional

import pytest

from rbac_auditor.interfaces import ITransactionSender, TransactionReceipt
from rbac_auditor.models.batch import Batch, ContractReference, ExecutionState
from rbac_auditor.remediation.executor import BatchExecutor
from rbac_auditor.remediation.operations import create_grant_operation, create_revoke_operation
from tests.fakes import ADMIN_MULTISIG, ALICE, DATA_REGISTRY, MAINTENANCE_ROLE, NEW_OPERATOR, OPERATOR


class FakeSender(ITransactionSender):

    def __init__(self, fail_simulation_for: Optional[str] = None, revert_for: Optional[str] = None):
        self.fail_simulation_for = fail_simulation_for
        self.revert_for = revert_for
        self.sent: List[Dict[str, str]] = []
        self._hashes: Dict[str, str] = {}

    async def simulate(self, to, method, parameters):
        if parameters["account"] == self.fail_simulation_for:
            raise RuntimeError("AccessControl: sender is missing role")

    async def send(self, to, method, parameters):
        self.sent.append(dict(parameters))
        tx_hash = "0x" + f"{len(self.sent):064x}"
        self._hashes[tx_hash] = parameters["account"]
        return tx_hash

    async def wait_for_receipt(self, tx_hash):
        account = self._hashes[tx_hash]
        if account == self.revert_for:
            return TransactionReceipt(tx_hash=tx_hash, block_number=100, success=False)
        return TransactionReceipt(tx_hash=tx_hash, block_number=100 + len(self.sent))

    @property
    def sender_address(self):
        return ADMIN_MULTISIG


def make_batch():
    contract = ContractReference(DATA_REGISTRY, "DataRegistry")
    return Batch(
        name="rotation",
        network="mainnet",
        operations=[
            create_grant_operation(contract, MAINTENANCE_ROLE, NEW_OPERATOR),
            create_revoke_operation(contract, MAINTENANCE_ROLE, OPERATOR),
            create_revoke_operation(contract, MAINTENANCE_ROLE, ALICE),
        ],
    )


@pytest.mark.asyncio
async def test_all_succeed():
    batch = make_batch()
    result = await BatchExecutor(FakeSender()).execute(batch)

    assert result.summary.total == 3
    assert result.summary.successful == 3
    assert result.summary.failed == 0
    assert result.summary.skipped == 0
    assert result.executed_by == ADMIN_MULTISIG
    for op in batch.operations:
        assert op.execution.state == ExecutionState.SUCCESS
        assert op.execution.tx_hash
        assert op.execution.block_number is not None
    assert batch.execution_history == [result]


@pytest.mark.asyncio
async def test_simulation_failure_stops_run():
    batch = make_batch()
    sender = FakeSender(fail_simulation_for=OPERATOR)
    result = await BatchExecutor(sender).execute(batch)

    assert result.summary.successful == 1
    assert result.summary.failed == 1
    assert result.summary.skipped == 1
    states = [op.execution.state for op in batch.operations]
    assert states == [ExecutionState.SUCCESS, ExecutionState.FAILED, ExecutionState.PENDING]
    assert "simulation failed" in batch.operations[1].execution.error
    # nothing after the failure was sent
    assert [p["account"] for p in sender.sent] == [NEW_OPERATOR]


@pytest.mark.asyncio
async def test_reverted_receipt_fails():
    batch = make_batch()
    result = await BatchExecutor(FakeSender(revert_for=NEW_OPERATOR)).execute(batch)

    first = batch.operations[0].execution
    assert first.state == ExecutionState.FAILED
    assert first.error == "transaction reverted"
    assert first.tx_hash
    assert result.summary.skipped == 2


@pytest.mark.asyncio
async def test_history_accumulates():
    batch = make_batch()
    executor = BatchExecutor(FakeSender())
    await executor.execute(batch)
    await executor.execute(batch)
    assert len(batch.execution_history) == 2
