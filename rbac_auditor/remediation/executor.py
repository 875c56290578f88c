"""sequential batch execution

each operation is simulated, sent, and confirmed before the next one starts.
the first failure stops the run; operations after it stay pending and are
counted as skipped. nothing is rolled back.
"""

import logging
from typing import List

from ..interfaces import ITransactionSender
from ..models.batch import (
    Batch,
    BatchExecutionResult,
    BatchOperation,
    ExecutionState,
    ExecutionStatus,
    ExecutionSummary,
    now_ms,
)

logger = logging.getLogger(__name__)


class BatchExecutor:

    def __init__(self, sender: ITransactionSender):
        self.sender = sender

    async def _execute_one(self, op: BatchOperation) -> BatchOperation:
        status = ExecutionStatus().advance(ExecutionState.SIMULATING)
        try:
            await self.sender.simulate(op.contract.address, op.method, dict(op.parameters))
        except Exception as e:
            logger.warning("simulation failed for %r: %s", op, e)
            return op.with_execution(status.advance(ExecutionState.FAILED, error=f"simulation failed: {e}"))

        status = status.advance(ExecutionState.AWAITING_SIGNATURE)
        try:
            tx_hash = await self.sender.send(op.contract.address, op.method, dict(op.parameters))
        except Exception as e:
            logger.warning("send failed for %r: %s", op, e)
            return op.with_execution(status.advance(ExecutionState.FAILED, error=str(e)))

        status = status.advance(ExecutionState.EXECUTING, tx_hash=tx_hash)
        try:
            receipt = await self.sender.wait_for_receipt(tx_hash)
        except Exception as e:
            logger.warning("no receipt for %s: %s", tx_hash, e)
            return op.with_execution(status.advance(ExecutionState.FAILED, tx_hash=tx_hash, error=str(e)))

        if not receipt.success:
            return op.with_execution(status.advance(
                ExecutionState.FAILED, tx_hash=tx_hash, error=receipt.error or "transaction reverted"))
        return op.with_execution(status.advance(
            ExecutionState.SUCCESS, tx_hash=tx_hash, block_number=receipt.block_number))

    async def execute(self, batch: Batch) -> BatchExecutionResult:
        executed: List[BatchOperation] = []
        successful = failed = 0
        stopped = False

        for op in batch.operations:
            if stopped:
                executed.append(op.with_execution(ExecutionStatus()))
                continue
            done = await self._execute_one(op)
            executed.append(done)
            if done.execution.state == ExecutionState.SUCCESS:
                successful += 1
            else:
                failed += 1
                stopped = True
                logger.error("batch %r stopped at %r: %s", batch.name, op, done.execution.error)

        summary = ExecutionSummary(
            total=len(executed),
            successful=successful,
            failed=failed,
            skipped=len(executed) - successful - failed,
        )
        result = BatchExecutionResult(
            executed_at=now_ms(),
            executed_by=self.sender.sender_address,
            operations=executed,
            summary=summary,
        )
        batch.operations = executed
        batch.execution_history.append(result)
        batch.touch()
        logger.info("batch %r: %d/%d succeeded, %d skipped", batch.name, successful, summary.total, summary.skipped)
        return result
