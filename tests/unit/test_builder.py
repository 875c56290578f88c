"""batch builder editing and validation codes"""

from dataclasses import replace

from rbac_auditor.models.batch import ContractReference, ExecutionState, ExecutionStatus
from rbac_auditor.remediation.builder import BatchBuilder
from rbac_auditor.remediation.operations import create_grant_operation, create_revoke_operation
from tests.fakes import (
    ALICE,
    DATA_REGISTRY,
    MAINTENANCE_ROLE,
    NEW_OPERATOR,
    OPERATOR,
    TEE_POOL,
)

REGISTRY_REF = ContractReference(DATA_REGISTRY, "DataRegistry")


def grant(account=NEW_OPERATOR, role=MAINTENANCE_ROLE, contract=REGISTRY_REF):
    return create_grant_operation(contract, role, account)


def revoke(account=OPERATOR, role=MAINTENANCE_ROLE, contract=REGISTRY_REF):
    return create_revoke_operation(contract, role, account)


class TestEditing:
    def test_add_remove(self):
        builder = BatchBuilder("mainnet", "cleanup")
        first = builder.add_operation(grant())
        builder.add_operations([revoke(), revoke(account=ALICE)])
        assert len(builder) == 3
        assert builder.remove_operation(first)
        assert not builder.remove_operation(first)
        assert len(builder) == 2

    def test_move_operation_to_index(self):
        builder = BatchBuilder("mainnet")
        ids = builder.add_operations([grant(), revoke(), revoke(account=ALICE)])
        assert builder.move_operation_to_index(ids[2], 0)
        assert [op.id for op in builder.get_operations()] == [ids[2], ids[0], ids[1]]
        assert builder.move_operation_to_index(ids[2], 99)
        assert builder.get_operations()[-1].id == ids[2]
        assert not builder.move_operation_to_index("missing", 0)

    def test_to_batch_and_back(self):
        builder = BatchBuilder("vana", "Rotation", "move operator")
        builder.add_operations([grant(), revoke()])
        batch = builder.to_batch(created_by=OPERATOR)

        assert batch.network == "mainnet"
        assert batch.name == "Rotation"
        assert batch.description == "move operator"
        assert batch.created_by == OPERATOR
        assert len(batch.operations) == 2

        done = ExecutionStatus().advance(ExecutionState.SIMULATING)
        batch.operations[0] = batch.operations[0].with_execution(done)
        again = BatchBuilder.from_batch(batch)
        again.set_name("Rotation v2")
        rebuilt = again.to_batch()

        assert rebuilt.id == batch.id
        assert rebuilt.created_at == batch.created_at
        assert rebuilt.name == "Rotation v2"
        assert all(op.execution is None for op in rebuilt.operations)

    def test_clear(self):
        builder = BatchBuilder("mainnet")
        builder.add_operation(grant())
        builder.clear()
        assert builder.get_operations() == []


class TestValidate:
    def test_empty_batch(self):
        result = BatchBuilder("mainnet").validate()
        assert not result.valid
        assert result.codes() == ["E001"]

    def test_invalid_address_and_role(self):
        builder = BatchBuilder("mainnet")
        bad = replace(grant(), parameters={"role": "0x1234", "account": "0xnot-an-address"})
        builder.add_operation(bad)
        result = builder.validate()
        assert not result.valid
        assert sorted(e.code for e in result.errors) == ["E002", "E003"]
        assert all(e.operation_id == bad.id for e in result.errors)

    def test_duplicates_warn(self):
        builder = BatchBuilder("mainnet")
        builder.add_operations([revoke(), revoke()])
        result = builder.validate()
        assert result.valid
        assert [w.code for w in result.warnings] == ["W001"]
        assert len(result.warnings[0].operation_ids) == 2

    def test_snapshot_checks(self, snapshot):
        builder = BatchBuilder("mainnet")
        builder.add_operations([
            revoke(account=ALICE),          # not held
            grant(account=OPERATOR),        # already held
            revoke(account=OPERATOR),       # held
        ])
        codes = [w.code for w in builder.validate(snapshot).warnings]
        assert "W002" in codes
        assert "W003" in codes
        assert codes.count("W002") == 1

    def test_revoke_before_grant(self):
        builder = BatchBuilder("mainnet")
        builder.add_operations([revoke(), grant()])
        assert [w.code for w in builder.validate().warnings] == ["W004"]

    def test_rotation_order_clean(self):
        builder = BatchBuilder("mainnet")
        tee = ContractReference(TEE_POOL, "TeePool")
        builder.add_operations([grant(), revoke(), grant(contract=tee), revoke(contract=tee)])
        result = builder.validate()
        assert result.valid
        assert result.warnings == []


def test_bad_checksum_account_is_e002():
    builder = BatchBuilder("mainnet")
    builder.add_operation(replace(grant(), parameters={
        "role": MAINTENANCE_ROLE,
        "account": "0x5AAeb6053F3E94C9b9A09f33669435E7Ef1BeAed",
    }))
    assert builder.validate().codes() == ["E002"]
