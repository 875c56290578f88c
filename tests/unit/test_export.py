"""safe transaction builder export"""

import json

import pytest
from pydantic import ValidationError

from rbac_auditor.models.batch import Batch, ContractReference
from rbac_auditor.remediation.export import export_to_safe_json, generate_safe_filename, write_safe_json
from rbac_auditor.remediation.operations import GRANT_ROLE_METHOD, create_grant_operation, create_revoke_operation
from rbac_auditor.remediation.safe_schema import SafeTransaction
from tests.fakes import DATA_REGISTRY, MAINTENANCE_ROLE, NEW_OPERATOR, OPERATOR

# 2025-10-20 12:00:00 utc
CREATED_AT = 1760961600000


@pytest.fixture
def batch():
    contract = ContractReference(DATA_REGISTRY.lower(), "DataRegistry")
    return Batch(
        name="Q4 Permission Cleanup!",
        network="mainnet",
        description="rotate operator",
        created_at=CREATED_AT,
        operations=[
            create_grant_operation(contract, MAINTENANCE_ROLE, NEW_OPERATOR),
            create_revoke_operation(contract, MAINTENANCE_ROLE, OPERATOR),
        ],
    )


def test_transactions_follow_batch_order(batch):
    data = export_to_safe_json(batch).to_dict()

    assert data["version"] == "1.0"
    assert data["chainId"] == "1480"
    assert data["createdAt"] == CREATED_AT
    methods = [tx["contractMethod"]["name"] for tx in data["transactions"]]
    assert methods == ["grantRole", "revokeRole"]
    for tx, op in zip(data["transactions"], batch.operations):
        assert tx["to"] == DATA_REGISTRY
        assert tx["value"] == "0"
        assert tx["data"] is None
        assert tx["contractInputsValues"] == {"role": op.role, "account": op.account}


def test_meta_block(batch):
    meta = export_to_safe_json(batch).to_dict()["meta"]
    assert meta["name"] == "Q4 Permission Cleanup!"
    assert meta["description"] == "rotate operator"
    assert meta["txBuilderVersion"]
    assert meta["createdFromSafeAddress"] == ""
    assert meta["createdFromOwnerAddress"] == ""
    assert meta["checksum"] == ""


def test_moksha_chain_id(batch):
    batch.network = "moksha"
    assert export_to_safe_json(batch).chain_id == "14800"


def test_empty_batch_exports_no_transactions():
    empty = Batch(name="empty", network="mainnet", created_at=CREATED_AT)
    assert export_to_safe_json(empty).transactions == []


def test_generate_filename(batch):
    assert generate_safe_filename(batch) == "Q4-Permission-Cleanup-mainnet-2025-10-20.json"


def test_generate_filename_truncates_name(batch):
    batch.name = "x" * 80
    assert generate_safe_filename(batch) == "x" * 50 + "-mainnet-2025-10-20.json"


def test_write_into_directory(batch, tmp_path):
    path = write_safe_json(batch, tmp_path)
    assert path.parent == tmp_path
    assert path.name == "Q4-Permission-Cleanup-mainnet-2025-10-20.json"

    data = json.loads(path.read_text())
    assert len(data["transactions"]) == 2
    assert "contractMethod" in data["transactions"][0]


def test_write_explicit_file(batch, tmp_path):
    target = tmp_path / "nested" / "rotation.json"
    assert write_safe_json(batch, target) == target
    assert json.loads(target.read_text())["chainId"] == "1480"


def test_safe_transaction_rejects_bad_checksum():
    with pytest.raises(ValidationError):
        SafeTransaction(
            to="0x5AAeb6053F3E94C9b9A09f33669435E7Ef1BeAed",
            contractMethod=GRANT_ROLE_METHOD,
            contractInputsValues={"role": MAINTENANCE_ROLE, "account": OPERATOR},
        )
