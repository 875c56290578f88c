"""end to end: explorer logs + multicall reads over a mocked http layer, then remediation export"""

import json

import httpx
import pytest
from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from hexbytes import HexBytes

from rbac_auditor.audit import Auditor, BlockscoutLogSource, EVENT_TOPICS, Multicall3Reader
from rbac_auditor.errors import AuditError, VerificationError
from rbac_auditor.models.audit import AnomalyType, EventAction, OWNER_ROLE_HASH
from rbac_auditor.remediation import (
    BatchBuilder,
    RotationInput,
    generate_rotation_batch,
    revoke_all_template,
    write_safe_json,
)
from tests.fakes import (
    ADMIN_MULTISIG,
    ALICE,
    DATA_REGISTRY,
    MAINTENANCE_ROLE,
    NEW_OPERATOR,
    OPERATOR,
    REFINEMENT_ROLE,
    STRANGER,
    TEE_POOL,
    make_log,
)

EXPLORER = "https://explorer.test/api"
RPC = "https://rpc.test"

HAS_ROLE_SELECTOR = bytes.fromhex("91d14854")
OWNER_SELECTOR = bytes.fromhex("8da5cb5b")


class FakeChain:
    """explorer getLogs + eth_call(aggregate3) behind one MockTransport"""

    def __init__(self, logs, held, owners, fail_explorer_for=(), rpc_error=None):
        self.logs = logs
        self.held = {(a.lower(), r.lower(), c.lower()) for a, r, c in held}
        self.owners = {c.lower(): o for c, o in owners.items()}
        self.fail_explorer_for = {c.lower() for c in fail_explorer_for}
        self.rpc_error = rpc_error
        self.rpc_calls = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return self._get_logs(request)
        return self._eth_call(request)

    def _get_logs(self, request):
        address = request.url.params["address"].lower()
        if address in self.fail_explorer_for:
            return httpx.Response(502, text="bad gateway")
        records = self.logs.get((address, request.url.params["topic0"]), [])
        if not records:
            return httpx.Response(200, json={"status": "0", "message": "No logs found", "result": []})
        return httpx.Response(200, json={"status": "1", "message": "OK", "result": records})

    def _eth_call(self, request):
        self.rpc_calls += 1
        body = json.loads(request.content)
        if self.rpc_error:
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "error": {"message": self.rpc_error}})

        data = bytes(HexBytes(body["params"][0]["data"]))
        (calls,) = abi_decode(["(address,bool,bytes)[]"], data[4:])
        results = [self._answer(target, calldata) for target, _, calldata in calls]
        encoded = abi_encode(["(bool,bytes)[]"], [results])
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": "0x" + encoded.hex()})

    def _answer(self, target, calldata):
        selector, args = calldata[:4], calldata[4:]
        if selector == HAS_ROLE_SELECTOR:
            role, account = abi_decode(["bytes32", "address"], args)
            held = (account.lower(), "0x" + role.hex(), target.lower()) in self.held
            return (True, abi_encode(["bool"], [held]))
        if selector == OWNER_SELECTOR and target.lower() in self.owners:
            return (True, abi_encode(["address"], [self.owners[target.lower()]]))
        return (False, b"")


def logs_by_query(*records):
    grouped = {}
    for action, record in records:
        grouped.setdefault((record["address"], EVENT_TOPICS[action]), []).append(record)
    return grouped


GRANTED, REVOKED = EventAction.GRANTED, EventAction.REVOKED

LOGS = logs_by_query(
    (GRANTED, make_log(DATA_REGISTRY, MAINTENANCE_ROLE, OPERATOR, block=10)),
    (GRANTED, make_log(DATA_REGISTRY, MAINTENANCE_ROLE, ALICE, block=11)),
    (GRANTED, make_log(DATA_REGISTRY, MAINTENANCE_ROLE, STRANGER, block=12)),
    (REVOKED, make_log(DATA_REGISTRY, MAINTENANCE_ROLE, STRANGER, block=13, action=REVOKED)),
    (GRANTED, make_log(TEE_POOL, REFINEMENT_ROLE, OPERATOR, block=20)),
)

HELD = [
    (OPERATOR, MAINTENANCE_ROLE, DATA_REGISTRY),
    (ALICE, MAINTENANCE_ROLE, DATA_REGISTRY),
    (OPERATOR, REFINEMENT_ROLE, TEE_POOL),
]


async def run_audit(chain, registries, contracts=None):
    async with httpx.AsyncClient(transport=httpx.MockTransport(chain.handler)) as client:
        source = BlockscoutLogSource(client=client, base_urls={"mainnet": EXPLORER})
        reader = Multicall3Reader(client=client, rpc_urls={"mainnet": RPC})
        return await Auditor(source, reader, registries).run_audit("mainnet", contracts)


@pytest.mark.asyncio
async def test_audit_then_rotate_and_export(registries, tmp_path):
    chain = FakeChain(LOGS, HELD, owners={TEE_POOL: ADMIN_MULTISIG})
    results = await run_audit(chain, registries)

    # one aggregate3 for hasRole, one for owner()
    assert chain.rpc_calls == 2
    assert [h.block for h in results.history] == [20, 13, 12, 11, 10]
    assert results.history[0].target_label == "Operator"

    state = {(e.address, e.role_hash, e.contract) for e in results.current_state}
    assert state == {
        (OPERATOR, MAINTENANCE_ROLE, "DataRegistry"),
        (ALICE, MAINTENANCE_ROLE, "DataRegistry"),
        (OPERATOR, REFINEMENT_ROLE, "TeePool"),
        (ADMIN_MULTISIG, OWNER_ROLE_HASH, "TeePool"),
    }
    assert [a.type for a in results.anomalies] == [AnomalyType.DEACTIVATED]
    assert results.anomalies[0].address == ALICE
    assert results.stats.active_permissions == 4
    assert results.stats.historical_events == 5

    rotation = generate_rotation_batch(RotationInput(OPERATOR, NEW_OPERATOR), "mainnet", results, registries)
    assert rotation.success and rotation.is_verified

    builder = BatchBuilder.from_batch(rotation.batch)
    builder.add_operations(revoke_all_template(results, ALICE, registries=registries))
    check = builder.validate(results)
    assert check.valid
    assert check.warnings == []

    path = write_safe_json(builder.to_batch(), tmp_path)
    exported = json.loads(path.read_text())
    assert exported["chainId"] == "1480"
    assert [tx["contractMethod"]["name"] for tx in exported["transactions"]] == [
        "grantRole", "revokeRole", "grantRole", "revokeRole", "revokeRole",
    ]
    assert exported["transactions"][-1]["contractInputsValues"]["account"] == ALICE


@pytest.mark.asyncio
async def test_explorer_failure_skips_contract(registries):
    chain = FakeChain(LOGS, HELD, owners={}, fail_explorer_for=[TEE_POOL])
    results = await run_audit(chain, registries)

    assert {h.contract for h in results.history} == {"DataRegistry"}
    assert {e.contract for e in results.current_state} == {"DataRegistry"}


@pytest.mark.asyncio
async def test_bad_role_topics_skipped(registries):
    logs = {key: list(records) for key, records in LOGS.items()}
    logs[(DATA_REGISTRY.lower(), EVENT_TOPICS[GRANTED])] += [
        make_log(DATA_REGISTRY, "0xnothex", STRANGER, block=30),
        make_log(DATA_REGISTRY, "0x12", STRANGER, block=31),
    ]
    chain = FakeChain(logs, HELD, owners={})
    results = await run_audit(chain, registries, contracts="DataRegistry")

    assert [h.block for h in results.history] == [13, 12, 11, 10]
    assert {e.address for e in results.current_state} == {OPERATOR, ALICE}


@pytest.mark.asyncio
async def test_rpc_error_fails_audit(registries):
    chain = FakeChain(LOGS, HELD, owners={}, rpc_error="execution reverted")
    with pytest.raises(AuditError) as exc_info:
        await run_audit(chain, registries, contracts="DataRegistry")
    assert isinstance(exc_info.value, VerificationError)
