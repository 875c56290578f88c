"""audit correlation id"""

import asyncio
import re

import pytest

from rbac_auditor.utils.correlation import AuditContext, generate_audit_id, get_audit_id


def test_generate_audit_id():
    audit_id = generate_audit_id()
    assert re.fullmatch(r"[0-9a-f]{8}", audit_id)
    assert generate_audit_id() != audit_id


def test_context_sets_and_resets():
    assert get_audit_id() is None
    with AuditContext() as audit_id:
        assert get_audit_id() == audit_id
    assert get_audit_id() is None


def test_nested_context_restores_outer():
    with AuditContext("outer001"):
        with AuditContext("inner002"):
            assert get_audit_id() == "inner002"
        assert get_audit_id() == "outer001"


@pytest.mark.asyncio
async def test_tasks_inherit_id():
    async def read_id():
        await asyncio.sleep(0)
        return get_audit_id()

    with AuditContext("task0003"):
        ids = await asyncio.gather(read_id(), read_id())
    assert ids == ["task0003", "task0003"]
