"""operation factories

template-generated and hand-built operations go through the same two
factories, so both have identical shape: checksummed addresses, the fixed
grantRole/revokeRole method, and labels pulled from the registries.
"""

from typing import Optional

from eth_utils import to_checksum_address

from ..models.batch import (
    BatchOperation,
    ContractReference,
    METHOD_FOR_TYPE,
    OperationMetadata,
    OperationType,
    GRANT_ROLE_METHOD_NAME,
    REVOKE_ROLE_METHOD_NAME,
)
from ..registry import Registries
from .safe_schema import ContractMethod, MethodInput, SafeTransaction

_ROLE_ACCOUNT_INPUTS = [
    MethodInput(internalType="bytes32", name="role", type="bytes32"),
    MethodInput(internalType="address", name="account", type="address"),
]

GRANT_ROLE_METHOD = ContractMethod(inputs=_ROLE_ACCOUNT_INPUTS, name=GRANT_ROLE_METHOD_NAME, payable=False)
REVOKE_ROLE_METHOD = ContractMethod(inputs=_ROLE_ACCOUNT_INPUTS, name=REVOKE_ROLE_METHOD_NAME, payable=False)

_METHOD_DESCRIPTORS = {
    GRANT_ROLE_METHOD_NAME: GRANT_ROLE_METHOD,
    REVOKE_ROLE_METHOD_NAME: REVOKE_ROLE_METHOD,
}


def _create_operation(
    op_type: OperationType,
    contract: ContractReference,
    role_hash: str,
    account: str,
    metadata: Optional[OperationMetadata] = None,
    registries: Optional[Registries] = None,
) -> BatchOperation:
    checksummed_account = to_checksum_address(account)
    checksummed_contract = to_checksum_address(contract.address)

    # explicit metadata wins over registry lookups
    role_label = metadata.role_label if metadata and metadata.role_label else None
    account_label = metadata.account_label if metadata and metadata.account_label else None
    if registries is not None:
        role_label = role_label or registries.roles.get_role_name(role_hash)
        account_label = account_label or registries.addresses.get_label(checksummed_account)

    return BatchOperation(
        type=op_type,
        contract=ContractReference(address=checksummed_contract, name=contract.name),
        method=METHOD_FOR_TYPE[op_type],
        parameters={"role": role_hash, "account": checksummed_account},
        metadata=OperationMetadata(
            role_label=role_label,
            account_label=account_label,
            description=metadata.description if metadata else None,
        ),
    )


def create_grant_operation(
    contract: ContractReference,
    role_hash: str,
    account: str,
    metadata: Optional[OperationMetadata] = None,
    registries: Optional[Registries] = None,
) -> BatchOperation:
    return _create_operation(OperationType.GRANT, contract, role_hash, account, metadata, registries)


def create_revoke_operation(
    contract: ContractReference,
    role_hash: str,
    account: str,
    metadata: Optional[OperationMetadata] = None,
    registries: Optional[Registries] = None,
) -> BatchOperation:
    return _create_operation(OperationType.REVOKE, contract, role_hash, account, metadata, registries)


def operation_to_safe_transaction(operation: BatchOperation) -> SafeTransaction:
    method = _METHOD_DESCRIPTORS.get(operation.method)
    if method is None:
        raise ValueError(f"no safe method descriptor for {operation.method!r}")
    return SafeTransaction(
        to=operation.contract.address,
        value="0",
        data=None,
        contractMethod=method,
        contractInputsValues=dict(operation.parameters),
    )
