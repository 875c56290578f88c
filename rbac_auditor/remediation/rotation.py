"""form-level rotation generator

two separately named entry points:

    generate_rotation_batch               roles from a verified audit snapshot
    generate_rotation_batch_from_registry roles guessed from the static registries

the registry path cannot know what the old address actually holds, so its
result is tagged source="registry" and always carries a warning. neither
entry point raises; problems come back as structured errors.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from eth_utils import to_checksum_address

from ..chain_config import get_network, normalize_network
from ..errors import UnknownNetworkError
from ..models.audit import AuditResults, OWNER_ROLE_HASH
from ..models.batch import Batch, ContractReference
from ..registry import Registries
from ..utils.validation import ValidationIssue, ValidationResult, is_valid_address, is_valid_role_hash
from .builder import BatchBuilder
from .operations import create_grant_operation, create_revoke_operation

logger = logging.getLogger(__name__)

SOURCE_AUDIT = "audit"
SOURCE_REGISTRY = "registry"

UNVERIFIED_WARNING = (
    "Roles were taken from the static registries, not from a verified audit. "
    "The batch may grant or revoke roles the old address does not actually hold."
)


@dataclass(frozen=True)
class RotationInput:
    old_address: str
    new_address: str
    role: Optional[str] = None
    contract_addresses: Optional[Sequence[str]] = None


@dataclass(frozen=True)
class RoleToRotate:
    contract: str
    contract_address: str
    role: str
    role_hash: str


@dataclass
class BatchGenerationResult:
    success: bool
    batch: Optional[Batch] = None
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    source: str = SOURCE_AUDIT

    @property
    def is_verified(self) -> bool:
        return self.source == SOURCE_AUDIT


def validate_rotation_input(rotation: RotationInput, network: Optional[str] = None) -> ValidationResult:
    """collects every problem instead of stopping at the first"""
    result = ValidationResult()

    old_ok = is_valid_address(rotation.old_address)
    new_ok = is_valid_address(rotation.new_address)
    if not rotation.old_address:
        result.add_error("REQUIRED", "old_address", "Old address is required")
    elif not old_ok:
        result.add_error("INVALID_ADDRESS", "old_address", f"Invalid old address: {rotation.old_address}")
    if not rotation.new_address:
        result.add_error("REQUIRED", "new_address", "New address is required")
    elif not new_ok:
        result.add_error("INVALID_ADDRESS", "new_address", f"Invalid new address: {rotation.new_address}")
    if old_ok and new_ok and rotation.old_address.lower() == rotation.new_address.lower():
        result.add_error("SAME_ADDRESS", "new_address", "Old and new addresses must be different")

    if rotation.role is not None and not is_valid_role_hash(rotation.role):
        result.add_error("INVALID_ROLE", "role", f"Invalid role hash: {rotation.role}")

    for address in rotation.contract_addresses or []:
        if not is_valid_address(address):
            result.add_error("INVALID_ADDRESS", "contract_addresses", f"Invalid contract address: {address}")

    if network is not None:
        try:
            get_network(network)
        except UnknownNetworkError:
            result.add_error("INVALID_NETWORK", "network", f"Unsupported network: {network}")

    return result


def _contract_selected(contract_address: str, contract_addresses: Optional[Sequence[str]]) -> bool:
    if not contract_addresses:
        return True
    return contract_address.lower() in {c.lower() for c in contract_addresses}


def discover_roles_to_rotate(
    old_address: str,
    role: Optional[str],
    audit_results: AuditResults,
    contract_addresses: Optional[Sequence[str]] = None,
) -> List[RoleToRotate]:
    """roles the snapshot shows old_address holding; owner() entries are not grantable roles"""
    found = []
    for entry in audit_results.entries_for(old_address):
        if entry.is_owner_entry:
            continue
        if role and entry.role_hash.lower() != role.lower():
            continue
        if not _contract_selected(entry.contract_address, contract_addresses):
            continue
        found.append(RoleToRotate(entry.contract, entry.contract_address, entry.role, entry.role_hash))
    return found


def discover_roles_from_registry(
    network: str,
    registries: Registries,
    role: Optional[str] = None,
    contract_addresses: Optional[Sequence[str]] = None,
) -> List[RoleToRotate]:
    """every (known role, auditable contract) pair; a guess, not a reading"""
    roles = {
        h: name for h, name in registries.roles.known_roles().items()
        if h.lower() != OWNER_ROLE_HASH
    }
    if role:
        roles = {role.lower(): registries.roles.display_name(role)}
    found = []
    for contract in registries.contracts.auditable_contracts(network):
        if not _contract_selected(contract.address, contract_addresses):
            continue
        for role_hash_value, role_name in roles.items():
            found.append(RoleToRotate(contract.name, contract.address, role_name, role_hash_value))
    return found


def _build(
    rotation: RotationInput,
    network: str,
    roles: List[RoleToRotate],
    registries: Optional[Registries],
    source: str,
) -> Batch:
    old = to_checksum_address(rotation.old_address)
    new = to_checksum_address(rotation.new_address)
    builder = BatchBuilder(
        network,
        name=f"Rotate {old[:8]} to {new[:8]}",
        description=f"Rotate {len(roles)} role(s) from {old} to {new} ({source})",
    )
    for item in roles:
        contract = ContractReference(address=item.contract_address, name=item.contract)
        builder.add_operation(create_grant_operation(contract, item.role_hash, new, registries=registries))
        builder.add_operation(create_revoke_operation(contract, item.role_hash, old, registries=registries))
    return builder.to_batch()


def _failure(validation: ValidationResult, source: str) -> BatchGenerationResult:
    return BatchGenerationResult(
        success=False,
        errors=list(validation.errors),
        warnings=list(validation.warnings),
        source=source,
    )


def generate_rotation_batch(
    rotation: RotationInput,
    network: str,
    audit_results: Optional[AuditResults],
    registries: Optional[Registries] = None,
) -> BatchGenerationResult:
    """verified path: only roles the snapshot shows old_address holding"""
    validation = validate_rotation_input(rotation, network)
    if audit_results is None:
        validation.add_error(
            "MISSING_AUDIT", "audit_results",
            "An audit snapshot is required; use the registry fallback for unverified rotation",
        )
    elif validation.valid and normalize_network(audit_results.network) != normalize_network(network):
        validation.add_error(
            "NETWORK_MISMATCH", "network",
            f"Audit snapshot is for {audit_results.network}, not {network}",
        )
    if not validation.valid:
        return _failure(validation, SOURCE_AUDIT)

    roles = discover_roles_to_rotate(rotation.old_address, rotation.role, audit_results, rotation.contract_addresses)
    if not roles:
        validation.add_error(
            "NO_ROLES", "old_address",
            f"{rotation.old_address} holds no matching roles in the audit snapshot",
        )
        return _failure(validation, SOURCE_AUDIT)

    if any(e.is_owner_entry for e in audit_results.entries_for(rotation.old_address)):
        validation.add_warning("Old address is a contract owner; ownership must be transferred separately")

    batch = _build(rotation, normalize_network(network), roles, registries, SOURCE_AUDIT)
    return BatchGenerationResult(success=True, batch=batch, warnings=list(validation.warnings), source=SOURCE_AUDIT)


def generate_rotation_batch_from_registry(
    rotation: RotationInput,
    network: str,
    registries: Registries,
) -> BatchGenerationResult:
    """unverified fallback: rotate every known role on every selected contract"""
    validation = validate_rotation_input(rotation, network)
    if not validation.valid:
        return _failure(validation, SOURCE_REGISTRY)

    network = normalize_network(network)
    roles = discover_roles_from_registry(network, registries, rotation.role, rotation.contract_addresses)
    if not roles:
        validation.add_error("NO_ROLES", "contract_addresses", f"No auditable contracts or roles registered for {network}")
        return _failure(validation, SOURCE_REGISTRY)

    logger.warning("building unverified rotation batch from registries (%d role/contract pairs)", len(roles))
    validation.add_warning(UNVERIFIED_WARNING)
    batch = _build(rotation, network, roles, registries, SOURCE_REGISTRY)
    return BatchGenerationResult(success=True, batch=batch, warnings=list(validation.warnings), source=SOURCE_REGISTRY)
