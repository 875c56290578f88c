"""batch templates

templates act only on what the audit snapshot shows the subject holds right
now; hypothetical operations go through the manual factories instead.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from eth_utils import to_checksum_address

from ..models.audit import AuditResults, CurrentStateEntry
from ..models.batch import BatchOperation, ContractReference
from ..registry import Registries
from .operations import create_grant_operation, create_revoke_operation


def current_permissions(
    results: AuditResults,
    address: str,
    contracts: Optional[Iterable[str]] = None,
    role_hash: Optional[str] = None,
) -> List[CurrentStateEntry]:
    """snapshot entries held by address, optionally narrowed by contract addresses and role

    owner() entries carry a sentinel hash and cannot be granted or revoked.
    """
    entries = [e for e in results.entries_for(to_checksum_address(address)) if not e.is_owner_entry]
    if role_hash:
        entries = [e for e in entries if e.role_hash.lower() == role_hash.lower()]
    selected = {to_checksum_address(c).lower() for c in (contracts or [])}
    if selected:
        entries = [e for e in entries if e.contract_address.lower() in selected]
    return entries


def revoke_all_template(
    results: AuditResults,
    address: str,
    contracts: Optional[Iterable[str]] = None,
    role_hash: Optional[str] = None,
    registries: Optional[Registries] = None,
) -> List[BatchOperation]:
    return [
        create_revoke_operation(
            ContractReference(address=entry.contract_address, name=entry.contract),
            entry.role_hash,
            address,
            registries=registries,
        )
        for entry in current_permissions(results, address, contracts, role_hash)
    ]


def rotation_template(
    results: AuditResults,
    old_address: str,
    new_address: str,
    contracts: Optional[Iterable[str]] = None,
    role_hash: Optional[str] = None,
    registries: Optional[Registries] = None,
) -> List[BatchOperation]:
    operations: List[BatchOperation] = []
    for entry in current_permissions(results, old_address, contracts, role_hash):
        contract = ContractReference(address=entry.contract_address, name=entry.contract)
        # grant first so the role is never unheld between the two calls
        operations.append(create_grant_operation(contract, entry.role_hash, new_address, registries=registries))
        operations.append(create_revoke_operation(contract, entry.role_hash, old_address, registries=registries))
    return operations


@dataclass(frozen=True)
class TemplateInfo:
    id: str
    name: str
    description: str
    generate: Callable[..., List[BatchOperation]]


TEMPLATES: Dict[str, TemplateInfo] = {
    "revoke-all": TemplateInfo(
        id="revoke-all",
        name="Revoke All Permissions",
        description="Remove all roles address currently has",
        generate=revoke_all_template,
    ),
    "rotation": TemplateInfo(
        id="rotation",
        name="Rotate Addresses",
        description="Transfer roles old address currently has to new address",
        generate=rotation_template,
    ),
}


def get_template(template_id: str) -> TemplateInfo:
    if template_id not in TEMPLATES:
        raise KeyError(f"Unknown template '{template_id}'. Available: {', '.join(TEMPLATES)}")
    return TEMPLATES[template_id]
