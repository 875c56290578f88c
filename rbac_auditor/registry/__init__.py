"""read-only registries (known addresses, roles, contracts)"""
from .static import (
    Registries,
    StaticAddressRegistry,
    StaticRoleRegistry,
    StaticContractRegistry,
    contract_display_name,
    has_access_control,
    role_hash,
)
from .loader import load_registries, registries_from_dict

__all__ = [
    "Registries",
    "StaticAddressRegistry",
    "StaticRoleRegistry",
    "StaticContractRegistry",
    "contract_display_name",
    "has_access_control",
    "role_hash",
    "load_registries",
    "registries_from_dict",
]
