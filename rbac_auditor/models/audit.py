from enum import Enum
from dataclasses import dataclass, field, replace
from typing import List, Optional, Dict, Any, Tuple
from datetime import datetime, UTC
import json


# not a real role hash, marks entries found through owner()
OWNER_ROLE_HASH = "0x" + "ff" * 32
DEFAULT_ADMIN_ROLE_HASH = "0x" + "00" * 32
OWNER_ROLE_NAME = "OWNER"
UNKNOWN_CONTRACT = "Unknown Contract"


class EventAction(Enum):
    """role event kind"""
    GRANTED = "granted"
    REVOKED = "revoked"


class AnomalyType(Enum):
    """anomaly classification"""
    DEACTIVATED = "deactivated"
    DEPRECATED = "deprecated"
    UNKNOWN_ADDRESS = "unknown_address"
    UNKNOWN_ROLE = "unknown_role"
    EXCESSIVE_ADMINS = "excessive_admins"


class Severity(Enum):
    """severity classification"""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class HistoryEntry:
    """one RoleGranted / RoleRevoked log record"""
    action: EventAction
    role_hash: str
    role: str
    target_address: str
    sender_address: str
    contract: str
    contract_address: str
    block: int
    timestamp: int
    tx_hash: str
    log_index: int
    target_label: Optional[str] = None
    sender_label: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action.value,
            "role": self.role,
            "role_hash": self.role_hash,
            "target_address": self.target_address,
            "target_label": self.target_label,
            "sender_address": self.sender_address,
            "sender_label": self.sender_label,
            "contract": self.contract,
            "contract_address": self.contract_address,
            "block": self.block,
            "timestamp": self.timestamp,
            "tx_hash": self.tx_hash,
            "log_index": self.log_index,
        }


@dataclass(frozen=True)
class Candidate:
    """(address, role, contract) triple seen in a grant"""
    address: str
    role_hash: str
    contract_address: str

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.address.lower(), self.role_hash.lower(), self.contract_address.lower())


@dataclass(frozen=True)
class CurrentStateEntry:
    """role assignment confirmed by an on-chain read"""
    address: str
    role: str
    role_hash: str
    contract: str
    contract_address: str
    label: Optional[str] = None
    is_anomaly: bool = False
    anomaly_description: Optional[str] = None

    @property
    def is_owner_entry(self) -> bool:
        return self.role_hash.lower() == OWNER_ROLE_HASH

    def annotated(self, descriptions: List[str]) -> "CurrentStateEntry":
        return replace(self, is_anomaly=True, anomaly_description="; ".join(descriptions))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "label": self.label,
            "role": self.role,
            "role_hash": self.role_hash,
            "contract": self.contract,
            "contract_address": self.contract_address,
            "is_anomaly": self.is_anomaly,
            "anomaly_description": self.anomaly_description,
        }

    def __repr__(self) -> str:
        flag = " !" if self.is_anomaly else ""
        return f"CurrentStateEntry({self.address} {self.role}@{self.contract}{flag})"


@dataclass(frozen=True)
class Anomaly:
    """flagged entry or aggregate condition"""
    type: AnomalyType
    severity: Severity
    address: str
    role: str
    role_hash: str
    contract: str
    contract_address: str
    description: str
    label: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "address": self.address,
            "label": self.label,
            "role": self.role,
            "role_hash": self.role_hash,
            "contract": self.contract,
            "contract_address": self.contract_address,
            "description": self.description,
        }

    def __repr__(self) -> str:
        return f"Anomaly([{self.severity.value.upper()}] {self.type.value}: {self.description})"


@dataclass(frozen=True)
class AuditStats:
    active_permissions: int = 0
    historical_events: int = 0
    unique_roles: int = 0
    unique_addresses: int = 0
    anomalies_count: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "active_permissions": self.active_permissions,
            "historical_events": self.historical_events,
            "unique_roles": self.unique_roles,
            "unique_addresses": self.unique_addresses,
            "anomalies_count": self.anomalies_count,
        }


@dataclass(frozen=True)
class AuditResults:
    """point-in-time audit snapshot"""
    network: str
    contracts: Tuple[str, ...]
    current_state: Tuple[CurrentStateEntry, ...]
    history: Tuple[HistoryEntry, ...]
    anomalies: Tuple[Anomaly, ...]
    stats: AuditStats
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    audit_id: Optional[str] = None

    def entries_for(self, address: str) -> List[CurrentStateEntry]:
        target = address.lower()
        return [e for e in self.current_state if e.address.lower() == target]

    def get_high_severity(self) -> List[Anomaly]:
        return [a for a in self.anomalies if a.severity == Severity.HIGH]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "audit_id": self.audit_id,
            "network": self.network,
            "contracts": list(self.contracts),
            "timestamp": self.timestamp.isoformat(),
            "stats": self.stats.to_dict(),
            "current_state": [e.to_dict() for e in self.current_state],
            "anomalies": [a.to_dict() for a in self.anomalies],
            "history": [h.to_dict() for h in self.history],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def __repr__(self) -> str:
        return (
            f"AuditResults({self.network}, {len(self.contracts)} contracts, "
            f"{len(self.current_state)} active, {len(self.anomalies)} anomalies)"
        )
