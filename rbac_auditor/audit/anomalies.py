"""anomaly detection over the verified current state"""
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import config
from ..models.audit import (
    Anomaly,
    AnomalyType,
    CurrentStateEntry,
    DEFAULT_ADMIN_ROLE_HASH,
    Severity,
)
from ..registry import Registries

logger = logging.getLogger(__name__)

EXCESSIVE_ADMINS_ROLE = "Multiple Admin Roles"


class AnomalyDetector:
    """classifies entries against the registries; never mutates its input"""

    def __init__(
        self,
        registries: Registries,
        admin_keywords: Optional[Sequence[str]] = None,
        admin_threshold: Optional[int] = None,
    ):
        self.registries = registries
        keywords = admin_keywords if admin_keywords is not None else config.ADMIN_KEYWORDS
        self.admin_keywords = [k.upper() for k in keywords]
        self.admin_threshold = admin_threshold if admin_threshold is not None else config.ADMIN_THRESHOLD

    def is_admin_role(self, role_name: str) -> bool:
        upper = role_name.upper()
        return any(keyword in upper for keyword in self.admin_keywords)

    def _anomaly(self, entry: CurrentStateEntry, kind: AnomalyType, severity: Severity, description: str, role: Optional[str] = None) -> Anomaly:
        return Anomaly(
            type=kind,
            severity=severity,
            address=entry.address,
            label=entry.label,
            role=role or entry.role,
            role_hash=entry.role_hash,
            contract=entry.contract,
            contract_address=entry.contract_address,
            description=description,
        )

    def _address_anomaly(self, entry: CurrentStateEntry, network: str) -> Optional[Anomaly]:
        # first match wins
        who = entry.label or entry.address
        addresses = self.registries.addresses
        if addresses.is_deactivated(entry.address):
            return self._anomaly(
                entry, AnomalyType.DEACTIVATED, Severity.HIGH,
                f"Deactivated user {who} still has {entry.role} on {entry.contract}",
            )
        if addresses.is_deprecated(entry.address):
            return self._anomaly(
                entry, AnomalyType.DEPRECATED, Severity.HIGH,
                f"Deprecated address {who} still has {entry.role} on {entry.contract}",
            )
        if not addresses.is_known(entry.address) and not self.registries.contracts.is_known_contract(entry.address, network):
            severity = Severity.HIGH if self.is_admin_role(entry.role) else Severity.MEDIUM
            return self._anomaly(
                entry, AnomalyType.UNKNOWN_ADDRESS, severity,
                f"Unknown address has {entry.role} on {entry.contract}",
            )
        return None

    def _role_anomaly(self, entry: CurrentStateEntry) -> Optional[Anomaly]:
        if self.registries.roles.is_known_role(entry.role_hash):
            return None
        who = entry.label or entry.address
        return self._anomaly(
            entry, AnomalyType.UNKNOWN_ROLE, Severity.MEDIUM,
            f"Unknown role hash {entry.role_hash[:10]}... assigned to {who}",
            role=entry.role_hash,
        )

    def detect_anomalies(
        self,
        current_state: Sequence[CurrentStateEntry],
        network: str,
    ) -> Tuple[List[CurrentStateEntry], List[Anomaly]]:
        anomalies: List[Anomaly] = []
        marked: List[CurrentStateEntry] = []
        admin_counts: Dict[str, int] = {}
        first_entry: Dict[str, CurrentStateEntry] = {}

        for entry in current_state:
            found = [a for a in (self._address_anomaly(entry, network), self._role_anomaly(entry)) if a]
            anomalies.extend(found)

            if self.is_admin_role(entry.role):
                key = entry.contract_address.lower()
                admin_counts[key] = admin_counts.get(key, 0) + 1
                first_entry.setdefault(key, entry)

            marked.append(entry.annotated([a.description for a in found]) if found else entry)

        for key, count in admin_counts.items():
            if count <= self.admin_threshold:
                continue
            ref = first_entry[key]
            anomalies.append(Anomaly(
                type=AnomalyType.EXCESSIVE_ADMINS,
                severity=Severity.LOW,
                address=ref.contract_address,
                role=EXCESSIVE_ADMINS_ROLE,
                role_hash=DEFAULT_ADMIN_ROLE_HASH,
                contract=ref.contract,
                contract_address=ref.contract_address,
                description=f"{count} addresses have admin roles on {ref.contract} (threshold: {self.admin_threshold})",
            ))

        if anomalies:
            logger.info("%d anomalies across %d entries", len(anomalies), len(marked))
        return marked, anomalies
