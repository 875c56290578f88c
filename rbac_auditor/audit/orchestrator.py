"""audit orchestrator

collector -> extractor -> verifier -> detector, strictly in sequence, folded
into one frozen AuditResults snapshot.
"""
import logging
from typing import Iterable, List, Optional, Sequence, Union

from ..chain_config import normalize_network
from ..errors import AuditError, NoContractsSelectedError
from ..interfaces import ContractConfig, IBatchReader, ILogSource
from ..models.audit import AuditResults, AuditStats, CurrentStateEntry, HistoryEntry, Anomaly
from ..registry import Registries
from ..utils.correlation import AuditContext
from .anomalies import AnomalyDetector
from .events import EventCollector, extract_role_candidates
from .state import StateVerifier

logger = logging.getLogger(__name__)

ALL_CONTRACTS = "all"

ContractFilter = Optional[Union[str, Sequence[str]]]


def compute_stats(
    current_state: Sequence[CurrentStateEntry],
    history: Sequence[HistoryEntry],
    anomalies: Sequence[Anomaly],
) -> AuditStats:
    return AuditStats(
        active_permissions=len(current_state),
        historical_events=len(history),
        unique_roles=len({e.role_hash.lower() for e in current_state}),
        unique_addresses=len({e.address.lower() for e in current_state}),
        anomalies_count=len(anomalies),
    )


def resolve_contracts(registries: Registries, network: str, contract_filter: ContractFilter = None) -> List[ContractConfig]:
    """auditable contracts, optionally narrowed by name; "all" or None means no filter"""
    contracts = registries.contracts.auditable_contracts(network)
    if contract_filter is None:
        return contracts
    names: Iterable[str] = [contract_filter] if isinstance(contract_filter, str) else contract_filter
    wanted = {n.strip().lower() for n in names if n and n.strip()}
    if not wanted or ALL_CONTRACTS in wanted:
        return contracts
    return [c for c in contracts if c.name.lower() in wanted]


class Auditor:
    """runs one point-in-time audit for a network"""

    def __init__(
        self,
        log_source: ILogSource,
        reader: IBatchReader,
        registries: Registries,
        detector: Optional[AnomalyDetector] = None,
    ):
        self.registries = registries
        self.collector = EventCollector(log_source, registries)
        self.verifier = StateVerifier(reader, registries)
        self.detector = detector or AnomalyDetector(registries)

    async def run_audit(self, network: str, contract_filter: ContractFilter = None) -> AuditResults:
        network = normalize_network(network)
        contracts = resolve_contracts(self.registries, network, contract_filter)
        if not contracts:
            raise NoContractsSelectedError(
                f"No contracts selected for audit on {network} (filter: {contract_filter!r})"
            )

        with AuditContext() as audit_id:
            logger.info("[%s] auditing %d contracts on %s", audit_id, len(contracts), network)
            try:
                history = await self.collector.fetch_role_events(network, [c.address for c in contracts])
                candidates = extract_role_candidates(history)
                logger.info("[%s] %d history entries, %d candidates", audit_id, len(history), len(candidates))

                current_state = await self.verifier.verify_current_state(network, candidates)
                marked_state, anomalies = self.detector.detect_anomalies(current_state, network)
            except AuditError:
                raise
            except Exception as e:
                logger.error("[%s] audit failed: %s", audit_id, e)
                raise AuditError(f"Audit failed on {network}: {e}", cause=e) from e

            results = AuditResults(
                network=network,
                contracts=tuple(c.name for c in contracts),
                current_state=tuple(marked_state),
                history=tuple(history),
                anomalies=tuple(anomalies),
                stats=compute_stats(marked_state, history, anomalies),
                audit_id=audit_id,
            )
            logger.info("[%s] %r", audit_id, results)
            return results
