"""current state verification

every entry produced here corresponds to an on-chain read that returned true
at query time; nothing is inferred from history alone.
"""
import logging
from typing import List, Sequence

from eth_utils import to_checksum_address

from ..errors import VerificationError
from ..interfaces import ContractCall, IBatchReader
from ..models.audit import Candidate, CurrentStateEntry, OWNER_ROLE_HASH, OWNER_ROLE_NAME
from ..registry import Registries

logger = logging.getLogger(__name__)

HAS_ROLE_SIGNATURE = "hasRole(bytes32,address)"
OWNER_SIGNATURE = "owner()"


class StateVerifier:
    """hasRole batch (fatal on failure) plus best-effort owner() probe"""

    def __init__(self, reader: IBatchReader, registries: Registries):
        self.reader = reader
        self.registries = registries

    def _entry(self, network: str, address: str, role: str, role_hash: str, contract_address: str) -> CurrentStateEntry:
        return CurrentStateEntry(
            address=address,
            label=self.registries.best_address_label(address, network),
            role=role,
            role_hash=role_hash,
            contract=self.registries.contract_name(contract_address, network),
            contract_address=contract_address,
        )

    async def _verify_roles(self, network: str, candidates: Sequence[Candidate]) -> List[CurrentStateEntry]:
        calls = [
            ContractCall(
                address=c.contract_address,
                function_signature=HAS_ROLE_SIGNATURE,
                function_name="hasRole",
                args=(c.role_hash, c.address),
                output_types=("bool",),
            )
            for c in candidates
        ]
        try:
            results = await self.reader.read(network, calls)
        except Exception as e:
            logger.error("hasRole batch failed on %s: %s", network, e)
            raise VerificationError("Failed to verify current state", cause=e) from e

        entries = []
        for candidate, result in zip(candidates, results):
            if result.ok and result.result is True:
                entries.append(self._entry(
                    network,
                    candidate.address,
                    self.registries.roles.display_name(candidate.role_hash),
                    candidate.role_hash,
                    candidate.contract_address,
                ))
        return entries

    async def _probe_owners(self, network: str, contract_addresses: Sequence[str]) -> List[CurrentStateEntry]:
        calls = [
            ContractCall(
                address=address,
                function_signature=OWNER_SIGNATURE,
                function_name="owner",
                output_types=("address",),
            )
            for address in contract_addresses
        ]
        try:
            results = await self.reader.read(network, calls)
        except Exception as e:
            # ownership is optional enrichment
            logger.debug("owner() checks failed on %s: %s", network, e)
            return []

        entries = []
        for contract_address, result in zip(contract_addresses, results):
            if not result.ok or not result.result:
                continue
            entries.append(self._entry(
                network,
                to_checksum_address(result.result),
                OWNER_ROLE_NAME,
                OWNER_ROLE_HASH,
                contract_address,
            ))
        return entries

    async def verify_current_state(self, network: str, candidates: Sequence[Candidate]) -> List[CurrentStateEntry]:
        if not candidates:
            return []

        entries = await self._verify_roles(network, candidates)

        unique_contracts: List[str] = []
        seen = set()
        for candidate in candidates:
            key = candidate.contract_address.lower()
            if key not in seen:
                seen.add(key)
                unique_contracts.append(candidate.contract_address)

        owners = await self._probe_owners(network, unique_contracts)
        logger.info(
            "verified %d of %d candidates, %d owner entries",
            len(entries), len(candidates), len(owners),
        )
        return entries + owners
