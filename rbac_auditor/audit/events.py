"""role event collection (layer 1)

fetches RoleGranted / RoleRevoked logs per contract from the block explorer
log api and turns them into history entries.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx
from eth_utils import keccak, to_checksum_address

from ..chain_config import get_network
from ..config import config
from ..errors import SourceUnavailableError
from ..interfaces import ILogSource
from ..models.audit import Candidate, EventAction, HistoryEntry
from ..registry import Registries
from ..utils.validation import is_valid_role_hash

logger = logging.getLogger(__name__)

EVENT_TOPICS = {
    EventAction.GRANTED: "0x" + keccak(text="RoleGranted(bytes32,address,address)").hex(),
    EventAction.REVOKED: "0x" + keccak(text="RoleRevoked(bytes32,address,address)").hex(),
}

_HEX_DIGITS = set("0123456789abcdefABCDEF")


class MalformedLogError(ValueError):
    """log record does not have the RoleGranted/RoleRevoked shape"""


def is_no_logs_message(message: Optional[str]) -> bool:
    """status "0" with "No logs found" / "No records found" is an empty result, not an error"""
    if not message:
        return False
    lowered = message.lower()
    return "no" in lowered and any(word in lowered for word in ("records", "logs", "found"))


class BlockscoutLogSource(ILogSource):
    """etherscan-compatible getLogs client"""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout_s: Optional[float] = None,
        base_urls: Optional[Dict[str, str]] = None,
    ):
        self._client = client or httpx.AsyncClient(timeout=timeout_s or config.HTTP_TIMEOUT_SECONDS)
        self._owns_client = client is None
        self._base_urls = base_urls or {}

    def _api_url(self, network: str) -> str:
        return self._base_urls.get(network) or get_network(network).explorer_api

    async def get_logs(self, network: str, address: str, topic0: str) -> List[Dict[str, Any]]:
        params = {
            "module": "logs",
            "action": "getLogs",
            "address": address,
            "topic0": topic0,
            "fromBlock": "0",
            "toBlock": "latest",
        }
        try:
            response = await self._client.get(self._api_url(network), params=params)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise SourceUnavailableError(f"log query failed for {address}: {e}", cause=e) from e

        if not isinstance(payload, dict):
            raise SourceUnavailableError(f"unexpected log response for {address}")

        if payload.get("status") != "1":
            if is_no_logs_message(payload.get("message")):
                return []
            raise SourceUnavailableError(f"explorer api error for {address}: {payload.get('message')}")

        return payload.get("result") or []

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def topic_to_address(topic: str) -> str:
    """low 20 bytes of a 32-byte padded topic"""
    if not isinstance(topic, str) or not topic.startswith("0x") or len(topic) != 66:
        raise MalformedLogError(f"topic is not a 32-byte word: {topic!r}")
    body = topic[2:]
    if not set(body) <= _HEX_DIGITS:
        raise MalformedLogError(f"topic is not hex: {topic!r}")
    return to_checksum_address("0x" + body[-40:])


def _hex_int(value: Any, field_name: str, allow_empty: bool = False) -> int:
    if not isinstance(value, str):
        raise MalformedLogError(f"{field_name} is not a hex string: {value!r}")
    if allow_empty and value in ("", "0x"):
        return 0
    try:
        return int(value, 16)
    except ValueError as e:
        raise MalformedLogError(f"{field_name} is not hex: {value!r}") from e


def parse_role_event(
    raw: Dict[str, Any],
    action: EventAction,
    network: str,
    registries: Registries,
) -> HistoryEntry:
    # topics: [event_signature, role_hash, account, sender]
    topics = raw.get("topics") or []
    if len(topics) < 4 or any(t is None for t in topics[:4]):
        raise MalformedLogError(f"expected 4 topics, got {len(topics)}")

    if not is_valid_role_hash(topics[1]):
        raise MalformedLogError(f"role topic is not a 32-byte word: {topics[1]!r}")
    role_hash = topics[1].lower()
    target = topic_to_address(topics[2])
    sender = topic_to_address(topics[3])

    raw_contract = raw.get("address")
    if not isinstance(raw_contract, str):
        raise MalformedLogError("log record has no contract address")
    contract_address = to_checksum_address(raw_contract)

    return HistoryEntry(
        action=action,
        role_hash=role_hash,
        role=registries.roles.display_name(role_hash),
        target_address=target,
        target_label=registries.best_address_label(target, network),
        sender_address=sender,
        sender_label=registries.best_address_label(sender, network),
        contract=registries.contract_name(contract_address, network),
        contract_address=contract_address,
        block=_hex_int(raw.get("blockNumber"), "blockNumber"),
        timestamp=_hex_int(raw.get("timeStamp"), "timeStamp"),
        tx_hash=str(raw.get("transactionHash", "")),
        log_index=_hex_int(raw.get("logIndex"), "logIndex", allow_empty=True),
    )


class EventCollector:
    """concurrent per-(contract, event kind) log fetch"""

    def __init__(self, log_source: ILogSource, registries: Registries):
        self.log_source = log_source
        self.registries = registries

    async def _fetch_pair(self, network: str, contract_address: str, action: EventAction) -> List[HistoryEntry]:
        try:
            records = await self.log_source.get_logs(network, contract_address, EVENT_TOPICS[action])
        except Exception as e:
            # one bad contract never aborts the run
            logger.warning("Skipping %s (%s): %s", contract_address, action.value, e)
            return []

        entries = []
        for raw in records:
            try:
                entries.append(parse_role_event(raw, action, network, self.registries))
            except MalformedLogError as e:
                logger.warning(
                    "Skipping malformed %s log in tx %s on %s: %s",
                    action.value, raw.get("transactionHash", "?"), contract_address, e,
                )
        return entries

    async def fetch_role_events(self, network: str, contract_addresses: Iterable[str]) -> List[HistoryEntry]:
        tasks = [
            self._fetch_pair(network, address, action)
            for address in contract_addresses
            for action in (EventAction.GRANTED, EventAction.REVOKED)
        ]
        results = await asyncio.gather(*tasks)

        history: List[HistoryEntry] = []
        for entries in results:
            history.extend(entries)

        # newest first, no tie-break inside a block
        history.sort(key=lambda h: h.block, reverse=True)
        logger.info("collected %d role events from %d queries", len(history), len(tasks))
        return history


def extract_role_candidates(history: Iterable[HistoryEntry]) -> List[Candidate]:
    """unique (address, role, contract) triples from grants; revokes never seed a candidate"""
    candidates: Dict[tuple, Candidate] = {}
    for entry in history:
        if entry.action != EventAction.GRANTED:
            continue
        candidate = Candidate(
            address=entry.target_address,
            role_hash=entry.role_hash,
            contract_address=entry.contract_address,
        )
        candidates.setdefault(candidate.key, candidate)
    return list(candidates.values())
