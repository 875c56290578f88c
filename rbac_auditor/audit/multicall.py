"""batched read-only calls through multicall3 aggregate3"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple
import itertools
import logging

import httpx
from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError
from eth_utils import keccak
from hexbytes import HexBytes

from ..chain_config import get_network, resolve_rpc
from ..config import config
from ..errors import SourceUnavailableError
from ..interfaces import CallResult, ContractCall, IBatchReader

logger = logging.getLogger(__name__)

AGGREGATE3_SIGNATURE = "aggregate3((address,bool,bytes)[])"
AGGREGATE3_INPUT = "(address,bool,bytes)[]"
AGGREGATE3_OUTPUT = "(bool,bytes)[]"

_request_ids = itertools.count(1)


def sel(sig: str) -> bytes:
    return keccak(text=sig)[:4]


def input_types(signature: str) -> List[str]:
    """hasRole(bytes32,address) -> ["bytes32", "address"]"""
    start = signature.index("(")
    inner = signature[start + 1:signature.rindex(")")]
    return [t.strip() for t in inner.split(",") if t.strip()]


def _coerce_arg(abi_type: str, value: Any) -> Any:
    if abi_type.startswith("bytes") and isinstance(value, str):
        return bytes(HexBytes(value))
    return value


def encode_call(call: ContractCall) -> bytes:
    types = input_types(call.function_signature)
    if len(types) != len(call.args):
        raise ValueError(
            f"{call.function_name}: expected {len(types)} args, got {len(call.args)}"
        )
    args = [_coerce_arg(t, v) for t, v in zip(types, call.args)]
    return sel(call.function_signature) + (abi_encode(types, args) if types else b"")


def encode_aggregate3(calls: Sequence[ContractCall]) -> bytes:
    packed = [(call.address, True, encode_call(call)) for call in calls]
    return sel(AGGREGATE3_SIGNATURE) + abi_encode([AGGREGATE3_INPUT], [packed])


def decode_aggregate3(raw: bytes) -> List[Tuple[bool, bytes]]:
    return list(abi_decode([AGGREGATE3_OUTPUT], raw)[0])


def decode_result(call: ContractCall, success: bool, return_data: bytes) -> CallResult:
    if not success:
        return CallResult(status="failure", error=f"{call.function_name} reverted")
    if not call.output_types:
        return CallResult(status="success", result=None)
    try:
        values = abi_decode(list(call.output_types), return_data)
    except (DecodingError, ValueError) as e:
        # empty return data from an address without code lands here
        return CallResult(status="failure", error=f"{call.function_name}: cannot decode result ({e})")
    result = values[0] if len(values) == 1 else tuple(values)
    return CallResult(status="success", result=result)


class Multicall3Reader(IBatchReader):
    """json-rpc eth_call against the network's multicall3 deployment"""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        rpc_urls: Optional[Dict[str, str]] = None,
        multicall_addresses: Optional[Dict[str, str]] = None,
        timeout_s: Optional[float] = None,
    ):
        self._client = client or httpx.AsyncClient(timeout=timeout_s or config.HTTP_TIMEOUT_SECONDS)
        self._owns_client = client is None
        self._rpc_urls = rpc_urls or {}
        self._multicall_addresses = multicall_addresses or {}

    def aggregator_address(self, network: str) -> str:
        return self._multicall_addresses.get(network) or get_network(network).multicall_address

    def rpc_url(self, network: str) -> str:
        return self._rpc_urls.get(network) or resolve_rpc(network)

    async def _eth_call(self, network: str, to: str, data: bytes) -> bytes:
        payload = {
            "jsonrpc": "2.0",
            "id": next(_request_ids),
            "method": "eth_call",
            "params": [{"to": to, "data": "0x" + data.hex()}, "latest"],
        }
        if config.DEBUG_RPC:
            logger.debug("eth_call %s (%d bytes)", to, len(data))
        try:
            response = await self._client.post(self.rpc_url(network), json=payload)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise SourceUnavailableError(f"rpc request failed: {e}", cause=e) from e

        if body.get("error"):
            err = body["error"]
            message = err.get("message") if isinstance(err, dict) else str(err)
            raise SourceUnavailableError(f"rpc error: {message}")
        result = body.get("result")
        if not isinstance(result, str):
            raise SourceUnavailableError("rpc response has no result")
        return bytes(HexBytes(result))

    async def read(self, network: str, calls: List[ContractCall]) -> List[CallResult]:
        if not calls:
            return []
        raw = await self._eth_call(network, self.aggregator_address(network), encode_aggregate3(calls))
        try:
            decoded = decode_aggregate3(raw)
        except (DecodingError, ValueError) as e:
            raise SourceUnavailableError(f"cannot decode aggregate3 response: {e}", cause=e) from e
        if len(decoded) != len(calls):
            raise SourceUnavailableError(
                f"aggregate3 returned {len(decoded)} results for {len(calls)} calls"
            )
        return [decode_result(call, success, data) for call, (success, data) in zip(calls, decoded)]

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
