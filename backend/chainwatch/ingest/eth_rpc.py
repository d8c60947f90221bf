"""Minimal Ethereum JSON-RPC client used by the block scanner and the status endpoint."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

import requests

from chainwatch.errors import FetchError
from chainwatch.utils.addresses import (
    normalize_eth_address,
    normalize_optional_address,
    normalize_tx_hash,
)

LOGGER = logging.getLogger(__name__)

SOURCE = "ethereum"

KNOWN_NETWORKS = {
    1: "mainnet",
    17000: "holesky",
    11155111: "sepolia",
}


@dataclass(frozen=True)
class RawBlock:
    """Block header with the transaction hashes in canonical order."""

    number: int
    transactions: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class RawEthTransaction:
    """Fields of ``eth_getTransactionByHash`` the classifier needs."""

    hash: str
    from_address: str
    to_address: Optional[str]
    value_wei: int


def parse_quantity(value: Any) -> int:
    """Decode a JSON-RPC hex quantity (``"0x1a"``) into an int."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid quantity: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.lower().startswith("0x"):
        return int(value, 16)
    raise ValueError(f"Invalid quantity: {value!r}")


class EthRpcClient:
    """Blocking JSON-RPC client; every failure surfaces as ``FetchError``."""

    source = SOURCE

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 15.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.timeout = timeout
        self._session = session or requests.Session()
        self._ids = itertools.count(1)

    def _call(self, method: str, params: List[Any]) -> Any:
        query = f"{method}({', '.join(str(p) for p in params)})"
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}

        try:
            response = self._session.post(self.rpc_url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise FetchError(SOURCE, query, f"network error: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise FetchError(SOURCE, query, "response is not valid JSON") from exc

        if not isinstance(body, dict):
            raise FetchError(SOURCE, query, f"unexpected response: {body!r}")

        error = body.get("error")
        if error:
            detail = error.get("message") if isinstance(error, dict) else error
            raise FetchError(SOURCE, query, f"rpc error: {detail}")

        if "result" not in body:
            raise FetchError(SOURCE, query, "response has no result")

        return body["result"]

    def get_tip(self) -> int:
        """Return the current block height."""
        result = self._call("eth_blockNumber", [])
        try:
            return parse_quantity(result)
        except ValueError as exc:
            raise FetchError(SOURCE, "eth_blockNumber()", str(exc)) from exc

    def get_chain_id(self) -> int:
        result = self._call("eth_chainId", [])
        try:
            return parse_quantity(result)
        except ValueError as exc:
            raise FetchError(SOURCE, "eth_chainId()", str(exc)) from exc

    def get_block(self, number: int) -> RawBlock:
        """Fetch a block header and its ordered transaction hashes."""
        query = f"eth_getBlockByNumber({hex(number)})"
        result = self._call("eth_getBlockByNumber", [hex(number), False])
        if result is None:
            raise FetchError(SOURCE, query, "block not available yet")

        try:
            hashes = []
            for entry in result.get("transactions") or []:
                # Some nodes hand back full objects even when hashes were requested.
                raw_hash = entry.get("hash") if isinstance(entry, dict) else entry
                hashes.append(normalize_tx_hash(raw_hash))
            return RawBlock(number=parse_quantity(result["number"]), transactions=hashes)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise FetchError(SOURCE, query, f"malformed block: {exc}") from exc

    def get_transaction(self, tx_hash: str) -> RawEthTransaction:
        """Fetch sender, recipient and value for a transaction hash."""
        query = f"eth_getTransactionByHash({tx_hash})"
        result = self._call("eth_getTransactionByHash", [tx_hash])
        if result is None:
            raise FetchError(SOURCE, query, "transaction not found")

        try:
            return RawEthTransaction(
                hash=normalize_tx_hash(result["hash"]),
                from_address=normalize_eth_address(result["from"]),
                to_address=normalize_optional_address(result.get("to")),
                value_wei=parse_quantity(result.get("value") or "0x0"),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise FetchError(SOURCE, query, f"malformed transaction: {exc}") from exc


def network_name(chain_id: int) -> str:
    return KNOWN_NETWORKS.get(chain_id, "unknown")


__all__ = [
    "EthRpcClient",
    "RawBlock",
    "RawEthTransaction",
    "network_name",
    "parse_quantity",
]
