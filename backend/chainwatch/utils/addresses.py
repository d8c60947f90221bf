"""Helpers for validating and normalizing Ethereum identifiers returned by RPC nodes."""

from __future__ import annotations

import re
from typing import Optional

ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")
TX_HASH_PATTERN = re.compile(r"^0x[a-fA-F0-9]{64}$")


def normalize_eth_address(value: str) -> str:
    """Validate and normalize an Ethereum address to lowercase hex."""
    if value is None:
        raise ValueError("Address cannot be null")
    address = value.strip()
    if not ADDRESS_PATTERN.fullmatch(address):
        raise ValueError(f"Invalid Ethereum address format: {value!r}")
    return address.lower()


def normalize_optional_address(value: Optional[str]) -> Optional[str]:
    """Like ``normalize_eth_address`` but maps a missing recipient to ``None``."""
    if value is None or not str(value).strip():
        return None
    return normalize_eth_address(value)


def normalize_tx_hash(value: str) -> str:
    """Validate a 32-byte transaction hash and return it lowercased."""
    if not isinstance(value, str) or not TX_HASH_PATTERN.fullmatch(value.strip()):
        raise ValueError(f"Invalid transaction hash: {value!r}")
    return value.strip().lower()


__all__ = ["normalize_eth_address", "normalize_optional_address", "normalize_tx_hash"]
