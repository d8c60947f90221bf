"""Progress markers for the two chains. Pure state, no I/O."""

from __future__ import annotations

from typing import Iterable, Optional, Set


class BlockCursor:
    """Last fully scanned block of the account chain.

    ``None`` means the scanner has not seen the chain yet; the first tick
    adopts the tip without backfilling anything older.
    """

    def __init__(self, last_block: Optional[int] = None) -> None:
        self._last_block = last_block

    @property
    def last_block(self) -> Optional[int]:
        return self._last_block

    @property
    def initialized(self) -> bool:
        return self._last_block is not None

    def initialize(self, tip: int) -> None:
        if self._last_block is not None:
            raise RuntimeError("cursor already initialized")
        self._last_block = tip

    def pending_range(self, tip: int) -> range:
        """Blocks after the cursor up to and including ``tip``."""
        if self._last_block is None or tip <= self._last_block:
            return range(0)
        return range(self._last_block + 1, tip + 1)

    def advance(self, tip: int) -> None:
        if self._last_block is None:
            raise RuntimeError("cursor not initialized")
        if tip < self._last_block:
            raise ValueError(f"cursor cannot move backwards ({self._last_block} -> {tip})")
        self._last_block = tip


class SeenTxids:
    """Dedup set for mempool txids, pruned alongside the history it mirrors."""

    def __init__(self) -> None:
        self._ids: Set[str] = set()

    def __contains__(self, txid: object) -> bool:
        return txid in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def add(self, txid: str) -> None:
        self._ids.add(txid)

    def forget(self, txids: Iterable[str]) -> None:
        for txid in txids:
            self._ids.discard(txid)


__all__ = ["BlockCursor", "SeenTxids"]
