"""Polling loops that turn chain data into history entries and stream events."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from fastapi.concurrency import run_in_threadpool

from chainwatch.errors import FetchError
from chainwatch.ingest.btc_mempool import MempoolClient
from chainwatch.ingest.eth_rpc import EthRpcClient
from chainwatch.models import BtcTransaction, EthTransaction, StreamEvent
from chainwatch.stream.broadcaster import Broadcaster
from chainwatch.stream.classifier import (
    LARGE_TX_THRESHOLD_BTC,
    LARGE_TX_THRESHOLD_ETH,
    classify_eth_transaction,
    classify_mempool_item,
    now_ms,
)
from chainwatch.stream.cursor import BlockCursor, SeenTxids
from chainwatch.stream.history import ALERT_HISTORY_CAPACITY, TX_HISTORY_CAPACITY, BoundedHistory

LOGGER = logging.getLogger(__name__)


class PollingScanner(ABC):
    """Fixed-delay loop around ``tick``; a failed tick is logged and retried next time."""

    chain = "chain"

    def __init__(self, broadcaster: Broadcaster, interval: float) -> None:
        self.broadcaster = broadcaster
        self.interval = interval
        self.consecutive_failures = 0

    @abstractmethod
    async def tick(self) -> int:
        """Process everything new since the previous tick and return how many records were published."""

    def _describe_position(self) -> str:
        return ""

    async def run_once(self) -> bool:
        """Run one tick, absorbing every failure so the loop keeps going."""
        try:
            await self.tick()
        except FetchError as exc:
            self.consecutive_failures += 1
            LOGGER.warning(
                "%s scan failed%s (attempt %d): %s",
                self.chain,
                self._describe_position(),
                self.consecutive_failures,
                exc,
            )
            return False
        except Exception:
            self.consecutive_failures += 1
            LOGGER.exception("Unexpected %s scan error%s", self.chain, self._describe_position())
            return False

        if self.consecutive_failures:
            LOGGER.info("%s scan recovered after %d failed ticks", self.chain, self.consecutive_failures)
        self.consecutive_failures = 0
        return True

    async def run(self) -> None:
        LOGGER.info("Starting %s scanner (every %.1fs)", self.chain, self.interval)
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval)


class EthScanner(PollingScanner):
    """Walks new Ethereum blocks in order and publishes every transaction in them."""

    chain = "ethereum"

    def __init__(
        self,
        client: EthRpcClient,
        broadcaster: Broadcaster,
        interval: float = 5.0,
        threshold: Decimal = LARGE_TX_THRESHOLD_ETH,
        cursor: Optional[BlockCursor] = None,
    ) -> None:
        super().__init__(broadcaster, interval)
        self.client = client
        self.threshold = threshold
        self.cursor = cursor or BlockCursor()
        self.transactions: BoundedHistory[EthTransaction] = BoundedHistory(TX_HISTORY_CAPACITY)
        self.alerts: BoundedHistory[EthTransaction] = BoundedHistory(ALERT_HISTORY_CAPACITY)
        self._target_tip: Optional[int] = None

    def _describe_position(self) -> str:
        if self.cursor.last_block is None:
            return " before cursor initialization"
        if self._target_tip is None:
            return f" at cursor {self.cursor.last_block}"
        return f" in blocks {self.cursor.last_block + 1}..{self._target_tip}"

    async def tick(self) -> int:
        """Process blocks after the cursor up to the tip; the cursor moves only on success."""
        self._target_tip = None
        tip = await run_in_threadpool(self.client.get_tip)

        if not self.cursor.initialized:
            self.cursor.initialize(tip)
            LOGGER.info("Ethereum cursor initialized at block %d", tip)
            return 0

        blocks = self.cursor.pending_range(tip)
        if not blocks:
            return 0

        self._target_tip = tip
        published = 0
        for number in blocks:
            block = await run_in_threadpool(self.client.get_block, number)
            for tx_hash in block.transactions:
                raw = await run_in_threadpool(self.client.get_transaction, tx_hash)
                self._publish(classify_eth_transaction(raw, block.number, self.threshold))
                published += 1

        self.cursor.advance(tip)
        self._target_tip = None
        LOGGER.info("Scanned blocks %d..%d (%d transactions)", blocks.start, tip, published)
        return published

    def _publish(self, record: EthTransaction) -> None:
        events = [StreamEvent.tx(record)]
        if record.is_alert:
            events.insert(0, StreamEvent.alert(record))

        def apply() -> None:
            self.transactions.prepend(record)
            if record.is_alert:
                self.alerts.prepend(record)

        self.broadcaster.publish(apply, events)


class BtcScanner(PollingScanner):
    """Polls the recent-mempool window and publishes transactions not seen before.

    Bitcoin alerts are carried only by ``isAlert`` on each record; unlike
    Ethereum there is no separate alert history for this chain.
    """

    chain = "bitcoin"

    def __init__(
        self,
        client: MempoolClient,
        broadcaster: Broadcaster,
        interval: float = 7.0,
        threshold: Decimal = LARGE_TX_THRESHOLD_BTC,
    ) -> None:
        super().__init__(broadcaster, interval)
        self.client = client
        self.threshold = threshold
        self.seen = SeenTxids()
        self.transactions: BoundedHistory[BtcTransaction] = BoundedHistory(TX_HISTORY_CAPACITY)

    def _describe_position(self) -> str:
        return " fetching /mempool/recent"

    async def tick(self) -> int:
        items = await run_in_threadpool(self.client.fetch_recent)
        observed_at = now_ms()

        published = 0
        for item in items:
            if item.txid in self.seen:
                continue
            self._publish(classify_mempool_item(item, self.threshold, observed_at))
            published += 1

        if published:
            LOGGER.debug("Published %d new mempool transactions", published)
        return published

    def _publish(self, record: BtcTransaction) -> None:
        def apply() -> None:
            self.seen.add(record.txid)
            evicted = self.transactions.prepend(record)
            self.seen.forget(tx.txid for tx in evicted)

        self.broadcaster.publish(apply, [StreamEvent.btc_tx(record)])


__all__ = ["PollingScanner", "EthScanner", "BtcScanner"]
