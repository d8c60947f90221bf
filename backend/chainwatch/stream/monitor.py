"""Process-wide wiring of clients, scanners, histories and the broadcaster."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import List, Optional

from chainwatch.config import Settings, get_settings
from chainwatch.ingest.btc_mempool import MempoolClient
from chainwatch.ingest.eth_rpc import EthRpcClient
from chainwatch.models import BtcTransaction, EthTransaction, InitSnapshot
from chainwatch.stream.broadcaster import Broadcaster, Observer
from chainwatch.stream.scanner import BtcScanner, EthScanner

LOGGER = logging.getLogger(__name__)

INIT_ALERT_LIMIT = 50
INIT_TX_LIMIT = 200
INIT_BTC_TX_LIMIT = 200

_MONITOR: Optional["ChainMonitor"] = None


class ChainMonitor:
    """Owns both scanners and exposes read-only views of their histories."""

    def __init__(
        self,
        eth_client: EthRpcClient,
        btc_client: MempoolClient,
        eth_interval: float = 5.0,
        btc_interval: float = 7.0,
        observer_queue_size: int = 1000,
    ) -> None:
        self.observer_queue_size = observer_queue_size
        self.broadcaster = Broadcaster(self.init_snapshot)
        self.eth_scanner = EthScanner(eth_client, self.broadcaster, interval=eth_interval)
        self.btc_scanner = BtcScanner(btc_client, self.broadcaster, interval=btc_interval)
        self._tasks: List[asyncio.Task] = []

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChainMonitor":
        return cls(
            EthRpcClient(settings.rpc_url, timeout=settings.http_timeout),
            MempoolClient(settings.btc_api_base, timeout=settings.http_timeout),
            eth_interval=settings.eth_poll_interval,
            btc_interval=settings.btc_poll_interval,
            observer_queue_size=settings.observer_queue_size,
        )

    @property
    def eth_client(self) -> EthRpcClient:
        return self.eth_scanner.client

    @property
    def btc_client(self) -> MempoolClient:
        return self.btc_scanner.client

    def recent_eth_txs(self) -> List[EthTransaction]:
        return self.eth_scanner.transactions.snapshot()

    def eth_alerts(self) -> List[EthTransaction]:
        return self.eth_scanner.alerts.snapshot()

    def recent_btc_txs(self) -> List[BtcTransaction]:
        return self.btc_scanner.transactions.snapshot()

    def init_snapshot(self) -> InitSnapshot:
        """Capped view of every buffer; called by the broadcaster under its lock."""
        return InitSnapshot(
            alerts=self.eth_scanner.alerts.snapshot(INIT_ALERT_LIMIT),
            txs=self.eth_scanner.transactions.snapshot(INIT_TX_LIMIT),
            btc_txs=self.btc_scanner.transactions.snapshot(INIT_BTC_TX_LIMIT),
        )

    def new_observer(self, name: str = "observer") -> Observer:
        return Observer(max_pending=self.observer_queue_size, name=name)

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def start(self) -> None:
        """Launch both scanning loops on the running event loop."""
        if self.running:
            return
        self._tasks = [
            asyncio.create_task(self.eth_scanner.run(), name="eth-scanner"),
            asyncio.create_task(self.btc_scanner.run(), name="btc-scanner"),
        ]
        LOGGER.info("Chain monitor started")

    async def stop(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if tasks:
            LOGGER.info("Chain monitor stopped")


def get_monitor() -> ChainMonitor:
    """Return the shared monitor, building it from settings on first use."""
    global _MONITOR

    if _MONITOR is None:
        _MONITOR = ChainMonitor.from_settings(get_settings())

    return _MONITOR


async def shutdown_monitor() -> None:
    """Stop the shared monitor's loops if it has been created."""
    global _MONITOR

    if _MONITOR is not None:
        await _MONITOR.stop()
        _MONITOR = None


__all__ = ["ChainMonitor", "get_monitor", "shutdown_monitor"]
