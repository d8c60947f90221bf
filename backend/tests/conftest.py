import json
import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure the backend package is importable
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("SCANNERS_ENABLED", "false")
os.environ.setdefault("FRONTEND_DIR", str(ROOT / "tests" / "no-frontend"))

from chainwatch.errors import FetchError  # noqa: E402  pylint: disable=wrong-import-position
from chainwatch.ingest.btc_mempool import RawMempoolItem  # noqa: E402
from chainwatch.ingest.eth_rpc import RawBlock, RawEthTransaction  # noqa: E402
from chainwatch.main import app  # noqa: E402
from chainwatch.stream import monitor as monitor_module  # noqa: E402
from chainwatch.stream.monitor import ChainMonitor  # noqa: E402

WEI_PER_ETH = 10**18
SATS_PER_BTC = 10**8


def tx_hash(n):
    return "0x" + format(n, "064x")


def eth_tx(n, value_wei=0, to_address="0x" + "b" * 40):
    return RawEthTransaction(
        hash=tx_hash(n),
        from_address="0x" + "a" * 40,
        to_address=to_address,
        value_wei=value_wei,
    )


def mempool_item(txid, value_sats=0, fee_sats=250, vsize=140):
    return RawMempoolItem(txid=txid, value_sats=value_sats, fee_sats=fee_sats, vsize=vsize)


def drain(observer):
    """Pop every message queued for ``observer`` without waiting."""
    messages = []
    while not observer._queue.empty():
        messages.append(observer._queue.get_nowait())
    return messages


def drain_events(observer):
    return [json.loads(message) for message in drain(observer)]


class DummyEthClient:
    """In-memory chain: ``blocks`` maps height -> raw transactions in block order."""

    rpc_url = "http://rpc.test"

    def __init__(self, tip=100, blocks=None, chain_id=1):
        self.tip = tip
        self.chain_id = chain_id
        self.blocks = blocks or {}
        self.fail_on = set()
        self.calls = []

    def _maybe_fail(self, key, query):
        if key in self.fail_on:
            raise FetchError("ethereum", query, "simulated outage")

    def get_tip(self):
        self.calls.append(("tip",))
        self._maybe_fail("tip", "eth_blockNumber()")
        return self.tip

    def get_chain_id(self):
        self._maybe_fail("chain_id", "eth_chainId()")
        return self.chain_id

    def get_block(self, number):
        self.calls.append(("block", number))
        self._maybe_fail(number, f"eth_getBlockByNumber({hex(number)})")
        if number not in self.blocks:
            raise FetchError("ethereum", f"eth_getBlockByNumber({hex(number)})", "block not available yet")
        return RawBlock(number=number, transactions=[tx.hash for tx in self.blocks[number]])

    def get_transaction(self, hash_):
        self.calls.append(("tx", hash_))
        self._maybe_fail(hash_, f"eth_getTransactionByHash({hash_})")
        for txs in self.blocks.values():
            for tx in txs:
                if tx.hash == hash_:
                    return tx
        raise FetchError("ethereum", f"eth_getTransactionByHash({hash_})", "transaction not found")


class DummyMempoolClient:
    """Returns the next queued batch on each call, or the last one forever."""

    api_base = "http://mempool.test/api"

    def __init__(self, batches=None, height=850000, summary=None):
        self.batches = list(batches or [[]])
        self.height = height
        self.summary = summary or {"count": 12, "vsize": 3456}
        self.fail = False

    def fetch_recent(self):
        if self.fail:
            raise FetchError("bitcoin", "GET /mempool/recent", "simulated outage")
        if len(self.batches) > 1:
            return self.batches.pop(0)
        return self.batches[0]

    def get_tip_height(self):
        if self.fail:
            raise FetchError("bitcoin", "GET /blocks/tip/height", "simulated outage")
        return self.height

    def get_mempool_summary(self):
        return dict(self.summary)


@pytest.fixture()
def eth_client():
    return DummyEthClient()


@pytest.fixture()
def btc_client():
    return DummyMempoolClient()


@pytest.fixture()
def monitor(monkeypatch, eth_client, btc_client):
    instance = ChainMonitor(eth_client, btc_client, observer_queue_size=50)
    monkeypatch.setattr(monitor_module, "_MONITOR", instance)
    return instance


@pytest.fixture()
def client(monitor):
    return TestClient(app)
