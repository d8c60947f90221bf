import pytest

from chainwatch.errors import ObserverDeliveryError
from chainwatch.models import InitSnapshot, StreamEvent
from chainwatch.stream.broadcaster import Broadcaster, Observer
from chainwatch.stream.classifier import classify_eth_transaction
from chainwatch.stream.history import BoundedHistory

from conftest import drain, drain_events, eth_tx


@pytest.fixture()
def feed():
    history = BoundedHistory(3)
    broadcaster = Broadcaster(lambda: InitSnapshot(txs=history.snapshot()))

    def publish(n):
        record = classify_eth_transaction(eth_tx(n), block_number=n, observed_at=n)
        broadcaster.publish(lambda: history.prepend(record), [StreamEvent.tx(record)])
        return record

    return history, broadcaster, publish


def test_connect_sends_init_snapshot_of_current_buffers(feed):
    history, broadcaster, publish = feed
    publish(1)
    publish(2)

    observer = Observer()
    snapshot = broadcaster.connect(observer)

    events = drain_events(observer)
    assert len(events) == 1
    assert events[0]["type"] == "init"
    assert [tx["txHash"] for tx in events[0]["data"]["txs"]] == [eth_tx(2).hash, eth_tx(1).hash]
    assert events[0]["data"]["alerts"] == []
    assert events[0]["data"]["btcTxs"] == []
    assert snapshot.txs == history.snapshot()
    assert broadcaster.observer_count == 1


def test_mid_stream_observer_sees_each_record_exactly_once(feed):
    _history, broadcaster, publish = feed
    early = Observer()
    broadcaster.connect(early)
    publish(1)
    publish(2)

    late = Observer()
    broadcaster.connect(late)
    publish(3)

    late_events = drain_events(late)
    init_hashes = [tx["txHash"] for tx in late_events[0]["data"]["txs"]]
    live_hashes = [event["data"]["txHash"] for event in late_events[1:]]
    assert init_hashes == [eth_tx(2).hash, eth_tx(1).hash]
    assert live_hashes == [eth_tx(3).hash]
    assert not set(init_hashes) & set(live_hashes)

    early_live = [event["data"]["txHash"] for event in drain_events(early)[1:]]
    assert early_live == [eth_tx(n).hash for n in (1, 2, 3)]


def test_closed_observer_is_dropped_without_affecting_others(feed):
    _history, broadcaster, publish = feed
    healthy = Observer(name="healthy")
    gone = Observer(name="gone")
    broadcaster.connect(healthy)
    broadcaster.connect(gone)
    gone.close()

    publish(1)

    assert broadcaster.observer_count == 1
    assert [event["type"] for event in drain_events(healthy)] == ["init", "tx"]


def test_full_backlog_drops_events_for_that_observer_only(feed):
    history, broadcaster, publish = feed
    slow = Observer(max_pending=2, name="slow")
    fast = Observer(max_pending=10, name="fast")
    broadcaster.connect(slow)
    broadcaster.connect(fast)

    for n in range(1, 5):
        publish(n)

    assert len(drain(slow)) == 2
    assert len(drain_events(fast)) == 5
    assert broadcaster.observer_count == 2
    assert len(history) == 3


def test_history_is_updated_even_without_observers(feed):
    history, broadcaster, publish = feed

    publish(1)

    assert broadcaster.observer_count == 0
    assert len(history) == 1


def test_disconnect_unregisters_and_closes(feed):
    _history, broadcaster, publish = feed
    observer = Observer()
    broadcaster.connect(observer)

    broadcaster.disconnect(observer)
    broadcaster.disconnect(observer)

    assert broadcaster.observer_count == 0
    assert observer.closed
    with pytest.raises(ObserverDeliveryError):
        observer.send("late")


def test_emit_without_history_update(feed):
    _history, broadcaster, _publish = feed
    observer = Observer()
    broadcaster.connect(observer)
    drain(observer)

    record = classify_eth_transaction(eth_tx(9), block_number=9, observed_at=9)
    assert broadcaster.emit(StreamEvent.alert(record)) == 1
    assert drain_events(observer)[0]["type"] == "alert"
