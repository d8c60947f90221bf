"""Fan-out of stream events to connected observers.

History mutation and fan-out happen under one lock, and connecting observers
take the same lock to snapshot history and subscribe. Every record therefore
reaches an observer exactly once per connection: either inside its ``init``
message or as a live event queued after it.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Callable, Iterable, Optional, Set

from chainwatch.errors import ObserverDeliveryError
from chainwatch.models import InitSnapshot, StreamEvent

LOGGER = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 1000


class Observer:
    """Outbound mailbox for one client connection.

    ``send`` never blocks: it queues the serialized message or raises
    ``ObserverDeliveryError`` when the observer is closed or too far behind.
    """

    def __init__(self, max_pending: int = DEFAULT_QUEUE_SIZE, name: str = "observer") -> None:
        self.name = name
        self._queue: "asyncio.Queue[str]" = asyncio.Queue(maxsize=max_pending)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, message: str) -> None:
        if self._closed:
            raise ObserverDeliveryError(f"{self.name} is closed")
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull as exc:
            raise ObserverDeliveryError(f"{self.name} backlog is full") from exc

    async def receive(self) -> str:
        return await self._queue.get()

    def close(self) -> None:
        self._closed = True


class Broadcaster:
    """Registry of observers plus the atomic publish step used by the scanners."""

    def __init__(self, snapshot_provider: Callable[[], InitSnapshot]) -> None:
        self._snapshot_provider = snapshot_provider
        self._observers: Set[Observer] = set()
        self._lock = threading.Lock()

    @property
    def observer_count(self) -> int:
        with self._lock:
            return len(self._observers)

    def connect(self, observer: Observer) -> InitSnapshot:
        """Queue the init snapshot for ``observer`` and subscribe it to live events."""
        with self._lock:
            snapshot = self._snapshot_provider()
            observer.send(StreamEvent.init(snapshot).to_json())
            self._observers.add(observer)
            count = len(self._observers)
        LOGGER.info("Observer %s connected (%d connected)", observer.name, count)
        return snapshot

    def disconnect(self, observer: Observer) -> None:
        observer.close()
        with self._lock:
            if observer not in self._observers:
                return
            self._observers.discard(observer)
            count = len(self._observers)
        LOGGER.info("Observer %s disconnected (%d connected)", observer.name, count)

    def publish(self, apply: Optional[Callable[[], None]], events: Iterable[StreamEvent]) -> int:
        """Run ``apply`` (the history update) and fan out ``events`` as one step.

        Returns the number of successful deliveries. Delivery failures are
        isolated per observer; closed observers are dropped from the registry.
        """
        payloads = [event.to_json() for event in events]
        delivered = 0
        with self._lock:
            if apply is not None:
                apply()
            stale = []
            for observer in self._observers:
                for payload in payloads:
                    try:
                        observer.send(payload)
                        delivered += 1
                    except ObserverDeliveryError as exc:
                        LOGGER.debug("Dropped event for %s: %s", observer.name, exc)
                        if observer.closed:
                            stale.append(observer)
                            break
            for observer in stale:
                self._observers.discard(observer)
        return delivered

    def emit(self, event: StreamEvent) -> int:
        return self.publish(None, [event])


__all__ = ["Broadcaster", "Observer", "DEFAULT_QUEUE_SIZE"]
