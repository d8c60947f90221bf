"""WebSocket endpoint streaming transactions and alerts to connected clients."""

from __future__ import annotations

import asyncio
import contextlib
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from chainwatch.errors import ObserverDeliveryError
from chainwatch.stream.broadcaster import Observer
from chainwatch.stream.monitor import get_monitor

LOGGER = logging.getLogger(__name__)

router = APIRouter(tags=["stream"])


async def _pump(websocket: WebSocket, observer: Observer) -> None:
    """Forward queued messages to the socket until it stops accepting them."""
    while True:
        message = await observer.receive()
        try:
            await websocket.send_text(message)
        except (WebSocketDisconnect, RuntimeError, OSError) as exc:
            LOGGER.debug("Stopped streaming to %s: %s", observer.name, exc)
            observer.close()
            return


@router.websocket("/ws/alerts")
async def stream_alerts(websocket: WebSocket) -> None:
    """Send an ``init`` snapshot, then every ``tx``/``alert``/``btc_tx`` event as it happens."""
    monitor = get_monitor()
    await websocket.accept()

    peer = websocket.client
    observer = monitor.new_observer(name=f"{peer.host}:{peer.port}" if peer else "observer")
    try:
        monitor.broadcaster.connect(observer)
    except ObserverDeliveryError as exc:
        LOGGER.warning("Could not queue init snapshot for %s: %s", observer.name, exc)
        await websocket.close(code=1011)
        return

    writer = asyncio.create_task(_pump(websocket, observer))
    try:
        while True:
            # Clients have nothing to say; reading only detects the disconnect.
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    except WebSocketDisconnect:
        pass
    finally:
        monitor.broadcaster.disconnect(observer)
        writer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await writer


__all__ = ["router"]
