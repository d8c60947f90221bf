"""Bitcoin snapshot and status endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from chainwatch.errors import FetchError
from chainwatch.models import BtcStatus, BtcTxListResponse
from chainwatch.stream.classifier import LARGE_TX_THRESHOLD_BTC
from chainwatch.stream.monitor import get_monitor

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/api/btc", tags=["bitcoin"])


@router.get("/txs", response_model=BtcTxListResponse)
def list_transactions() -> BtcTxListResponse:
    """Return the most recent mempool transactions, newest first."""
    return BtcTxListResponse(txs=get_monitor().recent_btc_txs())


@router.get("/status", response_model=BtcStatus)
def chain_status() -> BtcStatus:
    """Report the chain tip and the size of the indexer's mempool."""
    client = get_monitor().btc_client
    try:
        height = client.get_tip_height()
        mempool = client.get_mempool_summary()
    except FetchError as exc:
        LOGGER.error("Failed to fetch Bitcoin status: %s", exc)
        raise HTTPException(status_code=502, detail="Failed to fetch btc status") from exc

    return BtcStatus(
        height=height,
        mempool_size=mempool["count"],
        mempool_vsize=mempool["vsize"],
        api_base=client.api_base,
        large_tx_threshold_btc=float(LARGE_TX_THRESHOLD_BTC),
    )


__all__ = ["router"]
