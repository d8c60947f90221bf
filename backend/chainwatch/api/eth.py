"""Ethereum snapshot and status endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from chainwatch.errors import FetchError
from chainwatch.ingest.eth_rpc import network_name
from chainwatch.models import EthAlertListResponse, EthStatus, EthTxListResponse
from chainwatch.stream.classifier import LARGE_TX_THRESHOLD_ETH
from chainwatch.stream.monitor import get_monitor

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["ethereum"])


@router.get("/txs", response_model=EthTxListResponse)
def list_transactions() -> EthTxListResponse:
    """Return the most recent scanned transactions, newest first."""
    return EthTxListResponse(txs=get_monitor().recent_eth_txs())


@router.get("/alerts", response_model=EthAlertListResponse)
def list_alerts() -> EthAlertListResponse:
    """Return the most recent large-transfer alerts, newest first."""
    return EthAlertListResponse(alerts=get_monitor().eth_alerts())


@router.get("/status", response_model=EthStatus)
def chain_status() -> EthStatus:
    """Report the connected network and its current tip."""
    client = get_monitor().eth_client
    try:
        chain_id = client.get_chain_id()
        latest_block = client.get_tip()
    except FetchError as exc:
        LOGGER.error("Failed to fetch Ethereum status: %s", exc)
        raise HTTPException(status_code=502, detail="Failed to fetch status") from exc

    return EthStatus(
        chain_id=str(chain_id),
        name=network_name(chain_id),
        latest_block=latest_block,
        rpc_url=client.rpc_url,
        large_tx_threshold_eth=float(LARGE_TX_THRESHOLD_ETH),
    )


__all__ = ["router"]
