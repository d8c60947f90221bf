"""Response schemas for the snapshot and chain status endpoints."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .transactions import BtcTransaction, EthTransaction


class EthTxListResponse(BaseModel):
    """Recent Ethereum transactions, newest first."""

    txs: List[EthTransaction]


class EthAlertListResponse(BaseModel):
    """Recent Ethereum large-transfer alerts, newest first."""

    alerts: List[EthTransaction]


class BtcTxListResponse(BaseModel):
    """Recent Bitcoin mempool transactions, newest first."""

    txs: List[BtcTransaction]


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, serialize_by_alias=True)


class EthStatus(_CamelModel):
    """Connectivity summary for the Ethereum RPC endpoint."""

    chain_id: str
    name: str
    latest_block: int = Field(..., ge=0)
    rpc_url: str
    large_tx_threshold_eth: float


class BtcStatus(_CamelModel):
    """Connectivity summary for the Bitcoin REST indexer."""

    chain: str = "bitcoin"
    height: int = Field(..., ge=0)
    mempool_size: int = Field(default=0, ge=0)
    mempool_vsize: int = Field(default=0, ge=0)
    api_base: str
    large_tx_threshold_btc: float


__all__ = [
    "EthTxListResponse",
    "EthAlertListResponse",
    "BtcTxListResponse",
    "EthStatus",
    "BtcStatus",
]
