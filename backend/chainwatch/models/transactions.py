"""Normalized transaction records published to observers and the HTTP API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_serializer
from pydantic.alias_generators import to_camel

ETH_AMOUNT_PATTERN = r"^\d+\.\d{4}$"
BTC_AMOUNT_PATTERN = r"^\d+\.\d{8}$"


class _StreamRecord(BaseModel):
    """Shared configuration: immutable, camelCase on the wire, rule only when alerting."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        serialize_by_alias=True,
    )

    id: str
    is_alert: bool = False
    rule: Optional[str] = None
    created_at: int = Field(..., ge=0, description="Observation time in ms since epoch")

    @model_serializer(mode="wrap")
    def _omit_missing_rule(self, handler):
        data = handler(self)
        if data.get("rule") is None:
            data.pop("rule", None)
        return data


class EthTransaction(_StreamRecord):
    """Ethereum transaction observed in a scanned block."""

    tx_hash: str
    block_number: int = Field(..., ge=0)
    from_address: str = Field(..., alias="from", description="Sender address")
    to_address: Optional[str] = Field(
        None, alias="to", description="Recipient address, null for contract creation"
    )
    value_eth: str = Field(..., pattern=ETH_AMOUNT_PATTERN)


class BtcTransaction(_StreamRecord):
    """Bitcoin mempool transaction reported by the REST indexer."""

    txid: str
    value_btc: str = Field(..., pattern=BTC_AMOUNT_PATTERN)
    fee_btc: str = Field(..., pattern=BTC_AMOUNT_PATTERN)
    vsize: int = Field(..., ge=0)


__all__ = ["EthTransaction", "BtcTransaction"]
