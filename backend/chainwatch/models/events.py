"""Messages pushed over the real-time stream."""

from __future__ import annotations

from typing import List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .transactions import BtcTransaction, EthTransaction

EventType = Literal["init", "tx", "alert", "btc_tx"]


class InitSnapshot(BaseModel):
    """Recent history handed to an observer when it connects."""

    model_config = ConfigDict(
        frozen=True, populate_by_name=True, alias_generator=to_camel, serialize_by_alias=True
    )

    alerts: List[EthTransaction] = Field(default_factory=list)
    txs: List[EthTransaction] = Field(default_factory=list)
    btc_txs: List[BtcTransaction] = Field(default_factory=list)


class StreamEvent(BaseModel):
    """Envelope with a ``type`` discriminator and a ``data`` payload."""

    model_config = ConfigDict(frozen=True)

    type: EventType
    data: Union[InitSnapshot, EthTransaction, BtcTransaction]

    @classmethod
    def init(cls, snapshot: InitSnapshot) -> "StreamEvent":
        return cls(type="init", data=snapshot)

    @classmethod
    def tx(cls, record: EthTransaction) -> "StreamEvent":
        return cls(type="tx", data=record)

    @classmethod
    def alert(cls, record: EthTransaction) -> "StreamEvent":
        return cls(type="alert", data=record)

    @classmethod
    def btc_tx(cls, record: BtcTransaction) -> "StreamEvent":
        return cls(type="btc_tx", data=record)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


__all__ = ["EventType", "InitSnapshot", "StreamEvent"]
