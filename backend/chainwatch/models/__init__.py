"""Pydantic data models exposed by the chain monitor backend."""

from .transactions import BtcTransaction, EthTransaction
from .events import EventType, InitSnapshot, StreamEvent
from .status import (
	BtcStatus,
	BtcTxListResponse,
	EthAlertListResponse,
	EthStatus,
	EthTxListResponse,
)

__all__ = [
	"EthTransaction",
	"BtcTransaction",
	"EventType",
	"InitSnapshot",
	"StreamEvent",
	"EthTxListResponse",
	"EthAlertListResponse",
	"BtcTxListResponse",
	"EthStatus",
	"BtcStatus",
]
