"""Static large-transfer rule applied to every observed transaction."""

from __future__ import annotations

import time
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal, localcontext
from typing import Optional

from chainwatch.ingest.btc_mempool import RawMempoolItem
from chainwatch.ingest.eth_rpc import RawEthTransaction
from chainwatch.models import BtcTransaction, EthTransaction

LARGE_TX_THRESHOLD_ETH = Decimal(100)
LARGE_TX_THRESHOLD_BTC = Decimal(10)

WEI_DECIMALS = 18
SATOSHI_DECIMALS = 8
ETH_DISPLAY_PLACES = 4
BTC_DISPLAY_PLACES = 8


@dataclass(frozen=True)
class Classification:
    amount: str
    is_alert: bool
    rule: Optional[str] = None


def now_ms() -> int:
    return int(time.time() * 1000)


def from_base_units(units: int, decimals: int) -> Decimal:
    """Exact decimal value of an integer amount expressed in 10**-decimals units."""
    if units < 0:
        raise ValueError(f"Amount cannot be negative: {units}")
    with localcontext() as ctx:
        ctx.prec = 80
        return Decimal(units).scaleb(-decimals)


def format_amount(value: Decimal, places: int) -> str:
    """Fixed-point string with exactly ``places`` decimals, truncated, never exponential.

    Truncation differs from half-up display rounding: 1.23456 ETH renders as
    ``1.2345``, not ``1.2346``. A value just under the alert threshold never
    displays as the threshold itself.
    """
    with localcontext() as ctx:
        ctx.prec = 80
        quantized = value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_DOWN)
    return f"{quantized:f}"


def classify(value: Decimal, threshold: Decimal, places: int, rule: str) -> Classification:
    """Flag ``value`` when it meets the threshold (inclusive).

    The comparison uses the exact value; the displayed amount is truncated, so
    a non-alert never renders at or above the threshold.
    """
    if value < 0:
        raise ValueError(f"Amount cannot be negative: {value}")
    is_alert = value >= threshold
    return Classification(
        amount=format_amount(value, places),
        is_alert=is_alert,
        rule=rule if is_alert else None,
    )


def eth_rule(threshold: Decimal = LARGE_TX_THRESHOLD_ETH) -> str:
    return f"Large transfer >= {threshold} ETH"


def btc_rule(threshold: Decimal = LARGE_TX_THRESHOLD_BTC) -> str:
    return f"Large BTC transfer >= {threshold} BTC"


def classify_eth_transaction(
    raw: RawEthTransaction,
    block_number: int,
    threshold: Decimal = LARGE_TX_THRESHOLD_ETH,
    observed_at: Optional[int] = None,
) -> EthTransaction:
    created_at = now_ms() if observed_at is None else observed_at
    result = classify(
        from_base_units(raw.value_wei, WEI_DECIMALS), threshold, ETH_DISPLAY_PLACES, eth_rule(threshold)
    )
    return EthTransaction(
        id=f"{raw.hash}-{created_at}",
        tx_hash=raw.hash,
        block_number=block_number,
        from_address=raw.from_address,
        to_address=raw.to_address,
        value_eth=result.amount,
        is_alert=result.is_alert,
        rule=result.rule,
        created_at=created_at,
    )


def classify_mempool_item(
    raw: RawMempoolItem,
    threshold: Decimal = LARGE_TX_THRESHOLD_BTC,
    observed_at: Optional[int] = None,
) -> BtcTransaction:
    created_at = now_ms() if observed_at is None else observed_at
    result = classify(
        from_base_units(raw.value_sats, SATOSHI_DECIMALS), threshold, BTC_DISPLAY_PLACES, btc_rule(threshold)
    )
    fee = format_amount(from_base_units(raw.fee_sats, SATOSHI_DECIMALS), BTC_DISPLAY_PLACES)
    return BtcTransaction(
        id=f"{raw.txid}-{created_at}",
        txid=raw.txid,
        value_btc=result.amount,
        fee_btc=fee,
        vsize=raw.vsize,
        is_alert=result.is_alert,
        rule=result.rule,
        created_at=created_at,
    )


__all__ = [
    "Classification",
    "LARGE_TX_THRESHOLD_BTC",
    "LARGE_TX_THRESHOLD_ETH",
    "classify",
    "classify_eth_transaction",
    "classify_mempool_item",
    "format_amount",
    "from_base_units",
    "now_ms",
]
