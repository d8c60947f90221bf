from decimal import Decimal

import pytest

from chainwatch.stream import classifier

from conftest import SATS_PER_BTC, WEI_PER_ETH, eth_tx, mempool_item


def test_threshold_boundary_is_inclusive():
    below = classifier.classify(Decimal("99.9999"), Decimal(100), 4, "rule")
    at = classifier.classify(Decimal("100.0000"), Decimal(100), 4, "rule")

    assert below.amount == "99.9999"
    assert below.is_alert is False
    assert below.rule is None

    assert at.amount == "100.0000"
    assert at.is_alert is True
    assert at.rule == "rule"


def test_amounts_are_fixed_precision_without_exponent():
    assert classifier.format_amount(Decimal(0), 4) == "0.0000"
    assert classifier.format_amount(classifier.from_base_units(1, 18), 4) == "0.0000"
    assert classifier.format_amount(classifier.from_base_units(10**30, 18), 4) == "1000000000000.0000"
    assert classifier.format_amount(classifier.from_base_units(150_000_000, 8), 8) == "1.50000000"


def test_display_is_truncated_so_it_never_contradicts_flag():
    almost = 100 * WEI_PER_ETH - 1
    record = classifier.classify_eth_transaction(eth_tx(1, almost), block_number=7, observed_at=1)

    assert record.value_eth == "99.9999"
    assert record.is_alert is False


def test_display_truncates_rather_than_rounds_half_up():
    assert classifier.format_amount(Decimal("1.23456"), 4) == "1.2345"
    assert classifier.format_amount(Decimal("0.123456789"), 8) == "0.12345678"


def test_negative_amounts_are_rejected():
    with pytest.raises(ValueError):
        classifier.from_base_units(-1, 8)
    with pytest.raises(ValueError):
        classifier.classify(Decimal("-0.1"), Decimal(1), 4, "rule")


def test_eth_record_fields_and_wire_shape():
    raw = eth_tx(5, 250 * WEI_PER_ETH, to_address=None)
    record = classifier.classify_eth_transaction(raw, block_number=42, observed_at=1700000000000)

    assert record.id == f"{raw.hash}-1700000000000"
    assert record.is_alert is True
    assert record.rule == "Large transfer >= 100 ETH"

    payload = record.model_dump(by_alias=True)
    assert payload["txHash"] == raw.hash
    assert payload["blockNumber"] == 42
    assert payload["from"] == "0x" + "a" * 40
    assert payload["to"] is None
    assert payload["valueEth"] == "250.0000"
    assert payload["isAlert"] is True
    assert payload["createdAt"] == 1700000000000


def test_rule_is_omitted_for_non_alerts():
    record = classifier.classify_eth_transaction(eth_tx(6, WEI_PER_ETH), block_number=1, observed_at=5)

    payload = record.model_dump(by_alias=True)
    assert payload["valueEth"] == "1.0000"
    assert "rule" not in payload


def test_btc_record_fields():
    item = mempool_item("ab" * 32, value_sats=10 * SATS_PER_BTC, fee_sats=1234, vsize=210)
    record = classifier.classify_mempool_item(item, observed_at=99)

    assert record.id == f"{item.txid}-99"
    assert record.value_btc == "10.00000000"
    assert record.fee_btc == "0.00001234"
    assert record.vsize == 210
    assert record.is_alert is True
    assert record.rule == "Large BTC transfer >= 10 BTC"

    small = classifier.classify_mempool_item(mempool_item("cd" * 32, value_sats=10 * SATS_PER_BTC - 1), observed_at=1)
    assert small.value_btc == "9.99999999"
    assert small.is_alert is False
