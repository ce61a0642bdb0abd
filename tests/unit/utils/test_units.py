# -*- coding: utf-8 -*-
"""Unit tests for unit conversion and validation helpers."""

from __future__ import annotations

from decimal import Decimal

import pytest

from crypto_donation_monitor.utils.units import (
    from_base_units,
    parse_int,
    round_up,
    to_base_units,
    to_decimal,
)
from crypto_donation_monitor.utils.validation import is_hex_tx_hash, mask_address


def test_from_base_units_scales_satoshi_and_wei() -> None:
    assert from_base_units(1_500_000, 8) == Decimal("0.015")
    assert from_base_units("0xde0b6b3a7640000", 18) == Decimal("1")
    assert from_base_units(25_000_000_000_000_000_000, 18) == Decimal("25")


def test_to_base_units_truncates_dust() -> None:
    assert to_base_units(Decimal("1.2345678"), 6) == 1_234_567
    assert to_base_units("0.05", 18) == 50_000_000_000_000_000


def test_round_up_never_under_quotes() -> None:
    assert round_up(Decimal("0.000222221"), 8) == Decimal("0.00022223")
    assert round_up(Decimal("25"), 6) == Decimal("25.000000")


def test_parse_int_rejects_non_integers() -> None:
    assert parse_int("0x") == 0
    assert parse_int(" 42 ") == 42
    with pytest.raises(ValueError):
        parse_int(True)
    with pytest.raises(ValueError):
        parse_int(1.5)


def test_to_decimal_returns_default_for_garbage() -> None:
    assert to_decimal("1.25") == Decimal("1.25")
    assert to_decimal("", Decimal("0")) == Decimal("0")
    assert to_decimal("abc") is None


def test_is_hex_tx_hash() -> None:
    assert is_hex_tx_hash("0x" + "a" * 64)
    assert is_hex_tx_hash("F" * 64)
    assert not is_hex_tx_hash("0x" + "a" * 63)
    assert not is_hex_tx_hash("z" * 64)
    assert not is_hex_tx_hash(None)


def test_mask_address() -> None:
    assert mask_address("0x2d27b6e21b3d4d7c9a43fdf58f12345678907706") == "0x2d27...7706"
    assert mask_address("short") == "***"
    assert mask_address(None) == "***"
