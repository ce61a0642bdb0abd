# -*- coding: utf-8 -*-
"""Unit tests for PriceOracle."""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest

from crypto_donation_monitor.config import Settings
from crypto_donation_monitor.config.config import PriceSettings
from crypto_donation_monitor.config.networks import FALLBACK_PRICES
from crypto_donation_monitor.exceptions import TransientProviderError, UnsupportedAssetError
from crypto_donation_monitor.services.prices import PriceOracle

QUOTES = {
    "bitcoin": Decimal("60000"),
    "ethereum": Decimal("3000"),
    "binancecoin": Decimal("550"),
    "ripple": Decimal("0.6"),
    "solana": Decimal("150"),
    "tron": Decimal("0.12"),
    "tether": Decimal("1.001"),
    "usd-coin": Decimal("0.999"),
}


class _FakeTimer:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def _oracle(
    settings_factory: Callable[..., Settings],
    coingecko: Any,
    timer: _FakeTimer,
) -> PriceOracle:
    settings = settings_factory(prices=PriceSettings(cache_ttl_seconds=60))
    return PriceOracle(coingecko, settings, timer=timer)


async def test_prices_are_cached_within_ttl(settings_factory: Callable[..., Settings]) -> None:
    coingecko = SimpleNamespace(get_usd_prices=AsyncMock(return_value=dict(QUOTES)))
    timer = _FakeTimer()
    oracle = _oracle(settings_factory, coingecko, timer)

    first = await oracle.get_prices()
    timer.now += 59
    btc = await oracle.get_price("btc")

    assert first["BTC"] == Decimal("60000")
    assert first["USDC"] == Decimal("0.999")
    assert btc == Decimal("60000")
    coingecko.get_usd_prices.assert_awaited_once()
    assert {e.symbol for e in oracle.get_cache_entries()} == set(FALLBACK_PRICES)


async def test_prices_refresh_after_ttl(settings_factory: Callable[..., Settings]) -> None:
    coingecko = SimpleNamespace(get_usd_prices=AsyncMock(return_value=dict(QUOTES)))
    timer = _FakeTimer()
    oracle = _oracle(settings_factory, coingecko, timer)

    await oracle.get_prices()
    timer.now += 61
    await oracle.get_prices()

    assert coingecko.get_usd_prices.await_count == 2


async def test_provider_failure_returns_fallback_without_caching(settings_factory: Callable[..., Settings]) -> None:
    coingecko = SimpleNamespace(get_usd_prices=AsyncMock(side_effect=TransientProviderError("429")))
    timer = _FakeTimer()
    oracle = _oracle(settings_factory, coingecko, timer)

    prices = await oracle.get_prices()
    await oracle.get_prices()

    assert prices == dict(FALLBACK_PRICES)
    assert coingecko.get_usd_prices.await_count == 2
    assert oracle.get_cache_entries() == []


async def test_symbols_missing_from_response_use_fallback(settings_factory: Callable[..., Settings]) -> None:
    quotes = {k: v for k, v in QUOTES.items() if k != "tron"}
    coingecko = SimpleNamespace(get_usd_prices=AsyncMock(return_value=quotes))
    oracle = _oracle(settings_factory, coingecko, _FakeTimer())

    prices = await oracle.get_prices()
    entries = {e.symbol: e for e in oracle.get_cache_entries()}

    assert prices["TRX"] == FALLBACK_PRICES["TRX"]
    assert entries["TRX"].is_fallback
    assert not entries["BTC"].is_fallback


async def test_unknown_symbol_raises(settings_factory: Callable[..., Settings]) -> None:
    coingecko = SimpleNamespace(get_usd_prices=AsyncMock(return_value=dict(QUOTES)))
    oracle = _oracle(settings_factory, coingecko, _FakeTimer())

    with pytest.raises(UnsupportedAssetError):
        await oracle.get_price("DOGE")
