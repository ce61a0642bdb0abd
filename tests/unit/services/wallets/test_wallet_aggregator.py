# -*- coding: utf-8 -*-
"""Unit tests for WalletAggregator and wallet settings helpers."""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest

from crypto_donation_monitor.adapters.registry import AdapterRegistry
from crypto_donation_monitor.config import Settings
from crypto_donation_monitor.config.config import WalletSettings
from crypto_donation_monitor.config.networks import Network
from crypto_donation_monitor.exceptions import ConfigurationError, TransientProviderError
from crypto_donation_monitor.models.wallet import TokenBalance, WalletAddress, WalletSnapshot
from crypto_donation_monitor.services.wallets import (
    WalletAggregator,
    configured_wallets,
    wallet_addresses,
)

PRICES = {"BTC": Decimal("50000"), "ETH": Decimal("2500"), "USDT": Decimal("1")}


def _snapshot(network: Network, address: str, balances: list[tuple[str, str]]) -> WalletSnapshot:
    return WalletSnapshot(
        address=address,
        network=network,
        balances=tuple(
            TokenBalance(symbol=s, name=s, balance=Decimal(b), usd_value=Decimal("0")) for s, b in balances
        ),
        total_usd_value=Decimal("0"),
        transaction_count=3,
    )


def _adapter(network: Network, snapshot: WalletSnapshot | None = None, error: Exception | None = None) -> Any:
    return SimpleNamespace(
        network=network,
        fetch_wallet_snapshot=AsyncMock(return_value=snapshot, side_effect=error),
    )


def _aggregator(adapters: list[Any]) -> WalletAggregator:
    oracle = SimpleNamespace(get_prices=AsyncMock(return_value=dict(PRICES)))
    return WalletAggregator(AdapterRegistry(adapters), oracle)  # type: ignore[arg-type]


def test_wallet_addresses_cover_every_network(settings_factory: Callable[..., Settings]) -> None:
    settings = settings_factory(wallets=WalletSettings(btc_address="bc1q", xrp_address="rXRP", xrp_destination_tag=9))

    wallets = wallet_addresses(settings)
    configured = configured_wallets(settings)

    assert [w.network for w in wallets] == list(Network)
    assert [w.network for w in configured] == [Network.BITCOIN, Network.XRP]
    assert configured[1].destination_tag == 9
    assert configured[0].destination_tag is None


async def test_snapshot_is_priced() -> None:
    aggregator = _aggregator([_adapter(Network.ETHEREUM, _snapshot(Network.ETHEREUM, "0xabc", [("ETH", "2"), ("USDT", "10")]))])

    snapshot = await aggregator.get_wallet_snapshot(" 0xabc ", "eth")

    assert snapshot.balance_of("ETH").usd_value == Decimal("5000")  # type: ignore[union-attr]
    assert snapshot.total_usd_value == Decimal("5010")


async def test_portfolio_keeps_successes_when_one_wallet_fails() -> None:
    aggregator = _aggregator(
        [
            _adapter(Network.BITCOIN, _snapshot(Network.BITCOIN, "bc1q", [("BTC", "0.1")])),
            _adapter(Network.ETHEREUM, error=TransientProviderError("rpc down")),
        ]
    )
    wallets = [
        WalletAddress.create("bitcoin", "bc1q"),
        WalletAddress.create("ethereum", "0xabc"),
        WalletAddress.create("solana", ""),
    ]

    portfolio = await aggregator.build_portfolio(wallets)

    assert len(portfolio.snapshots) == 1
    assert portfolio.total_usd_value == Decimal("5000")
    assert portfolio.usd_by_network == {Network.BITCOIN: Decimal("5000")}
    assert [w.network for w in portfolio.failed] == [Network.ETHEREUM]


async def test_refresh_all_wallets_surfaces_configuration_errors() -> None:
    aggregator = _aggregator([])

    with pytest.raises(ConfigurationError):
        await aggregator.refresh_all_wallets([WalletAddress.create("bitcoin", "bc1q")])
