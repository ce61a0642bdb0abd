# -*- coding: utf-8 -*-
"""Shared pytest fixtures for unit tests."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import pytest
from bubus import EventBus  # type: ignore[import-untyped]

from crypto_donation_monitor.config import Settings
from crypto_donation_monitor.config.config import (
    MonitorSettings,
    NetworkApiSettings,
    PriceSettings,
    WalletSettings,
)
from crypto_donation_monitor.persistence.repositories.in_memory import (
    InMemoryDonationStore,
    InMemoryProcessedTransactionRepository,
)

BTC_WALLET = "bc1qdonat10nwa11etxxxxxxxxxxxxxxxxxxxxxx8k2"
ETH_WALLET = "0x2d27b6e21b3d4d7c9a43fdf58f12345678907706"
BSC_WALLET = "0x8894e0a0c962cb723c1976a4421c95949be2d4e3"
SOL_WALLET = "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin"
TRX_WALLET = "TLa2f6VPqDgRE67v1736s7bJ8Ray5wYjU7"
XRP_WALLET = "rDonati0nWa11etXRPxxxxxxxxxxxxxx"
XRP_TAG = 424242


class FakeEventBus:
    """Minimal event bus fake for unit tests."""

    def __init__(self) -> None:
        self.handlers: dict[str, list[Any]] = {}
        self.dispatched: list[Any] = []

    def on(self, event_type: type[Any], handler: Any) -> None:
        self.handlers.setdefault(event_type.__name__, []).append(handler)

    def dispatch(self, event: Any) -> None:
        self.dispatched.append(event)
        for handler in self.handlers.get(type(event).__name__, []):
            handler(event)


@pytest.fixture
def now_utc() -> datetime:
    """Stable UTC timestamp for deterministic assertions."""
    return datetime(2026, 2, 13, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def D() -> Callable[[Any], Decimal]:
    """Decimal helper: D('1.23') -> Decimal('1.23')."""
    return lambda value: Decimal(str(value))


@pytest.fixture
def settings_factory() -> Callable[..., Settings]:
    """Build Settings with every wallet configured; keyword overrides replace whole sections."""

    def _build(**overrides: Any) -> Settings:
        sections: dict[str, Any] = {
            "wallets": WalletSettings(
                btc_address=BTC_WALLET,
                eth_address=ETH_WALLET,
                bnb_address=BSC_WALLET,
                sol_address=SOL_WALLET,
                trx_address=TRX_WALLET,
                xrp_address=XRP_WALLET,
                xrp_destination_tag=XRP_TAG,
            ),
            "networks": NetworkApiSettings(),
            "monitor": MonitorSettings(),
            "prices": PriceSettings(),
        }
        sections.update(overrides)
        return Settings(**sections)

    return _build


@pytest.fixture
def settings(settings_factory: Callable[..., Settings]) -> Settings:
    return settings_factory()


@pytest.fixture
def donation_store() -> InMemoryDonationStore:
    """Fresh in-memory donation store per test."""
    return InMemoryDonationStore()


@pytest.fixture
def processed_repo() -> InMemoryProcessedTransactionRepository:
    """Fresh processed-transaction repository per test."""
    return InMemoryProcessedTransactionRepository()


@pytest.fixture
def fake_event_bus() -> FakeEventBus:
    return FakeEventBus()


@pytest.fixture
def event_bus() -> EventBus:
    """Isolated event bus instance for tests."""
    return EventBus(
        name="CryptoDonationMonitorTests",
        max_history_size=200,
        wal_path=None,
    )
