# -*- coding: utf-8 -*-
"""Unit tests for BitcoinAdapter (Esplora API)."""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal
from typing import Any

import pytest

from crypto_donation_monitor.adapters.bitcoin import BitcoinAdapter
from crypto_donation_monitor.config import Settings
from crypto_donation_monitor.exceptions import (
    ProviderNotFoundError,
    TransactionNotFoundError,
    TransientProviderError,
)
from crypto_donation_monitor.models.transaction import TransactionStatus

BASE = "https://blockstream.info/api"
WALLET = "bc1qdonationwallet0000000000000000000000"
SENDER = "bc1qsender000000000000000000000000000000"
TXID = "f" * 64


class _FakeHttp:
    def __init__(self, routes: dict[str, Any]) -> None:
        self.routes = routes
        self.calls: list[str] = []

    async def get(self, url: str, *, params: Any = None, headers: Any = None) -> Any:
        self.calls.append(url)
        value = self.routes[url]
        if isinstance(value, Exception):
            raise value
        return value


def _tx(*, confirmed: bool = True, block_height: int = 800_000, sender: str = SENDER) -> dict[str, Any]:
    return {
        "txid": TXID,
        "vin": [{"prevout": {"scriptpubkey_address": sender, "value": 2_000_000}}],
        "vout": [
            {"scriptpubkey_address": WALLET, "value": 1_500_000},
            {"scriptpubkey_address": "bc1qchange", "value": 490_000},
        ],
        "status": {"confirmed": confirmed, "block_height": block_height if confirmed else None, "block_time": 1770980400},
    }


def _adapter(routes: dict[str, Any], settings_factory: Callable[..., Settings]) -> BitcoinAdapter:
    return BitcoinAdapter(_FakeHttp(routes), settings_factory())  # type: ignore[arg-type]


async def test_confirmed_payment_to_wallet(settings_factory: Callable[..., Settings]) -> None:
    adapter = _adapter(
        {f"{BASE}/tx/{TXID}": _tx(), f"{BASE}/blocks/tip/height": 800_000},
        settings_factory,
    )

    tx = await adapter.fetch_transaction_by_hash(TXID, asset="BTC", recipient=WALLET)

    assert tx.to_address == WALLET
    assert tx.from_address == SENDER
    assert tx.value == Decimal("0.015")
    assert tx.confirmations == 1
    assert tx.status == TransactionStatus.SUCCESS


async def test_mempool_payment_has_zero_confirmations(settings_factory: Callable[..., Settings]) -> None:
    adapter = _adapter(
        {f"{BASE}/tx/{TXID}": _tx(confirmed=False), f"{BASE}/blocks/tip/height": 800_000},
        settings_factory,
    )

    tx = await adapter.fetch_transaction_by_hash(TXID, asset="BTC", recipient=WALLET)

    assert tx.confirmations == 0
    assert tx.status == TransactionStatus.PENDING
    assert tx.block_height is None


async def test_unknown_txid_raises_not_found(settings_factory: Callable[..., Settings]) -> None:
    adapter = _adapter({f"{BASE}/tx/{TXID}": ProviderNotFoundError("404", url=BASE)}, settings_factory)

    with pytest.raises(TransactionNotFoundError):
        await adapter.fetch_transaction_by_hash(TXID)


async def test_provider_outage_propagates(settings_factory: Callable[..., Settings]) -> None:
    adapter = _adapter({f"{BASE}/tx/{TXID}": TransientProviderError("503", url=BASE)}, settings_factory)

    with pytest.raises(TransientProviderError):
        await adapter.fetch_transaction_by_hash(TXID)


async def test_recent_transactions_mark_spends_as_outgoing(settings_factory: Callable[..., Settings]) -> None:
    incoming = _tx(block_height=799_990)
    outgoing = _tx(sender=WALLET)
    outgoing["txid"] = "e" * 64
    adapter = _adapter(
        {
            f"{BASE}/address/{WALLET}/txs": [incoming, outgoing],
            f"{BASE}/blocks/tip/height": 800_000,
        },
        settings_factory,
    )

    txs = await adapter.fetch_recent_transactions(WALLET, 10)

    assert txs[0].to_address == WALLET
    assert txs[0].confirmations == 11
    assert txs[1].from_address == WALLET
    assert txs[1].to_address == "bc1qchange"


async def test_wallet_snapshot_sums_chain_and_mempool(settings_factory: Callable[..., Settings]) -> None:
    adapter = _adapter(
        {
            f"{BASE}/address/{WALLET}": {
                "chain_stats": {"funded_txo_sum": 3_000_000, "spent_txo_sum": 1_000_000, "tx_count": 4},
                "mempool_stats": {"funded_txo_sum": 500_000, "spent_txo_sum": 0, "tx_count": 1},
            }
        },
        settings_factory,
    )

    snapshot = await adapter.fetch_wallet_snapshot(WALLET)

    assert snapshot.balance_of("BTC").balance == Decimal("0.025")  # type: ignore[union-attr]
    assert snapshot.transaction_count == 5
