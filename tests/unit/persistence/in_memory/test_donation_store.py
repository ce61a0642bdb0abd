# -*- coding: utf-8 -*-
"""Unit tests for InMemoryDonationStore."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from crypto_donation_monitor.config.networks import Network
from crypto_donation_monitor.exceptions import DonationNotFoundError
from crypto_donation_monitor.models.donation import CryptoMetadata, Donation, DonationStatus
from crypto_donation_monitor.persistence.repositories.in_memory import InMemoryDonationStore

ETH_WALLET = "0x2d27b6e21b3d4d7c9a43fdf58f12345678907706"


def _donation(created_at: datetime, *, tx_hash: str | None = None) -> Donation:
    return Donation.create(
        amount=Decimal("50.00"),
        currency="ETH",
        network=Network.ETHEREUM,
        tx_hash=tx_hash,
        created_at=created_at,
        metadata=CryptoMetadata(
            network=Network.ETHEREUM,
            asset_symbol="ETH",
            crypto_amount=Decimal("0.02"),
            crypto_price=Decimal("2500"),
            wallet_address=ETH_WALLET,
        ),
    )


async def test_create_and_get(donation_store: InMemoryDonationStore, now_utc: datetime) -> None:
    donation = _donation(now_utc)

    donation_id = await donation_store.create(donation)

    assert donation_id == donation.id
    assert await donation_store.get(donation_id) == donation


async def test_create_rejects_duplicate_id(donation_store: InMemoryDonationStore, now_utc: datetime) -> None:
    donation = _donation(now_utc)
    await donation_store.create(donation)

    with pytest.raises(ValueError):
        await donation_store.create(donation)


async def test_get_unknown_returns_none(donation_store: InMemoryDonationStore) -> None:
    assert await donation_store.get("missing") is None


async def test_update_status_keeps_unset_fields(donation_store: InMemoryDonationStore, now_utc: datetime) -> None:
    donation = _donation(now_utc, tx_hash="0xabc")
    await donation_store.create(donation)

    updated = await donation_store.update_status(
        donation.id, DonationStatus.COMPLETED, confirmations=12, manual_review_required=True
    )

    assert updated.status == DonationStatus.COMPLETED
    assert updated.tx_hash == "0xabc"
    assert updated.confirmations == 12
    assert updated.manual_review_required is True
    assert updated.created_at == now_utc
    assert await donation_store.get(donation.id) == updated


async def test_update_status_unknown_raises(donation_store: InMemoryDonationStore) -> None:
    with pytest.raises(DonationNotFoundError):
        await donation_store.update_status("missing", DonationStatus.FAILED)


async def test_save_requires_existing_donation(donation_store: InMemoryDonationStore, now_utc: datetime) -> None:
    with pytest.raises(DonationNotFoundError):
        await donation_store.save(_donation(now_utc))


async def test_find_by_tx_hash_ignores_case(donation_store: InMemoryDonationStore, now_utc: datetime) -> None:
    donation = _donation(now_utc, tx_hash="0xABCDEF")
    await donation_store.create(donation)

    found = await donation_store.find_by_tx_hash(" 0xabcdef ")

    assert found is not None
    assert found.id == donation.id
    assert await donation_store.find_by_tx_hash("0x123") is None


async def test_find_pending_filters_and_orders(donation_store: InMemoryDonationStore, now_utc: datetime) -> None:
    newest = _donation(now_utc)
    oldest = _donation(now_utc - timedelta(hours=30))
    settled = _donation(now_utc - timedelta(hours=40))
    for donation in (newest, oldest, settled):
        await donation_store.create(donation)
    await donation_store.update_status(settled.id, DonationStatus.COMPLETED)

    pending = await donation_store.find_pending()
    stale = await donation_store.find_pending(older_than=now_utc - timedelta(hours=24))

    assert [d.id for d in pending] == [oldest.id, newest.id]
    assert [d.id for d in stale] == [oldest.id]
    assert len(donation_store.list_all()) == 3
