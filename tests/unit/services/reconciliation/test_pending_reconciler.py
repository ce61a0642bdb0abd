# -*- coding: utf-8 -*-
"""Unit tests for PendingDonationReconciler."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

from crypto_donation_monitor.config import Settings
from crypto_donation_monitor.config.networks import Network
from crypto_donation_monitor.events.donations import DonationCompletedEvent
from crypto_donation_monitor.exceptions import UnsupportedAssetError
from crypto_donation_monitor.models.donation import (
    CryptoMetadata,
    Donation,
    DonationSource,
    DonationStatus,
)
from crypto_donation_monitor.models.verification import VerificationResult
from crypto_donation_monitor.persistence.repositories.in_memory import InMemoryDonationStore
from crypto_donation_monitor.services.reconciliation import PendingDonationReconciler

ETH_WALLET = "0x2d27b6e21b3d4d7c9a43fdf58f12345678907706"
TX_HASH = "0x" + "ab" * 32


async def _pending(
    store: InMemoryDonationStore,
    created_at: datetime,
    *,
    tx_hash: str | None = TX_HASH,
    expires_at: datetime | None = None,
) -> Donation:
    donation = Donation.create(
        amount=Decimal("100"),
        currency="USDT",
        network=Network.ETHEREUM,
        tx_hash=tx_hash,
        created_at=created_at,
        metadata=CryptoMetadata(
            network=Network.ETHEREUM,
            asset_symbol="USDT",
            crypto_amount=Decimal("100"),
            crypto_price=Decimal("1"),
            wallet_address=ETH_WALLET,
            source=DonationSource.PAYMENT_INTENT,
            expires_at=expires_at,
        ),
    )
    await store.create(donation)
    return donation


def _valid(confirmations: int = 12) -> VerificationResult:
    return VerificationResult(
        is_valid=True,
        confirmations=confirmations,
        amount=Decimal("100"),
        to_address=ETH_WALLET,
        from_address="0x1111111111111111111111111111111111111111",
        network=Network.ETHEREUM,
        tx_hash=TX_HASH,
        required_confirmations=12,
    )


def _reconciler(
    store: InMemoryDonationStore,
    settings: Settings,
    now: datetime,
    *,
    result: Any = None,
    error: Exception | None = None,
    event_bus: Any = None,
) -> tuple[PendingDonationReconciler, Any]:
    verifier = SimpleNamespace(verify=AsyncMock(return_value=result, side_effect=error))
    reconciler = PendingDonationReconciler(
        store,
        verifier,  # type: ignore[arg-type]
        settings,
        event_bus=event_bus,
        clock=lambda: now,
    )
    return reconciler, verifier


async def test_hard_verified_donation_is_completed(
    donation_store: InMemoryDonationStore,
    settings: Settings,
    now_utc: datetime,
    fake_event_bus: Any,
) -> None:
    donation = await _pending(donation_store, now_utc - timedelta(hours=1))
    reconciler, verifier = _reconciler(
        donation_store, settings, now_utc, result=_valid(), event_bus=fake_event_bus
    )

    report = await reconciler.reconcile_pending()

    stored = await donation_store.get(donation.id)
    assert stored is not None
    assert stored.status == DonationStatus.COMPLETED
    assert stored.confirmations == 12
    assert report.checked == 1
    assert report.completed == 1
    verifier.verify.assert_awaited_once()
    assert verifier.verify.await_args.args[:5] == (TX_HASH, Network.ETHEREUM, Decimal("100"), ETH_WALLET, "USDT")
    assert len(fake_event_bus.dispatched) == 1
    assert isinstance(fake_event_bus.dispatched[0], DonationCompletedEvent)


async def test_assumed_valid_stays_pending_for_manual_review(
    donation_store: InMemoryDonationStore,
    settings: Settings,
    now_utc: datetime,
) -> None:
    donation = await _pending(donation_store, now_utc - timedelta(hours=100))
    assumed = VerificationResult.assumed_valid(
        network=Network.ETHEREUM,
        tx_hash=TX_HASH,
        expected_amount=Decimal("100"),
        expected_to_address=ETH_WALLET,
        required_confirmations=12,
    )
    reconciler, _ = _reconciler(donation_store, settings, now_utc, result=assumed)

    report = await reconciler.reconcile_pending()

    stored = await donation_store.get(donation.id)
    assert stored is not None
    assert stored.status == DonationStatus.PENDING
    assert stored.manual_review_required
    assert report.manual_review == 1
    assert report.completed == 0


async def test_failed_verification_past_cutoff_marks_failed(
    donation_store: InMemoryDonationStore,
    settings: Settings,
    now_utc: datetime,
) -> None:
    donation = await _pending(donation_store, now_utc - timedelta(hours=49))
    reconciler, _ = _reconciler(
        donation_store,
        settings,
        now_utc,
        result=VerificationResult.invalid("Transaction not found", network=Network.ETHEREUM),
    )

    report = await reconciler.reconcile_pending()

    stored = await donation_store.get(donation.id)
    assert stored is not None
    assert stored.status == DonationStatus.FAILED
    assert stored.crypto_metadata is not None
    assert stored.crypto_metadata.verification_error == "Transaction not found"
    assert report.failed == 1


async def test_recent_under_confirmed_donation_stays_pending(
    donation_store: InMemoryDonationStore,
    settings: Settings,
    now_utc: datetime,
) -> None:
    donation = await _pending(donation_store, now_utc - timedelta(hours=1))
    result = VerificationResult.invalid("Insufficient confirmations: 4/12", confirmations=4)
    reconciler, _ = _reconciler(donation_store, settings, now_utc, result=result)

    report = await reconciler.reconcile_pending()

    stored = await donation_store.get(donation.id)
    assert stored is not None
    assert stored.status == DonationStatus.PENDING
    assert stored.confirmations == 4
    assert not stored.manual_review_required
    assert report.still_pending == 1


async def test_expired_intent_without_hash_is_failed(
    donation_store: InMemoryDonationStore,
    settings: Settings,
    now_utc: datetime,
) -> None:
    expired = await _pending(
        donation_store, now_utc - timedelta(hours=30), tx_hash=None, expires_at=now_utc - timedelta(hours=6)
    )
    waiting = await _pending(
        donation_store, now_utc - timedelta(hours=1), tx_hash=None, expires_at=now_utc + timedelta(hours=23)
    )
    reconciler, verifier = _reconciler(donation_store, settings, now_utc, result=_valid())

    report = await reconciler.reconcile_pending()

    assert (await donation_store.get(expired.id)).status == DonationStatus.FAILED  # type: ignore[union-attr]
    assert (await donation_store.get(waiting.id)).status == DonationStatus.PENDING  # type: ignore[union-attr]
    assert report.expired == 1
    assert report.checked == 0
    verifier.verify.assert_not_awaited()


async def test_configuration_error_leaves_donation_pending(
    donation_store: InMemoryDonationStore,
    settings: Settings,
    now_utc: datetime,
) -> None:
    donation = await _pending(donation_store, now_utc - timedelta(hours=100))
    reconciler, _ = _reconciler(
        donation_store, settings, now_utc, error=UnsupportedAssetError("USDT unsupported", asset="USDT")
    )

    report = await reconciler.reconcile_pending()

    assert (await donation_store.get(donation.id)).status == DonationStatus.PENDING  # type: ignore[union-attr]
    assert report.still_pending == 1
