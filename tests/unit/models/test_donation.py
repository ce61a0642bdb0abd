# -*- coding: utf-8 -*-
"""Unit tests for donation, verification, processed-transaction and wallet models."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from decimal import Decimal

import pytest

from crypto_donation_monitor.config.networks import Network
from crypto_donation_monitor.models.donation import (
    BankMetadata,
    CryptoMetadata,
    Donation,
    DonationStatus,
)
from crypto_donation_monitor.models.processed_transaction import ProcessedTransaction
from crypto_donation_monitor.models.verification import VerificationResult
from crypto_donation_monitor.models.wallet import TokenBalance, WalletAddress, WalletSnapshot


def _crypto_meta() -> CryptoMetadata:
    return CryptoMetadata(
        network=Network.SOLANA,
        asset_symbol="USDC",
        crypto_amount=Decimal("25"),
        crypto_price=Decimal("1"),
        wallet_address="9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin",
    )


def test_create_defaults_to_pending(now_utc: datetime) -> None:
    donation = Donation.create(
        amount=Decimal("25"), currency="usdc", network=Network.SOLANA, metadata=_crypto_meta(), created_at=now_utc
    )

    assert donation.status == DonationStatus.PENDING
    assert donation.currency == "USDC"
    assert donation.created_at == donation.updated_at == now_utc
    assert donation.payment_method == "crypto"
    assert donation.crypto_metadata is not None


def test_create_rejects_negative_amount() -> None:
    with pytest.raises(ValueError):
        Donation.create(amount=Decimal("-1"), currency="USDC", metadata=_crypto_meta())


def test_non_crypto_metadata_has_no_crypto_view() -> None:
    donation = Donation.create(amount=Decimal("10"), currency="USD", metadata=BankMetadata(reference="wire-7"))

    assert donation.crypto_metadata is None
    assert donation.payment_method == "bank"


def test_with_status_keeps_unset_values(now_utc: datetime) -> None:
    donation = Donation.create(
        amount=Decimal("25"),
        currency="USDC",
        metadata=_crypto_meta(),
        tx_hash="sig",
        confirmations=3,
        created_at=now_utc,
    )

    completed = donation.with_status(DonationStatus.COMPLETED)

    assert completed.tx_hash == "sig"
    assert completed.confirmations == 3
    assert completed.manual_review_required is False
    assert completed.updated_at > now_utc
    assert not completed.is_pending


def test_with_metadata_replaces_metadata() -> None:
    donation = Donation.create(amount=Decimal("25"), currency="USDC", metadata=_crypto_meta())

    updated = donation.with_metadata(replace(_crypto_meta(), verification_error="Amount mismatch"))

    assert updated.crypto_metadata is not None
    assert updated.crypto_metadata.verification_error == "Amount mismatch"


def test_assumed_valid_is_not_hard_verified() -> None:
    result = VerificationResult.assumed_valid(
        network=Network.ETHEREUM,
        tx_hash="0xabc",
        expected_amount=Decimal("1"),
        expected_to_address="0xto",
        required_confirmations=12,
    )

    assert result.is_valid
    assert result.manual_review_required
    assert not result.is_hard_verified
    assert result.is_confirmed


def test_invalid_result_reports_confirmation_depth() -> None:
    result = VerificationResult.invalid(
        "Insufficient confirmations: 5/12", required_confirmations=12, confirmations=5
    )

    assert not result.is_valid
    assert not result.is_confirmed
    assert result.error == "Insufficient confirmations: 5/12"


def test_processed_transaction_requires_hash() -> None:
    with pytest.raises(ValueError):
        ProcessedTransaction.create(Network.XRP, "   ")

    record = ProcessedTransaction.create(Network.XRP, " ABC ")
    assert record.tx_hash == "ABC"
    assert record.key == "xrp-ABC"


def test_wallet_address_normalises_input() -> None:
    wallet = WalletAddress.create("eth", "  0xabc  ")

    assert wallet.network == Network.ETHEREUM
    assert wallet.address == "0xabc"
    assert wallet.is_configured
    assert not WalletAddress.create(Network.BITCOIN, "").is_configured


def test_snapshot_with_prices_recomputes_totals() -> None:
    snapshot = WalletSnapshot(
        address="T...",
        network=Network.TRON,
        balances=(
            TokenBalance(symbol="TRX", name="Tron", balance=Decimal("100"), usd_value=Decimal("0")),
            TokenBalance(symbol="USDT", name="Tether USD", balance=Decimal("40"), usd_value=Decimal("0")),
        ),
        total_usd_value=Decimal("0"),
        transaction_count=2,
    )

    priced = snapshot.with_prices({"TRX": Decimal("0.25"), "USDT": Decimal("1")})

    assert priced.total_usd_value == Decimal("65.00")
    balance = priced.balance_of("usdt")
    assert balance is not None
    assert balance.usd_value == Decimal("40")
