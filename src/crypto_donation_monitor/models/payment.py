# -*- coding: utf-8 -*-
"""Crypto payment flow models (intent creation and tx hash submission)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from crypto_donation_monitor.config.networks import Network
from crypto_donation_monitor.models.donation import Donation
from crypto_donation_monitor.models.verification import VerificationResult


@dataclass(frozen=True, slots=True)
class CryptoPaymentIntent:
    """What a donor needs to pay: address, exact amount and a wallet URI."""

    donation_id: str
    network: Network
    currency: str
    wallet_address: str
    crypto_amount: Decimal
    crypto_price: Decimal
    usd_amount: Decimal
    payment_uri: str
    expires_at: datetime
    required_confirmations: int
    destination_tag: int | None = None


@dataclass(frozen=True, slots=True)
class SubmissionResult:
    """Outcome of a donor submitting a transaction hash for an intent."""

    donation: Donation
    verification: VerificationResult

    @property
    def accepted(self) -> bool:
        return self.verification.is_valid
