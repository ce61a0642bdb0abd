"""Donation events (emitted by DonationMonitor, PendingDonationReconciler and CryptoPaymentService)."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from bubus import BaseEvent  # type: ignore[import-untyped]


class DonationReceivedEvent(BaseEvent[None]):
    """Emitted when the monitor records a new incoming payment.

    Handled by DonationNotifier to send notifications.
    """

    donation_id: str
    network: str
    tx_hash: str
    currency: str
    crypto_amount: Decimal
    usd_amount: Decimal
    status: str
    """pending or completed, depending on confirmations at detection time."""

    confirmations: int
    required_confirmations: int
    from_address: str | None = None
    detected_at: datetime | None = None


class DonationCompletedEvent(BaseEvent[None]):
    """Emitted when a pending donation is confirmed (reconciler or tx hash submission)."""

    donation_id: str
    network: str | None = None
    tx_hash: str | None = None
    currency: str
    usd_amount: Decimal
    confirmations: int
    manual_review_required: bool = False
    """True when accepted without on-chain evidence (provider was unavailable)."""
