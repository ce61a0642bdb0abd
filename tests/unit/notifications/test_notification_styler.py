# -*- coding: utf-8 -*-
"""Unit tests for DonationNotificationStyler."""

from __future__ import annotations

from crypto_donation_monitor.notifications.stylers import DonationNotificationStyler
from crypto_donation_monitor.notifications.types import NotificationMessage


def test_donation_received_renders_amounts_and_confirmations() -> None:
    message = NotificationMessage(
        event_type="donation_received",
        message="Received 0.025 BTC on bitcoin",
        payload={
            "donation_id": "don-1",
            "network": "bitcoin",
            "tx_hash": "f" * 64,
            "currency": "BTC",
            "crypto_amount": "0.02500000",
            "usd_amount": "1250",
            "status": "completed",
            "confirmations": 1,
            "required_confirmations": 1,
            "from_address": "bc1qsender",
        },
    )

    text = DonationNotificationStyler().render(message)

    assert text.startswith("📥 <b>Donation Received</b>")
    assert "$1,250.00" in text
    assert "0.025 BTC" in text
    assert "1/1" in text
    assert "bc1qsender" in text
    assert "don-1" in text
    assert "Manual review" not in text


def test_donation_completed_flags_manual_review() -> None:
    message = NotificationMessage(
        event_type="donation_completed",
        message="Donation of $100 confirmed (pending manual review)",
        payload={"donation_id": "don-2", "usd_amount": "100", "confirmations": 12, "manual_review_required": True},
    )

    text = DonationNotificationStyler().render(message)

    assert "Donation Confirmed" in text
    assert "$100.00" in text
    assert "<b>Manual review:</b> ⚠️ Yes" in text


def test_monitor_status_lists_networks() -> None:
    message = NotificationMessage(
        event_type="monitor_started",
        message="Monitoring 2 wallets",
        payload={"networks": ["bitcoin", "ethereum"]},
    )

    text = DonationNotificationStyler().render(message)

    assert "Monitor Started" in text
    assert "Monitoring 2 wallets" in text
    assert "bitcoin, ethereum" in text


def test_unknown_event_uses_generic_layout() -> None:
    message = NotificationMessage(event_type="price_feed_degraded", message="Using fallback prices", payload={"source": "coingecko"})

    text = DonationNotificationStyler().render(message)

    assert text.startswith("ℹ️ <b>Price Feed Degraded</b>")
    assert "<b>source:</b> coingecko" in text
