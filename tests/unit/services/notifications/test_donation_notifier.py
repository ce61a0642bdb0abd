# -*- coding: utf-8 -*-
"""Unit tests for DonationNotifier."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace
from typing import Any
from unittest.mock import Mock

from crypto_donation_monitor.events.donations import DonationCompletedEvent, DonationReceivedEvent
from crypto_donation_monitor.services.notifications import DonationNotifier


def _received(now_utc: datetime) -> DonationReceivedEvent:
    return DonationReceivedEvent(
        donation_id="don-1",
        network="bitcoin",
        tx_hash="f" * 64,
        currency="BTC",
        crypto_amount=Decimal("0.025"),
        usd_amount=Decimal("1250.00"),
        status="completed",
        confirmations=1,
        required_confirmations=1,
        from_address="bc1qsender",
        detected_at=now_utc,
    )


def test_start_subscribes_and_forwards_received_events(fake_event_bus: Any, now_utc: datetime) -> None:
    service = SimpleNamespace(notify=Mock())
    notifier = DonationNotifier(service, fake_event_bus)  # type: ignore[arg-type]
    notifier.start()

    fake_event_bus.dispatch(_received(now_utc))

    service.notify.assert_called_once()
    message = service.notify.call_args.args[0]
    assert message.event_type == "donation_received"
    assert message.message == "Received 0.025 BTC on bitcoin"
    assert message.payload["usd_amount"] == "1250.00"
    assert message.payload["required_confirmations"] == 1
    assert message.payload["detected_at"] == now_utc.isoformat()


def test_completed_event_mentions_manual_review(fake_event_bus: Any) -> None:
    service = SimpleNamespace(notify=Mock())
    notifier = DonationNotifier(service, fake_event_bus)  # type: ignore[arg-type]
    notifier.start()

    fake_event_bus.dispatch(
        DonationCompletedEvent(
            donation_id="don-2",
            network="ethereum",
            tx_hash="0x" + "ab" * 32,
            currency="USDT",
            usd_amount=Decimal("100"),
            confirmations=12,
            manual_review_required=True,
        )
    )

    message = service.notify.call_args.args[0]
    assert message.event_type == "donation_completed"
    assert message.message == "Donation of $100 confirmed (pending manual review)"
    assert message.payload["network"] == "ethereum"
    assert message.payload["manual_review_required"] is True
    assert message.dedupe_key == "donation_completed:don-2"


def test_stop_unsubscribes(fake_event_bus: Any, now_utc: datetime) -> None:
    service = SimpleNamespace(notify=Mock())
    notifier = DonationNotifier(service, fake_event_bus)  # type: ignore[arg-type]
    notifier.start()
    notifier.stop()

    fake_event_bus.dispatch(_received(now_utc))

    service.notify.assert_not_called()
    assert fake_event_bus.handlers["DonationReceivedEvent"] == []
