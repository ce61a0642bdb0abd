# -*- coding: utf-8 -*-
"""DonationNotifier: listens to donation events and sends notifications."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Optional

import structlog

from crypto_donation_monitor.events.donations import DonationCompletedEvent, DonationReceivedEvent
from crypto_donation_monitor.notifications.types import NotificationMessage

if TYPE_CHECKING:
    from bubus import EventBus  # type: ignore[import-untyped]

    from crypto_donation_monitor.notifications.notification_manager import NotificationService


def _dec_to_str(v: Optional[Decimal]) -> Optional[str]:
    if v is None:
        return None
    return str(v)


def _dt_to_str(v: Optional[datetime]) -> Optional[str]:
    if v is None:
        return None
    return v.isoformat()


class DonationNotifier:
    """Subscribes to DonationReceivedEvent/DonationCompletedEvent and forwards them to NotificationService."""

    def __init__(
        self,
        notification_service: "NotificationService",
        event_bus: Any,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._notification_service = notification_service
        self._event_bus: "EventBus" = event_bus
        self._logger = get_logger(logger_name or self.__class__.__name__)

    def start(self) -> None:
        self._event_bus.on(DonationReceivedEvent, self._on_received)
        self._event_bus.on(DonationCompletedEvent, self._on_completed)
        self._logger.debug("donation_notifier_started")

    def stop(self) -> None:
        handlers = getattr(self._event_bus, "handlers", {})
        for event_type, handler in (
            (DonationReceivedEvent, self._on_received),
            (DonationCompletedEvent, self._on_completed),
        ):
            key = event_type.__name__
            if key in handlers:
                handlers[key] = [h for h in handlers[key] if h != handler]
        self._logger.debug("donation_notifier_stopped")

    def _on_received(self, event: DonationReceivedEvent) -> None:
        payload: dict[str, Any] = {
            "donation_id": event.donation_id,
            "network": event.network,
            "tx_hash": event.tx_hash,
            "currency": event.currency,
            "crypto_amount": _dec_to_str(event.crypto_amount),
            "usd_amount": _dec_to_str(event.usd_amount),
            "status": event.status,
            "confirmations": event.confirmations,
            "required_confirmations": event.required_confirmations,
        }
        if event.from_address:
            payload["from_address"] = event.from_address
        if event.detected_at is not None:
            payload["detected_at"] = _dt_to_str(event.detected_at)

        self._notification_service.notify(
            NotificationMessage(
                event_type="donation_received",
                message=f"Received {event.crypto_amount} {event.currency} on {event.network}",
                payload=payload,
                dedupe_key=f"donation_received:{event.donation_id}",
            )
        )
        self._logger.debug(
            "donation_received_notified",
            donation_id=event.donation_id,
            donation_network=event.network,
        )

    def _on_completed(self, event: DonationCompletedEvent) -> None:
        payload: dict[str, Any] = {
            "donation_id": event.donation_id,
            "currency": event.currency,
            "usd_amount": _dec_to_str(event.usd_amount),
            "status": "completed",
            "confirmations": event.confirmations,
            "manual_review_required": event.manual_review_required,
        }
        if event.network:
            payload["network"] = event.network
        if event.tx_hash:
            payload["tx_hash"] = event.tx_hash

        message = f"Donation of ${event.usd_amount} confirmed"
        if event.manual_review_required:
            message += " (pending manual review)"
        self._notification_service.notify(
            NotificationMessage(
                event_type="donation_completed",
                message=message,
                payload=payload,
                dedupe_key=f"donation_completed:{event.donation_id}",
            )
        )
        self._logger.debug("donation_completed_notified", donation_id=event.donation_id)
