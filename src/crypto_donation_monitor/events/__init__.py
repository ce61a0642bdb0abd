# -*- coding: utf-8 -*-
"""Event bus and event types."""

from crypto_donation_monitor.events.bus import get_event_bus, set_event_bus
from crypto_donation_monitor.events.donations import (
    DonationCompletedEvent,
    DonationReceivedEvent,
)

__all__ = [
    "DonationCompletedEvent",
    "DonationReceivedEvent",
    "get_event_bus",
    "set_event_bus",
]
