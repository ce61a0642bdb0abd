# -*- coding: utf-8 -*-
"""Donation events."""

from crypto_donation_monitor.events.donations.donation_events import (
    DonationCompletedEvent,
    DonationReceivedEvent,
)

__all__ = ["DonationCompletedEvent", "DonationReceivedEvent"]
