"""Notification-related services (donation received, donation completed)."""

from crypto_donation_monitor.services.notifications.donation_notifier import DonationNotifier

__all__ = ["DonationNotifier"]
