"""Notification stylers."""

from crypto_donation_monitor.notifications.stylers.notification_styler import (
    DonationNotificationStyler,
)

__all__ = ["DonationNotificationStyler"]
