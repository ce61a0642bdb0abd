"""Notification subsystem."""

from crypto_donation_monitor.notifications.notification_manager import (
    ChannelStats,
    NotificationService,
)
from crypto_donation_monitor.notifications.strategies import (
    BaseNotificationStrategy,
    ConsoleNotifier,
    TelegramNotifier,
)
from crypto_donation_monitor.notifications.stylers import DonationNotificationStyler
from crypto_donation_monitor.notifications.types import (
    NotificationMessage,
    NotificationStyler,
)

__all__ = [
    "BaseNotificationStrategy",
    "ChannelStats",
    "ConsoleNotifier",
    "DonationNotificationStyler",
    "NotificationMessage",
    "NotificationService",
    "NotificationStyler",
    "TelegramNotifier",
]
