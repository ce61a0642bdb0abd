"""Notification strategies."""

from crypto_donation_monitor.notifications.strategies.base import (
    BaseNotificationStrategy,
)
from crypto_donation_monitor.notifications.strategies.console import ConsoleNotifier
from crypto_donation_monitor.notifications.strategies.telegram import TelegramNotifier

__all__ = [
    "BaseNotificationStrategy",
    "ConsoleNotifier",
    "TelegramNotifier",
]
