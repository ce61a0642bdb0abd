# -*- coding: utf-8 -*-
"""Console notifier (print-based)."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from crypto_donation_monitor.notifications.strategies.base import BaseNotificationStrategy
from crypto_donation_monitor.notifications.types import NotificationMessage

if TYPE_CHECKING:  # pragma: no cover
    from crypto_donation_monitor.config import Settings
    from crypto_donation_monitor.notifications.types import NotificationStyler

_HTML_TAG = re.compile(r"</?[a-z]+>")


class ConsoleNotifier(BaseNotificationStrategy):
    """Print notifications to stdout with the HTML markup stripped."""

    def __init__(self, settings: "Settings", styler: "NotificationStyler") -> None:
        super().__init__(settings)
        self._running = False
        self._styler = styler

    @property
    def is_running(self) -> bool:
        return self._running

    async def initialize(self) -> None:
        self._running = True

    async def shutdown(self) -> None:
        self._running = False

    async def send_notification(self, message: NotificationMessage) -> None:
        if not self.is_running or not self.settings.console.enabled:
            return
        body = self._styler.render(message) if self._styler else message.message
        print(_HTML_TAG.sub("", body))
