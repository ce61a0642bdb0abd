"""NotificationService: one delivery queue in front of every notification channel.

Messages carrying a dedupe_key are delivered at most once per key within the
recent-key window, so a donation completed by both the payment flow and a later
reconciler pass is announced once.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import structlog
from cachetools import LRUCache

from crypto_donation_monitor.notifications.strategies import BaseNotificationStrategy
from crypto_donation_monitor.notifications.types import NotificationMessage


@dataclass
class ChannelStats:
    """Delivery counters for one channel."""

    delivered: int = 0
    failed: int = 0


@dataclass
class NotificationService:
    """Fan notifications out to all configured channels from a background worker."""

    notifiers: list[BaseNotificationStrategy]
    queue_size: int = 1000
    dedupe_window: int = 1024
    get_logger: Callable[[str], Any] = field(default=structlog.get_logger)
    _queue: asyncio.Queue[NotificationMessage] | None = field(init=False, default=None)
    _worker: asyncio.Task[None] | None = field(init=False, default=None)
    _recent_keys: LRUCache[str, bool] = field(init=False)
    _stats: dict[str, ChannelStats] = field(init=False)
    _dropped: int = field(init=False, default=0)
    _logger: Any = field(init=False)

    def __post_init__(self) -> None:
        self._logger = self.get_logger("NotificationService")
        self._recent_keys = LRUCache(maxsize=self.dedupe_window)
        self._stats = {type(n).__name__: ChannelStats() for n in self.notifiers}

    @property
    def dropped(self) -> int:
        """Messages discarded because the queue was full."""
        return self._dropped

    def stats(self) -> dict[str, ChannelStats]:
        return {name: ChannelStats(s.delivered, s.failed) for name, s in self._stats.items()}

    async def initialize(self) -> None:
        for notifier in self.notifiers:
            await notifier.initialize()
        if not self.notifiers:
            self._logger.info("notification_channels_none_configured")
            return
        self._queue = asyncio.Queue(maxsize=self.queue_size)
        self._worker = asyncio.create_task(self._deliver_forever(self._queue))
        self._logger.debug(
            "notification_service_ready",
            notification_channels=sorted(self._stats),
            notification_queue_size=self.queue_size,
        )

    async def shutdown(self) -> None:
        """Deliver what is already queued, then stop every channel."""
        queue, self._queue = self._queue, None
        if queue is not None:
            queue.shutdown()
            await queue.join()
        if self._worker is not None:
            await self._worker
            self._worker = None
        for notifier in self.notifiers:
            await notifier.shutdown()
        self._logger.info(
            "notification_service_stopped",
            notification_delivered={k: s.delivered for k, s in self._stats.items()},
            notification_failed={k: s.failed for k, s in self._stats.items()},
            notification_dropped=self._dropped,
        )

    def notify(self, message: NotificationMessage) -> None:
        """Queue message for delivery without waiting on any channel.

        Raises:
            RuntimeError: If channels are configured but initialize() has not run.
        """
        if self._queue is None:
            if self.notifiers:
                raise RuntimeError("NotificationService not initialized")
            return
        if message.dedupe_key is not None:
            if message.dedupe_key in self._recent_keys:
                self._logger.debug("notification_duplicate_skipped", notification_dedupe_key=message.dedupe_key)
                return
            self._recent_keys[message.dedupe_key] = True
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            self._dropped += 1
            self._logger.warning("notification_queue_full_dropped", notification_event_type=message.event_type)

    async def _deliver_forever(self, queue: asyncio.Queue[NotificationMessage]) -> None:
        while True:
            try:
                message = await queue.get()
            except asyncio.QueueShutDown:
                return
            try:
                await self._deliver(message)
            finally:
                queue.task_done()

    async def _deliver(self, message: NotificationMessage) -> None:
        # Channels are independent: a slow or broken one does not hold back the others.
        results = await asyncio.gather(
            *(n.send_notification(message) for n in self.notifiers),
            return_exceptions=True,
        )
        for notifier, result in zip(self.notifiers, results):
            stats = self._stats[type(notifier).__name__]
            if isinstance(result, Exception):
                stats.failed += 1
                self._logger.warning(
                    "notification_channel_failed",
                    notification_channel=type(notifier).__name__,
                    notification_event_type=message.event_type,
                    error_type=type(result).__name__,
                    error_message=str(result),
                )
            elif isinstance(result, BaseException):
                raise result
            else:
                stats.delivered += 1
