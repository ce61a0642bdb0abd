"""Notification message and styler contract."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class NotificationMessage:
    """One notification, rendered per channel by a NotificationStyler."""

    event_type: str
    message: str
    title: str | None = None
    payload: dict[str, Any] | None = None
    dedupe_key: str | None = None
    """Same key within the recent window is delivered once (e.g. donation_completed:<id>)."""


class NotificationStyler(Protocol):
    def render(self, message: NotificationMessage) -> str:
        """Return the text to send (Telegram HTML subset)."""
        ...
