# -*- coding: utf-8 -*-
"""Donation notification styler with emoji separators (Telegram-style)."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from crypto_donation_monitor.notifications.types import NotificationMessage, NotificationStyler

_DONATION_EVENT_TYPES = frozenset({"donation_received", "donation_completed"})


class DonationNotificationStyler(NotificationStyler):
    """Render notifications by event_type with emojis, separators and formatted sections."""

    def render(self, message: NotificationMessage) -> str:
        if message.event_type in _DONATION_EVENT_TYPES:
            return self._render_donation(message)
        if message.event_type in ("monitor_started", "monitor_stopped"):
            return self._render_status(message)
        return self._render_generic(message)

    def _render_donation(self, message: NotificationMessage) -> str:
        payload: dict[str, Any] = dict(message.payload or {})
        emoji, title = self._title(message.event_type)
        currency = payload.get("currency") or ""
        crypto_amount = payload.get("crypto_amount")
        amount_row = (
            f"{self._format_amount(crypto_amount)} {currency}".strip() if crypto_amount is not None else ""
        )
        confirmations = payload.get("confirmations")
        required = payload.get("required_confirmations")
        confirmations_row = (
            f"{confirmations}/{required}" if confirmations is not None and required is not None
            else (str(confirmations) if confirmations is not None else "")
        )
        review = "⚠️ Yes" if payload.get("manual_review_required") else ""

        lines = [
            f"{emoji} <b>{title}</b>\n",
            self._section(
                "💰 Donation",
                [
                    ("💵 USD", self._format_usd(payload.get("usd_amount"))),
                    ("🪙 Amount", amount_row),
                    ("🌐 Network", payload.get("network") or ""),
                    ("📌 Status", payload.get("status") or ""),
                ],
            ),
            self._section(
                "⛓️ On Chain",
                [
                    ("🔗 Transaction", payload.get("tx_hash") or ""),
                    ("👛 From", payload.get("from_address") or ""),
                    ("✅ Confirmations", confirmations_row),
                    ("🕒 Detected", self._format_timestamp(payload.get("detected_at"))),
                    ("🔍 Manual review", review),
                ],
            ),
            self._section("🆔 Reference", [("", payload.get("donation_id") or "")]),
        ]
        return "\n".join(line for line in lines if line).strip()

    def _render_status(self, message: NotificationMessage) -> str:
        emoji, title = self._title(message.event_type)
        lines = [f"{emoji} <b>{title}</b>\n", self._section("📡 Status", [("", message.message)])]
        networks = (message.payload or {}).get("networks")
        if isinstance(networks, list) and networks:
            lines.append(self._section("🌐 Networks", [("", ", ".join(str(n) for n in networks))]))
        return "\n".join(line for line in lines if line).strip()

    def _render_generic(self, message: NotificationMessage) -> str:
        emoji, title = self._title(message.event_type)
        lines = [f"{emoji} <b>{title}</b>", message.message]
        if message.payload:
            for key in sorted(message.payload):
                value = message.payload[key]
                if value is not None:
                    lines.append(f"<b>{key}:</b> {value}")
        return "\n".join(lines).strip()

    @staticmethod
    def _title(event_type: str) -> tuple[str, str]:
        mapping = {
            "donation_received": ("📥", "Donation Received"),
            "donation_completed": ("✅", "Donation Confirmed"),
            "monitor_started": ("▶️", "Monitor Started"),
            "monitor_stopped": ("⏹️", "Monitor Stopped"),
        }
        return mapping.get(event_type, ("ℹ️", event_type.replace("_", " ").title()))

    def _section(self, header: str, rows: list[tuple[str, Any]]) -> str:
        content_lines: list[str] = []
        for label, value in rows:
            if not value:
                continue
            if label:
                content_lines.append(f"{self._format_label(label)} {value}")
            else:
                content_lines.append(str(value))
        if not content_lines:
            return ""
        return "\n".join([f"{self._format_heading(header)}\n{'─'*12}", *content_lines]) + "\n"

    @staticmethod
    def _format_usd(value: Any) -> str:
        if value is None:
            return ""
        try:
            return f"${Decimal(str(value)):,.2f}"
        except (InvalidOperation, ValueError):
            return str(value)

    @staticmethod
    def _format_amount(value: Any) -> str:
        """Plain decimal notation without trailing zeros."""
        try:
            number = Decimal(str(value)).normalize()
        except (InvalidOperation, ValueError):
            return str(value)
        return format(number, "f")

    @staticmethod
    def _format_timestamp(value: Any) -> str:
        if isinstance(value, datetime):
            return value.isoformat()
        return str(value) if value else ""

    @staticmethod
    def _format_heading(text: str) -> str:
        emoji, _, remainder = text.partition(" ")
        if remainder:
            return f"{emoji} <b>{remainder}</b>"
        return f"<b>{text}</b>"

    @staticmethod
    def _format_label(label: str) -> str:
        emoji, _, remainder = label.partition(" ")
        if remainder:
            return f"{emoji} <b>{remainder}:</b>"
        return f"<b>{label}:</b>"
