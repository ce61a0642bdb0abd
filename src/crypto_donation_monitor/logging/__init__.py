"""Structured logging setup."""

from crypto_donation_monitor.logging.config import configure_logging

__all__ = ["configure_logging"]
