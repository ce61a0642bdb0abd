"""Dependency injection."""

from crypto_donation_monitor.DI.container import Container

__all__ = ["Container"]
