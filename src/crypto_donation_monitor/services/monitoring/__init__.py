"""Donation monitor: periodic wallet polling."""

from crypto_donation_monitor.services.monitoring.donation_monitor import DonationMonitor

__all__ = ["DonationMonitor"]
