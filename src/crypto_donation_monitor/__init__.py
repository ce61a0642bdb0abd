"""Multi-chain donation verification and monitoring."""

from crypto_donation_monitor.config import Network, get_settings

__version__ = "0.1.0"
__all__ = [
    "Network",
    "get_settings",
]
