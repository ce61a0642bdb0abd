"""Configuration subpackage."""

from crypto_donation_monitor.config.config import (
    ApiSettings,
    AppSettings,
    ConsoleNotificationSettings,
    LoggingSettings,
    MonitorSettings,
    NetworkApiSettings,
    PriceSettings,
    Settings,
    TelegramNotificationSettings,
    WalletSettings,
    get_settings,
)
from crypto_donation_monitor.config.networks import (
    NETWORK_POLICIES,
    Network,
    NetworkPolicy,
    TokenContract,
    amount_tolerance,
    get_policy,
    parse_network,
    required_confirmations,
)

__all__ = [
    "ApiSettings",
    "AppSettings",
    "ConsoleNotificationSettings",
    "LoggingSettings",
    "MonitorSettings",
    "NETWORK_POLICIES",
    "Network",
    "NetworkApiSettings",
    "NetworkPolicy",
    "PriceSettings",
    "Settings",
    "TelegramNotificationSettings",
    "TokenContract",
    "WalletSettings",
    "amount_tolerance",
    "get_policy",
    "get_settings",
    "parse_network",
    "required_confirmations",
]
