"""Monitor status snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from crypto_donation_monitor.config.networks import Network


@dataclass(frozen=True, slots=True)
class MonitoringStatus:
    is_monitoring: bool
    wallets_configured: int
    last_checked: dict[Network, datetime] = field(default_factory=dict)
    processed_transactions: int = 0
