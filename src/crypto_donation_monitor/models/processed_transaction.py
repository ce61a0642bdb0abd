"""ProcessedTransaction: one entry of the monitor's processed set.

Identity is (network, tx_hash). Used so a transaction is turned into a donation
at most once, whichever cycle sees it first.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from crypto_donation_monitor.config.networks import Network


@dataclass(frozen=True, slots=True)
class ProcessedTransaction:
    """Record that a transaction has been claimed by the monitor."""

    network: Network
    tx_hash: str
    processed_at: datetime
    """When the transaction was first claimed (for retention/audit)."""

    @property
    def key(self) -> str:
        return f"{self.network.value}-{self.tx_hash}"

    @classmethod
    def create(
        cls,
        network: Network,
        tx_hash: str,
        *,
        processed_at: datetime | None = None,
    ) -> ProcessedTransaction:
        """Create a new ProcessedTransaction record."""
        tx_hash = tx_hash.strip()
        if not tx_hash:
            raise ValueError("tx_hash must be non-empty")
        return cls(
            network=network,
            tx_hash=tx_hash,
            processed_at=processed_at or datetime.now(UTC),
        )
