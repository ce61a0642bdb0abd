"""Abstract interface for the monitor's processed-transaction set."""

from __future__ import annotations

from abc import ABC, abstractmethod

from crypto_donation_monitor.config.networks import Network
from crypto_donation_monitor.models.processed_transaction import ProcessedTransaction


class IProcessedTransactionRepository(ABC):
    """Interface for deduplicating transactions across monitor cycles (keyed by network + hash)."""

    @abstractmethod
    async def contains(self, network: Network, tx_hash: str) -> bool:
        """Return True if (network, tx_hash) has been claimed."""
        ...

    @abstractmethod
    async def add_if_absent(self, processed: ProcessedTransaction) -> bool:
        """Claim a transaction atomically. Return False if it was already claimed."""
        ...

    @abstractmethod
    async def discard(self, network: Network, tx_hash: str) -> None:
        """Release a claim so a later cycle can retry the transaction."""
        ...

    @abstractmethod
    async def count(self) -> int:
        ...
