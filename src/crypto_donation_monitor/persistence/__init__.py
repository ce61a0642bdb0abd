"""Persistence layer (repositories, etc.)."""

from crypto_donation_monitor.persistence.repositories import (
    IDonationStore,
    InMemoryDonationStore,
    InMemoryProcessedTransactionRepository,
    IProcessedTransactionRepository,
)

__all__ = [
    "IDonationStore",
    "IProcessedTransactionRepository",
    "InMemoryDonationStore",
    "InMemoryProcessedTransactionRepository",
]
