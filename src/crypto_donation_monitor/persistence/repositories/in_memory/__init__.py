"""In-memory repository implementations."""

from crypto_donation_monitor.persistence.repositories.in_memory.donation_store import (
    InMemoryDonationStore,
)
from crypto_donation_monitor.persistence.repositories.in_memory.processed_transaction_repository import (
    InMemoryProcessedTransactionRepository,
)

__all__ = [
    "InMemoryDonationStore",
    "InMemoryProcessedTransactionRepository",
]
