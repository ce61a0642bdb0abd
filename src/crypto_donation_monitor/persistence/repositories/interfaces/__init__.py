# -*- coding: utf-8 -*-
"""Repository interfaces (abstractions). Implementations live in in_memory/, sql/, etc."""

from crypto_donation_monitor.persistence.repositories.interfaces.donation_store import (
    IDonationStore,
)
from crypto_donation_monitor.persistence.repositories.interfaces.processed_transaction_repository import (
    IProcessedTransactionRepository,
)

__all__ = [
    "IDonationStore",
    "IProcessedTransactionRepository",
]
