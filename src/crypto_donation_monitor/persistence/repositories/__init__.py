# -*- coding: utf-8 -*-
"""Repositories: interfaces (abstractions) and implementations (in_memory, etc.)."""

from crypto_donation_monitor.persistence.repositories.interfaces import (
    IDonationStore,
    IProcessedTransactionRepository,
)
from crypto_donation_monitor.persistence.repositories.in_memory import (
    InMemoryDonationStore,
    InMemoryProcessedTransactionRepository,
)

__all__ = [
    "IDonationStore",
    "IProcessedTransactionRepository",
    "InMemoryDonationStore",
    "InMemoryProcessedTransactionRepository",
]
