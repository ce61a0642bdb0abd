# -*- coding: utf-8 -*-
"""In-memory processed-transaction repository (keyed by (network, tx_hash))."""

from __future__ import annotations

import asyncio

from crypto_donation_monitor.config.networks import Network
from crypto_donation_monitor.models.processed_transaction import ProcessedTransaction
from crypto_donation_monitor.persistence.repositories.interfaces.processed_transaction_repository import (
    IProcessedTransactionRepository,
)


def _key(network: Network, tx_hash: str) -> tuple[str, str]:
    """Normalize key for storage."""
    return (network.value, tx_hash.strip())


class InMemoryProcessedTransactionRepository(IProcessedTransactionRepository):
    """In-memory implementation of IProcessedTransactionRepository."""

    def __init__(self) -> None:
        self._store: dict[tuple[str, str], ProcessedTransaction] = {}
        self._lock = asyncio.Lock()

    async def contains(self, network: Network, tx_hash: str) -> bool:
        return _key(network, tx_hash) in self._store

    async def add_if_absent(self, processed: ProcessedTransaction) -> bool:
        k = _key(processed.network, processed.tx_hash)
        async with self._lock:
            if k in self._store:
                return False
            self._store[k] = processed
            return True

    async def discard(self, network: Network, tx_hash: str) -> None:
        async with self._lock:
            self._store.pop(_key(network, tx_hash), None)

    async def count(self) -> int:
        return len(self._store)
