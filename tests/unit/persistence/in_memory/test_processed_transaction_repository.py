# -*- coding: utf-8 -*-
"""Unit tests for InMemoryProcessedTransactionRepository."""

from __future__ import annotations

import asyncio

from crypto_donation_monitor.config.networks import Network
from crypto_donation_monitor.models.processed_transaction import ProcessedTransaction
from crypto_donation_monitor.persistence.repositories.in_memory import (
    InMemoryProcessedTransactionRepository,
)


async def test_add_if_absent_claims_once(processed_repo: InMemoryProcessedTransactionRepository) -> None:
    record = ProcessedTransaction.create(Network.BITCOIN, "aa" * 32)

    first = await processed_repo.add_if_absent(record)
    second = await processed_repo.add_if_absent(record)

    assert first is True
    assert second is False
    assert await processed_repo.contains(Network.BITCOIN, "aa" * 32)
    assert await processed_repo.count() == 1


async def test_same_hash_on_other_network_is_distinct(
    processed_repo: InMemoryProcessedTransactionRepository,
) -> None:
    tx_hash = "0x" + "ab" * 32

    await processed_repo.add_if_absent(ProcessedTransaction.create(Network.ETHEREUM, tx_hash))

    assert await processed_repo.add_if_absent(ProcessedTransaction.create(Network.BSC, tx_hash))
    assert await processed_repo.count() == 2


async def test_concurrent_claims_have_single_winner(
    processed_repo: InMemoryProcessedTransactionRepository,
) -> None:
    record = ProcessedTransaction.create(Network.SOLANA, "5Vf1sig")

    results = await asyncio.gather(*(processed_repo.add_if_absent(record) for _ in range(10)))

    assert results.count(True) == 1


async def test_discard_releases_claim(processed_repo: InMemoryProcessedTransactionRepository) -> None:
    record = ProcessedTransaction.create(Network.TRON, "cd" * 32)
    await processed_repo.add_if_absent(record)

    await processed_repo.discard(Network.TRON, "cd" * 32)
    await processed_repo.discard(Network.TRON, "never-added")

    assert not await processed_repo.contains(Network.TRON, "cd" * 32)
    assert await processed_repo.add_if_absent(record)
