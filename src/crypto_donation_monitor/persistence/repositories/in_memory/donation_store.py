# -*- coding: utf-8 -*-
"""In-memory donation store (keyed by donation id)."""

from __future__ import annotations

import asyncio
from datetime import datetime

from crypto_donation_monitor.exceptions import DonationNotFoundError
from crypto_donation_monitor.models.donation import Donation, DonationStatus
from crypto_donation_monitor.persistence.repositories.interfaces.donation_store import (
    IDonationStore,
)


class InMemoryDonationStore(IDonationStore):
    """In-memory implementation of IDonationStore. Suitable for local runs and tests."""

    def __init__(self) -> None:
        self._store: dict[str, Donation] = {}
        self._lock = asyncio.Lock()

    async def create(self, donation: Donation) -> str:
        async with self._lock:
            if donation.id in self._store:
                raise ValueError(f"Donation {donation.id} already exists")
            self._store[donation.id] = donation
        return donation.id

    async def update_status(
        self,
        donation_id: str,
        status: DonationStatus,
        tx_hash: str | None = None,
        *,
        confirmations: int | None = None,
        manual_review_required: bool | None = None,
    ) -> Donation:
        async with self._lock:
            current = self._store.get(donation_id)
            if current is None:
                raise DonationNotFoundError(donation_id)
            updated = current.with_status(
                status,
                tx_hash=tx_hash,
                confirmations=confirmations,
                manual_review_required=manual_review_required,
            )
            self._store[donation_id] = updated
            return updated

    async def get(self, donation_id: str) -> Donation | None:
        return self._store.get(donation_id)

    async def save(self, donation: Donation) -> None:
        async with self._lock:
            if donation.id not in self._store:
                raise DonationNotFoundError(donation.id)
            self._store[donation.id] = donation

    async def find_by_tx_hash(self, tx_hash: str) -> Donation | None:
        needle = tx_hash.strip().lower()
        for donation in self._store.values():
            if donation.tx_hash and donation.tx_hash.lower() == needle:
                return donation
        return None

    async def find_pending(self, older_than: datetime | None = None) -> list[Donation]:
        pending = [d for d in self._store.values() if d.status == DonationStatus.PENDING]
        if older_than is not None:
            pending = [d for d in pending if d.created_at < older_than]
        return sorted(pending, key=lambda d: d.created_at)

    def list_all(self) -> list[Donation]:
        """Return every stored donation, oldest first."""
        return sorted(self._store.values(), key=lambda d: d.created_at)
