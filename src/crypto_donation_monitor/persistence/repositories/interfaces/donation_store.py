"""Abstract interface for donation persistence (in-memory, DB, etc.)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from crypto_donation_monitor.models.donation import Donation, DonationStatus


class IDonationStore(ABC):
    """Interface for persisting Donation records.

    Implementations are expected to be safe to call from concurrent tasks on one
    event loop; the monitor writes from several network checks at once.
    """

    @abstractmethod
    async def create(self, donation: Donation) -> str:
        """Persist a new donation and return its id."""
        ...

    @abstractmethod
    async def update_status(
        self,
        donation_id: str,
        status: DonationStatus,
        tx_hash: str | None = None,
        *,
        confirmations: int | None = None,
        manual_review_required: bool | None = None,
    ) -> Donation:
        """Update status (and optionally tx hash/confirmations). Return the updated record.

        Raises:
            DonationNotFoundError: If donation_id is unknown.
        """
        ...

    @abstractmethod
    async def get(self, donation_id: str) -> Donation | None:
        ...

    @abstractmethod
    async def save(self, donation: Donation) -> None:
        """Replace an existing donation (e.g. after metadata changes)."""
        ...

    @abstractmethod
    async def find_by_tx_hash(self, tx_hash: str) -> Donation | None:
        """Return the donation that carries tx_hash, if any."""
        ...

    @abstractmethod
    async def find_pending(self, older_than: datetime | None = None) -> list[Donation]:
        """Return pending donations, optionally only those created before older_than."""
        ...
