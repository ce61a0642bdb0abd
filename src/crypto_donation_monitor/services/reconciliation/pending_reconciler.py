# -*- coding: utf-8 -*-
"""PendingDonationReconciler: re-verifies pending crypto donations until they settle."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any, Optional

import structlog
from structlog.contextvars import bound_contextvars

from crypto_donation_monitor.events.donations import DonationCompletedEvent
from crypto_donation_monitor.exceptions import ConfigurationError
from crypto_donation_monitor.models.donation import Donation, DonationStatus

if TYPE_CHECKING:
    from bubus import EventBus  # type: ignore[import-untyped]

    from crypto_donation_monitor.config import Settings
    from crypto_donation_monitor.models.verification import VerificationResult
    from crypto_donation_monitor.persistence.repositories.interfaces import IDonationStore
    from crypto_donation_monitor.services.verification import TransactionVerifier


@dataclass(frozen=True)
class ReconciliationReport:
    """Counts from one reconcile_pending run."""

    checked: int = 0
    completed: int = 0
    failed: int = 0
    still_pending: int = 0
    manual_review: int = 0
    """Left pending because verification could only be assumed (provider down) or decoding failed."""
    expired: int = 0
    """Payment intents that never received a tx hash before expiring."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PendingDonationReconciler:
    """Moves pending crypto donations to completed or failed.

    - hard-verified on chain: completed.
    - accepted only through the provider-unavailable fallback: stays pending, flagged.
    - negative result: stays pending until older than the failure cutoff, then failed.
    - intent without a tx hash past its expiry: failed.
    """

    def __init__(
        self,
        donation_store: IDonationStore,
        verifier: TransactionVerifier,
        settings: Settings,
        *,
        event_bus: Optional[Any] = None,
        clock: Callable[[], datetime] = _utcnow,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        self._store = donation_store
        self._verifier = verifier
        self._cutoff = timedelta(hours=settings.monitor.pending_failure_cutoff_hours)
        self._event_bus: "EventBus | None" = event_bus
        self._clock = clock
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def reconcile_pending(self) -> ReconciliationReport:
        now = self._clock()
        checked = completed = failed = still_pending = manual_review = expired = 0

        for donation in await self._store.find_pending():
            meta = donation.crypto_metadata
            if meta is None or donation.network is None:
                continue
            if not donation.tx_hash:
                if meta.expires_at is not None and meta.expires_at < now:
                    await self._fail(donation, "Payment intent expired without a transaction")
                    expired += 1
                continue

            checked += 1
            with bound_contextvars(reconcile_donation_id=donation.id, reconcile_network=meta.network.value):
                try:
                    result = await self._verifier.verify(
                        donation.tx_hash,
                        meta.network,
                        meta.crypto_amount,
                        meta.wallet_address,
                        meta.asset_symbol,
                        destination_tag=meta.destination_tag,
                    )
                except ConfigurationError as e:
                    self._logger.error(
                        "reconcile_configuration_error",
                        error_type=type(e).__name__,
                        error_message=str(e),
                    )
                    still_pending += 1
                    continue

                if result.is_hard_verified:
                    await self._complete(donation, result)
                    completed += 1
                elif result.is_valid:
                    # Assumed valid while the provider is down: keep pending for an operator.
                    await self._store.update_status(
                        donation.id, DonationStatus.PENDING, manual_review_required=True
                    )
                    manual_review += 1
                elif now - donation.created_at > self._cutoff:
                    await self._fail(donation, result.error)
                    failed += 1
                elif result.manual_review_required:
                    await self._store.update_status(
                        donation.id,
                        DonationStatus.PENDING,
                        confirmations=result.confirmations,
                        manual_review_required=True,
                    )
                    manual_review += 1
                else:
                    await self._store.update_status(
                        donation.id, DonationStatus.PENDING, confirmations=result.confirmations
                    )
                    still_pending += 1

        report = ReconciliationReport(
            checked=checked,
            completed=completed,
            failed=failed,
            still_pending=still_pending,
            manual_review=manual_review,
            expired=expired,
        )
        self._logger.info(
            "reconcile_completed",
            reconcile_checked=report.checked,
            reconcile_completed=report.completed,
            reconcile_failed=report.failed,
            reconcile_still_pending=report.still_pending,
            reconcile_manual_review=report.manual_review,
            reconcile_expired=report.expired,
        )
        return report

    async def _complete(self, donation: Donation, result: VerificationResult) -> None:
        updated = await self._store.update_status(
            donation.id,
            DonationStatus.COMPLETED,
            confirmations=result.confirmations,
            manual_review_required=False,
        )
        self._logger.info("reconcile_donation_completed", donation_confirmations=result.confirmations)
        if self._event_bus is not None:
            self._event_bus.dispatch(
                DonationCompletedEvent(
                    donation_id=updated.id,
                    network=updated.network.value if updated.network else None,
                    tx_hash=updated.tx_hash,
                    currency=updated.currency,
                    usd_amount=updated.amount,
                    confirmations=updated.confirmations,
                    manual_review_required=False,
                )
            )

    async def _fail(self, donation: Donation, error: str | None) -> None:
        updated = await self._store.update_status(donation.id, DonationStatus.FAILED)
        meta = updated.crypto_metadata
        if meta is not None and error:
            await self._store.save(updated.with_metadata(replace(meta, verification_error=error)))
        self._logger.warning("reconcile_donation_failed", donation_id=donation.id, error_message=error)
