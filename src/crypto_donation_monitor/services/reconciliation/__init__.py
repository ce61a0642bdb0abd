"""Pending donation reconciliation."""

from crypto_donation_monitor.services.reconciliation.pending_reconciler import (
    PendingDonationReconciler,
    ReconciliationReport,
)

__all__ = ["PendingDonationReconciler", "ReconciliationReport"]
