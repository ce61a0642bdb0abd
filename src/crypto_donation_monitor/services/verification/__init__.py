"""Transaction verification."""

from crypto_donation_monitor.services.verification.transaction_verifier import (
    TransactionVerifier,
)

__all__ = ["TransactionVerifier"]
