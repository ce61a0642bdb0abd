# -*- coding: utf-8 -*-
"""VerificationResult: outcome of checking a claimed transaction hash."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from crypto_donation_monitor.config.networks import Network


@dataclass(frozen=True, slots=True)
class VerificationResult:
    """Result of TransactionVerifier.verify.

    is_valid holds only when recipient, amount and confirmations all check out, except
    in the provider-unavailable fallback, where the claim is accepted with
    manual_review_required set so an operator re-checks it later.
    """

    is_valid: bool
    confirmations: int
    amount: Decimal
    to_address: str
    from_address: str
    block_height: int | None = None
    timestamp: datetime | None = None
    error: str | None = None
    manual_review_required: bool = False
    network: Network | None = None
    tx_hash: str | None = None
    required_confirmations: int | None = None

    @property
    def is_confirmed(self) -> bool:
        if self.required_confirmations is None:
            return self.is_valid
        return self.confirmations >= self.required_confirmations

    @property
    def is_hard_verified(self) -> bool:
        """Valid on chain evidence alone (not accepted through the fallback)."""
        return self.is_valid and not self.manual_review_required

    @classmethod
    def invalid(
        cls,
        error: str,
        *,
        network: Network | None = None,
        tx_hash: str | None = None,
        required_confirmations: int | None = None,
        confirmations: int = 0,
        amount: Decimal = Decimal("0"),
        to_address: str = "",
        from_address: str = "",
        block_height: int | None = None,
        timestamp: datetime | None = None,
        manual_review_required: bool = False,
    ) -> VerificationResult:
        """Build a negative result carrying whatever was observed on chain."""
        return cls(
            is_valid=False,
            confirmations=confirmations,
            amount=amount,
            to_address=to_address,
            from_address=from_address,
            block_height=block_height,
            timestamp=timestamp,
            error=error,
            manual_review_required=manual_review_required,
            network=network,
            tx_hash=tx_hash,
            required_confirmations=required_confirmations,
        )

    @classmethod
    def assumed_valid(
        cls,
        *,
        network: Network,
        tx_hash: str,
        expected_amount: Decimal,
        expected_to_address: str,
        required_confirmations: int,
    ) -> VerificationResult:
        """Fail-open result used when no provider could be reached."""
        return cls(
            is_valid=True,
            confirmations=required_confirmations,
            amount=expected_amount,
            to_address=expected_to_address,
            from_address="",
            error=None,
            manual_review_required=True,
            network=network,
            tx_hash=tx_hash,
            required_confirmations=required_confirmations,
        )
