# -*- coding: utf-8 -*-
"""Donation: a payment record written through the DonationStore.

Metadata is a tagged variant keyed by payment_method; the monitor and the payment
service only ever produce CryptoMetadata, card/bank records come from other channels
and pass through unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Literal, Union
from uuid import uuid4

from crypto_donation_monitor.config.networks import Network


class DonationStatus(str, Enum):
    """Donation lifecycle state."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class DonationSource(str, Enum):
    """How the crypto payment reached us."""

    BLOCKCHAIN_MONITOR = "blockchain_monitor"
    """Detected by polling the receiving wallet."""
    PAYMENT_INTENT = "payment_intent"
    """Created by a donor-facing payment flow, tx hash submitted later."""


@dataclass(frozen=True, slots=True)
class CryptoMetadata:
    network: Network
    asset_symbol: str
    crypto_amount: Decimal
    crypto_price: Decimal
    """USD price per unit used for the conversion."""
    wallet_address: str
    destination_tag: int | None = None
    source: DonationSource = DonationSource.BLOCKCHAIN_MONITOR
    from_address: str | None = None
    block_height: int | None = None
    expires_at: datetime | None = None
    verification_error: str | None = None
    payment_method: Literal["crypto"] = "crypto"


@dataclass(frozen=True, slots=True)
class CardMetadata:
    processor: str
    last4: str | None = None
    payment_method: Literal["card"] = "card"


@dataclass(frozen=True, slots=True)
class BankMetadata:
    bank_name: str | None = None
    reference: str | None = None
    payment_method: Literal["bank"] = "bank"


DonationMetadata = Union[CryptoMetadata, CardMetadata, BankMetadata]


@dataclass(frozen=True, slots=True)
class Donation:
    """One donation. amount is in USD; crypto details live in metadata."""

    id: str
    amount: Decimal
    currency: str
    """Asset the donor paid with (BTC, USDT...)."""
    network: Network | None
    status: DonationStatus
    tx_hash: str | None
    confirmations: int
    metadata: DonationMetadata
    created_at: datetime
    updated_at: datetime
    manual_review_required: bool = False

    @property
    def payment_method(self) -> str:
        return self.metadata.payment_method

    @property
    def crypto_metadata(self) -> CryptoMetadata | None:
        return self.metadata if isinstance(self.metadata, CryptoMetadata) else None

    @property
    def is_pending(self) -> bool:
        return self.status == DonationStatus.PENDING

    def with_status(
        self,
        status: DonationStatus,
        *,
        tx_hash: str | None = None,
        confirmations: int | None = None,
        manual_review_required: bool | None = None,
        updated_at: datetime | None = None,
    ) -> Donation:
        """Return a copy with a new status; unset arguments keep their current values."""
        return replace(
            self,
            status=status,
            tx_hash=tx_hash if tx_hash is not None else self.tx_hash,
            confirmations=confirmations if confirmations is not None else self.confirmations,
            manual_review_required=(
                manual_review_required
                if manual_review_required is not None
                else self.manual_review_required
            ),
            updated_at=updated_at or datetime.now(timezone.utc),
        )

    def with_metadata(self, metadata: DonationMetadata) -> Donation:
        return replace(self, metadata=metadata, updated_at=datetime.now(timezone.utc))

    @classmethod
    def create(
        cls,
        *,
        amount: Decimal,
        currency: str,
        metadata: DonationMetadata,
        network: Network | None = None,
        status: DonationStatus = DonationStatus.PENDING,
        tx_hash: str | None = None,
        confirmations: int = 0,
        id: str | None = None,
        created_at: datetime | None = None,
    ) -> Donation:
        """Create a new Donation (pending by default)."""
        if amount < 0:
            raise ValueError("amount must be >= 0")
        now = created_at or datetime.now(timezone.utc)
        return cls(
            id=id or str(uuid4()),
            amount=amount,
            currency=currency.upper(),
            network=network,
            status=status,
            tx_hash=tx_hash,
            confirmations=confirmations,
            metadata=metadata,
            created_at=now,
            updated_at=now,
        )
