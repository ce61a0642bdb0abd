# -*- coding: utf-8 -*-
"""ChainTransaction: a transfer observed on any supported network.

Values are in asset units (BTC, ETH, USDT...), already scaled from raw chain units
by the adapter that produced the record.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from crypto_donation_monitor.config.networks import NETWORK_POLICIES, Network


class TransactionStatus(str, Enum):
    """On-chain execution state."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ChainTransaction:
    """Normalized transfer record."""

    hash: str
    network: Network
    from_address: str
    to_address: str
    value: Decimal
    token_symbol: str | None
    """None for the network's native asset."""
    block_height: int | None
    confirmations: int
    timestamp: datetime | None
    status: TransactionStatus
    contract_address: str | None = None
    """Token contract (EVM/Tron) or mint (Solana) when token_symbol is set."""
    destination_tag: int | None = None

    @property
    def asset_symbol(self) -> str:
        """Token symbol, or the native symbol of the network."""
        return self.token_symbol or NETWORK_POLICIES[self.network].native_symbol
