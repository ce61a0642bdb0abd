# -*- coding: utf-8 -*-
"""Abstract base class for per-chain adapters."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import structlog

from crypto_donation_monitor.config.networks import NETWORK_POLICIES, Network, NetworkPolicy
from crypto_donation_monitor.models.transaction import ChainTransaction
from crypto_donation_monitor.models.wallet import TokenBalance, WalletSnapshot


class NetworkAdapter(ABC):
    """Normalizes one chain's explorer/RPC API into WalletSnapshot and ChainTransaction.

    Adapters return raw asset amounts; USD pricing is applied by the caller.
    Provider failures surface as ProviderError subclasses and unknown hashes as
    TransactionNotFoundError, so callers can tell "no data" from "no transaction".
    """

    network: Network

    def __init__(
        self,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def policy(self) -> NetworkPolicy:
        return NETWORK_POLICIES[self.network]

    @abstractmethod
    async def fetch_wallet_snapshot(self, address: str) -> WalletSnapshot:
        """Return balances (native and known tokens) for address."""
        ...

    @abstractmethod
    async def fetch_recent_transactions(self, address: str, limit: int) -> list[ChainTransaction]:
        """Return up to limit recent transfers touching address, newest first."""
        ...

    @abstractmethod
    async def fetch_transaction_by_hash(
        self,
        tx_hash: str,
        *,
        asset: str | None = None,
        recipient: str | None = None,
    ) -> ChainTransaction:
        """Return one transaction, decoded for asset and recipient when given.

        Raises:
            TransactionNotFoundError: If the hash is unknown.
            TransferDecodingError: If the expected transfer is not in the transaction.
            ProviderError: If the provider cannot be reached.
        """
        ...

    def _native_balance(self, amount: Decimal) -> TokenBalance:
        policy = self.policy
        return TokenBalance(
            symbol=policy.native_symbol,
            name=policy.native_name,
            balance=amount,
            usd_value=Decimal("0"),
            decimals=policy.native_decimals,
        )

    def _token_balance(self, symbol: str, amount: Decimal) -> TokenBalance:
        contract = self.policy.tokens[symbol]
        return TokenBalance(
            symbol=contract.symbol,
            name=contract.name,
            balance=amount,
            usd_value=Decimal("0"),
            contract_address=contract.address,
            decimals=contract.decimals,
        )

    def _snapshot(
        self,
        address: str,
        balances: Iterable[TokenBalance],
        transaction_count: int,
    ) -> WalletSnapshot:
        return WalletSnapshot(
            address=address,
            network=self.network,
            balances=tuple(balances),
            total_usd_value=Decimal("0"),
            transaction_count=transaction_count,
        )

    def _is_token_asset(self, asset: str | None) -> bool:
        if asset is None:
            return False
        return asset.upper() != self.policy.native_symbol and self.policy.supports_asset(asset)


def from_epoch(value: Any) -> datetime | None:
    """UTC datetime from epoch seconds (or milliseconds when the value is clearly ms)."""
    if value in (None, ""):
        return None
    try:
        ts = float(value)
    except (TypeError, ValueError):
        return None
    if ts > 1e11:
        ts /= 1000.0
    try:
        return datetime.fromtimestamp(ts, tz=timezone.utc)
    except (OSError, OverflowError, ValueError):
        return None


def from_iso(value: Any) -> datetime | None:
    """UTC datetime from an ISO-8601 string (Z suffix accepted)."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
