# -*- coding: utf-8 -*-
"""Wallet-side domain models: addresses, balances and snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from crypto_donation_monitor.config.networks import Network, parse_network


@dataclass(frozen=True, slots=True)
class WalletAddress:
    """A receiving address on one network. Built from settings, never mutated."""

    network: Network
    address: str
    destination_tag: int | None = None
    """XRP only: tag donors must include so the payment is attributed to us."""

    @classmethod
    def create(
        cls,
        network: str | Network,
        address: str,
        *,
        destination_tag: int | None = None,
    ) -> WalletAddress:
        """Create a WalletAddress, normalising the network name and stripping the address."""
        return cls(
            network=parse_network(network),
            address=(address or "").strip(),
            destination_tag=destination_tag,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.address)


@dataclass(frozen=True, slots=True)
class TokenBalance:
    """Balance of one asset held by a wallet."""

    symbol: str
    name: str
    balance: Decimal
    usd_value: Decimal
    contract_address: str | None = None
    decimals: int = 0


@dataclass(frozen=True, slots=True)
class WalletSnapshot:
    """Normalized view of a wallet on one network at fetch time."""

    address: str
    network: Network
    balances: tuple[TokenBalance, ...]
    total_usd_value: Decimal
    transaction_count: int

    def balance_of(self, symbol: str) -> TokenBalance | None:
        upper = symbol.upper()
        for balance in self.balances:
            if balance.symbol == upper:
                return balance
        return None

    def with_prices(self, prices: dict[str, Decimal]) -> WalletSnapshot:
        """Return a copy with usd_value and total_usd_value recomputed from prices."""
        priced = tuple(
            TokenBalance(
                symbol=b.symbol,
                name=b.name,
                balance=b.balance,
                usd_value=b.balance * prices.get(b.symbol, Decimal("0")),
                contract_address=b.contract_address,
                decimals=b.decimals,
            )
            for b in self.balances
        )
        return WalletSnapshot(
            address=self.address,
            network=self.network,
            balances=priced,
            total_usd_value=sum((b.usd_value for b in priced), Decimal("0")),
            transaction_count=self.transaction_count,
        )


@dataclass(frozen=True, slots=True)
class PortfolioView:
    """Merged snapshots across every configured wallet."""

    snapshots: tuple[WalletSnapshot, ...]
    total_usd_value: Decimal
    usd_by_network: dict[Network, Decimal] = field(default_factory=dict)
    failed: tuple[WalletAddress, ...] = ()
    """Wallets whose provider failed this refresh (no data, not zero)."""
