# -*- coding: utf-8 -*-
"""WalletAggregator: fans out to network adapters and merges priced snapshots."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import structlog
from structlog.contextvars import bound_contextvars

from crypto_donation_monitor.config.networks import Network, parse_network
from crypto_donation_monitor.exceptions import ConfigurationError
from crypto_donation_monitor.models.wallet import PortfolioView, WalletAddress, WalletSnapshot
from crypto_donation_monitor.utils.validation import mask_address

if TYPE_CHECKING:
    from crypto_donation_monitor.adapters.registry import AdapterRegistry
    from crypto_donation_monitor.config import Settings
    from crypto_donation_monitor.services.prices import PriceOracle


def wallet_addresses(settings: Settings) -> list[WalletAddress]:
    """One WalletAddress per network from settings; unset networks have an empty address."""
    wallets: list[WalletAddress] = []
    for network in Network:
        address = settings.wallets.address_for(network)
        tag = settings.wallets.xrp_destination_tag if network == Network.XRP else None
        wallets.append(WalletAddress.create(network, address, destination_tag=tag))
    return wallets


def configured_wallets(settings: Settings) -> list[WalletAddress]:
    """Wallets from settings that have an address."""
    return [w for w in wallet_addresses(settings) if w.is_configured]


class WalletAggregator:
    """Reads balances for many wallets concurrently; a failing wallet never sinks the batch."""

    def __init__(
        self,
        registry: AdapterRegistry,
        price_oracle: PriceOracle,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        self._registry = registry
        self._prices = price_oracle
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def get_wallet_snapshot(self, address: str, network: str | Network) -> WalletSnapshot:
        """Return a priced snapshot for one wallet.

        Raises:
            ConfigurationError: If the network is unsupported.
            ProviderError: If the adapter's provider fails.
        """
        resolved = parse_network(network)
        adapter = self._registry.get(resolved)
        snapshot = await adapter.fetch_wallet_snapshot(address.strip())
        prices = await self._prices.get_prices()
        return snapshot.with_prices(prices)

    async def refresh_all_wallets(self, wallets: Iterable[WalletAddress]) -> list[WalletSnapshot]:
        """Fetch every configured wallet concurrently and keep the successes."""
        snapshots, _ = await self._refresh(wallets)
        return snapshots

    async def build_portfolio(self, wallets: Iterable[WalletAddress]) -> PortfolioView:
        """Merge all wallet snapshots into one view with per-network USD totals."""
        snapshots, failed = await self._refresh(wallets)
        usd_by_network: dict[Network, Decimal] = {}
        for snapshot in snapshots:
            usd_by_network[snapshot.network] = (
                usd_by_network.get(snapshot.network, Decimal("0")) + snapshot.total_usd_value
            )
        total = sum(usd_by_network.values(), Decimal("0"))
        self._logger.info(
            "portfolio_built",
            portfolio_wallets_ok=len(snapshots),
            portfolio_wallets_failed=len(failed),
            portfolio_total_usd=float(total),
        )
        return PortfolioView(
            snapshots=tuple(snapshots),
            total_usd_value=total,
            usd_by_network=usd_by_network,
            failed=tuple(failed),
        )

    async def _refresh(
        self,
        wallets: Iterable[WalletAddress],
    ) -> tuple[list[WalletSnapshot], list[WalletAddress]]:
        targets = [w for w in wallets if w.is_configured]
        if not targets:
            return [], []
        results = await asyncio.gather(
            *(self.get_wallet_snapshot(w.address, w.network) for w in targets),
            return_exceptions=True,
        )
        snapshots: list[WalletSnapshot] = []
        failed: list[WalletAddress] = []
        for wallet, result in zip(targets, results):
            if isinstance(result, ConfigurationError):
                raise result
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                failed.append(wallet)
                with bound_contextvars(wallet_network=wallet.network.value):
                    self._logger.warning(
                        "wallet_snapshot_failed",
                        wallet_masked=mask_address(wallet.address),
                        error_type=type(result).__name__,
                        error_message=str(result),
                    )
                continue
            snapshots.append(result)
        return snapshots, failed
