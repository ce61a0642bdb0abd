"""Wallet aggregation: balances across every configured network."""

from crypto_donation_monitor.services.wallets.wallet_aggregator import (
    WalletAggregator,
    configured_wallets,
    wallet_addresses,
)

__all__ = ["WalletAggregator", "configured_wallets", "wallet_addresses"]
