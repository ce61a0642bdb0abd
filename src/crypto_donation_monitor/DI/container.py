# -*- coding: utf-8 -*-
"""Dependency injection container (dependency-injector)."""

from __future__ import annotations

from dependency_injector import containers, providers

from crypto_donation_monitor.adapters import (
    AdapterRegistry,
    BitcoinAdapter,
    EvmAdapter,
    NetworkAdapter,
    SolanaAdapter,
    TronAdapter,
    XrpAdapter,
)
from crypto_donation_monitor.clients import (
    AsyncHttpClient,
    CoinGeckoClient,
    EtherscanClient,
    RpcClient,
)
from crypto_donation_monitor.config import NETWORK_POLICIES, Network, Settings, get_settings
from crypto_donation_monitor.events.bus import get_event_bus
from crypto_donation_monitor.notifications.notification_manager import NotificationService
from crypto_donation_monitor.notifications.strategies.base import BaseNotificationStrategy
from crypto_donation_monitor.notifications.strategies.console import ConsoleNotifier
from crypto_donation_monitor.notifications.strategies.telegram import TelegramNotifier
from crypto_donation_monitor.notifications.stylers.notification_styler import DonationNotificationStyler
from crypto_donation_monitor.persistence.repositories.in_memory import (
    InMemoryDonationStore,
    InMemoryProcessedTransactionRepository,
)
from crypto_donation_monitor.services.monitoring import DonationMonitor
from crypto_donation_monitor.services.notifications import DonationNotifier
from crypto_donation_monitor.services.payments import CryptoPaymentService
from crypto_donation_monitor.services.prices import PriceOracle
from crypto_donation_monitor.services.reconciliation import PendingDonationReconciler
from crypto_donation_monitor.services.verification import TransactionVerifier
from crypto_donation_monitor.services.wallets import WalletAggregator


def _build_evm_adapter(
    network: Network,
    settings: Settings,
    http_client: AsyncHttpClient,
) -> EvmAdapter:
    """EVM adapter over public RPC, with the explorer in front when a key is configured."""
    rpc = RpcClient(http_client, settings.networks.rpc_url(network))
    api_key = settings.networks.explorer_api_key(network)
    explorer = None
    if api_key:
        explorer = EtherscanClient(
            http_client,
            api_url=settings.networks.etherscan_api_url,
            api_key=api_key,
            chain_id=NETWORK_POLICIES[network].chain_id or 1,
        )
    return EvmAdapter(network, rpc, explorer=explorer)


def _build_adapters(settings: Settings, http_client: AsyncHttpClient) -> list[NetworkAdapter]:
    return [
        BitcoinAdapter(http_client, settings),
        _build_evm_adapter(Network.ETHEREUM, settings, http_client),
        _build_evm_adapter(Network.BSC, settings, http_client),
        SolanaAdapter(RpcClient(http_client, settings.networks.solana_rpc_url)),
        TronAdapter(http_client, settings),
        XrpAdapter(http_client, settings),
    ]


def _build_notification_notifiers(
    settings: Settings,
    styler: DonationNotificationStyler,
) -> list[BaseNotificationStrategy]:
    notifiers: list[BaseNotificationStrategy] = []
    if settings.console.enabled:
        notifiers.append(ConsoleNotifier(settings=settings, styler=styler))
    if settings.telegram.enabled:
        notifiers.append(TelegramNotifier(settings=settings, styler=styler))
    return notifiers


class Container(containers.DeclarativeContainer):
    """Application container. Wires settings, HTTP client, chain adapters and donation services."""

    config = providers.Callable(get_settings)

    http_client = providers.Singleton(
        AsyncHttpClient,
        settings=config,
    )

    event_bus = providers.Callable(get_event_bus)

    adapter_registry = providers.Singleton(
        AdapterRegistry,
        adapters=providers.Callable(_build_adapters, config, http_client),
    )

    coingecko_client = providers.Singleton(
        CoinGeckoClient,
        http_client=http_client,
        settings=config,
    )

    price_oracle = providers.Singleton(
        PriceOracle,
        coingecko=coingecko_client,
        settings=config,
    )

    donation_store = providers.Singleton(InMemoryDonationStore)

    processed_transaction_repository = providers.Singleton(InMemoryProcessedTransactionRepository)

    wallet_aggregator = providers.Singleton(
        WalletAggregator,
        registry=adapter_registry,
        price_oracle=price_oracle,
    )

    transaction_verifier = providers.Singleton(
        TransactionVerifier,
        registry=adapter_registry,
    )

    pending_reconciler = providers.Singleton(
        PendingDonationReconciler,
        donation_store=donation_store,
        verifier=transaction_verifier,
        settings=config,
        event_bus=event_bus,
    )

    donation_monitor = providers.Singleton(
        DonationMonitor,
        registry=adapter_registry,
        price_oracle=price_oracle,
        donation_store=donation_store,
        processed_repository=processed_transaction_repository,
        settings=config,
        event_bus=event_bus,
        reconciler=pending_reconciler,
    )

    payment_service = providers.Singleton(
        CryptoPaymentService,
        donation_store=donation_store,
        price_oracle=price_oracle,
        verifier=transaction_verifier,
        settings=config,
        event_bus=event_bus,
    )

    notification_styler = providers.Singleton(DonationNotificationStyler)

    notification_service = providers.Singleton(
        NotificationService,
        notifiers=providers.Callable(_build_notification_notifiers, config, notification_styler),
    )

    donation_notifier = providers.Singleton(
        DonationNotifier,
        notification_service=notification_service,
        event_bus=event_bus,
    )
