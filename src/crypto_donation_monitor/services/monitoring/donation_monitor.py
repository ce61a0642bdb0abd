# -*- coding: utf-8 -*-
"""DonationMonitor: polls receiving wallets and records new incoming payments."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING, Any, Optional

import structlog
from structlog.contextvars import bound_contextvars

from crypto_donation_monitor.config.networks import Network, addresses_equal, required_confirmations
from crypto_donation_monitor.events.donations import DonationReceivedEvent
from crypto_donation_monitor.exceptions import ConfigurationError
from crypto_donation_monitor.models.donation import (
    CryptoMetadata,
    Donation,
    DonationSource,
    DonationStatus,
)
from crypto_donation_monitor.models.monitoring import MonitoringStatus
from crypto_donation_monitor.models.processed_transaction import ProcessedTransaction
from crypto_donation_monitor.models.transaction import ChainTransaction, TransactionStatus
from crypto_donation_monitor.models.wallet import WalletAddress
from crypto_donation_monitor.services.wallets import wallet_addresses
from crypto_donation_monitor.utils.validation import mask_address

if TYPE_CHECKING:
    from bubus import EventBus  # type: ignore[import-untyped]

    from crypto_donation_monitor.adapters.registry import AdapterRegistry
    from crypto_donation_monitor.config import Settings
    from crypto_donation_monitor.persistence.repositories.interfaces import (
        IDonationStore,
        IProcessedTransactionRepository,
    )
    from crypto_donation_monitor.services.prices import PriceOracle
    from crypto_donation_monitor.services.reconciliation import PendingDonationReconciler

_USD_PLACES = Decimal("0.01")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_incoming(tx: ChainTransaction, wallet: WalletAddress) -> bool:
    return addresses_equal(wallet.network, tx.to_address, wallet.address)


class DonationMonitor:
    """Periodically checks every configured wallet for new incoming transactions.

    Stopped -> Running on start_monitoring (one immediate check, then one per
    interval); Running -> Stopped on stop_monitoring (no new ticks, an in-flight
    check runs to completion). Each network keeps its own watermark, which only
    advances after that network's check succeeds.
    """

    def __init__(
        self,
        registry: AdapterRegistry,
        price_oracle: PriceOracle,
        donation_store: IDonationStore,
        processed_repository: IProcessedTransactionRepository,
        settings: Settings,
        *,
        event_bus: Optional[Any] = None,
        reconciler: PendingDonationReconciler | None = None,
        wallets: Sequence[WalletAddress] | None = None,
        clock: Callable[[], datetime] = _utcnow,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the monitor.

        Args:
            registry: Adapter lookup per network.
            price_oracle: USD conversion for detected payments.
            donation_store: Where Donation records are written.
            processed_repository: Process-wide set of handled (network, tx_hash).
            settings: Uses settings.monitor and settings.wallets.
            event_bus: Optional; if set, emits DonationReceivedEvent per new donation.
            reconciler: Optional; run after each tick when monitor.reconcile_on_tick is set.
            wallets: Wallets to watch; defaults to one per network from settings.
            clock: Returns the current UTC time (injectable for tests).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._registry = registry
        self._prices = price_oracle
        self._store = donation_store
        self._processed = processed_repository
        self._settings = settings
        self._event_bus: "EventBus | None" = event_bus
        self._reconciler = reconciler
        self._wallets: tuple[WalletAddress, ...] = tuple(
            wallets if wallets is not None else wallet_addresses(settings)
        )
        self._clock = clock
        self._logger = get_logger(logger_name or self.__class__.__name__)

        self._watermarks: dict[Network, datetime] = {}
        self._last_checked: dict[Network, datetime] = {}
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def is_monitoring(self) -> bool:
        return self._task is not None and not self._task.done() and not self._stop_event.is_set()

    async def start_monitoring(self, interval_minutes: float | None = None) -> None:
        """Start the polling loop. No-op (logged) when already running."""
        if self.is_monitoring:
            self._logger.warning("monitor_already_running")
            return
        interval = interval_minutes or self._settings.monitor.interval_minutes
        lookback = timedelta(hours=self._settings.monitor.initial_lookback_hours)
        start = self._clock()
        for wallet in self._wallets:
            self._watermarks.setdefault(wallet.network, start - lookback)

        previous = self._task
        if previous is not None and not previous.done():
            # A stopped loop may still be finishing its last check.
            await previous
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(interval * 60.0, self._stop_event))
        self._logger.info(
            "monitor_started",
            monitor_interval_minutes=interval,
            monitor_wallets_configured=sum(1 for w in self._wallets if w.is_configured),
        )

    def stop_monitoring(self) -> None:
        """Stop scheduling ticks. A check already running is allowed to finish."""
        if self._task is None:
            return
        self._stop_event.set()
        self._logger.info("monitor_stop_requested")

    async def aclose(self) -> None:
        """Stop and wait for the loop (including an in-flight check) to finish."""
        self.stop_monitoring()
        if self._task is not None:
            await self._task
            self._task = None
        self._logger.info("monitor_stopped")

    async def _run(self, interval_seconds: float, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            await self._tick(stop_event)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval_seconds)
            except asyncio.TimeoutError:
                continue

    async def _tick(self, stop_event: asyncio.Event) -> None:
        try:
            await self.check_for_new_donations()
            if self._reconciler is not None and self._settings.monitor.reconcile_on_tick:
                await self._reconciler.reconcile_pending()
        except ConfigurationError:
            self._logger.exception("monitor_tick_configuration_error")
            stop_event.set()
        except Exception:
            self._logger.exception("monitor_tick_failed")

    async def check_for_new_donations(self) -> list[Donation]:
        """Run one detection cycle over every configured wallet (networks concurrently).

        Returns:
            Donations created in this cycle.

        Raises:
            ConfigurationError: If a configured network has no adapter.
        """
        cycle_start = self._clock()
        for wallet in self._wallets:
            if not wallet.is_configured:
                self._logger.debug("monitor_wallet_not_configured", monitor_network=wallet.network.value)
        wallets = [w for w in self._wallets if w.is_configured]
        results = await asyncio.gather(
            *(self._check_wallet(w, cycle_start) for w in wallets),
            return_exceptions=True,
        )

        created: list[Donation] = []
        for wallet, result in zip(wallets, results):
            if isinstance(result, ConfigurationError):
                raise result
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                self._logger.warning(
                    "monitor_network_check_failed",
                    monitor_network=wallet.network.value,
                    error_type=type(result).__name__,
                    error_message=str(result),
                )
                continue
            created.extend(result)

        self._logger.info(
            "monitor_cycle_completed",
            monitor_wallets_checked=len(wallets),
            monitor_donations_created=len(created),
        )
        return created

    async def _check_wallet(self, wallet: WalletAddress, cycle_start: datetime) -> list[Donation]:
        network = wallet.network
        with bound_contextvars(monitor_network=network.value):
            adapter = self._registry.get(network)
            transactions = await adapter.fetch_recent_transactions(
                wallet.address, self._settings.monitor.transactions_limit
            )
            watermark = self._watermarks.get(network)
            created: list[Donation] = []
            for tx in transactions:
                if not self._is_candidate(tx, wallet, watermark):
                    continue
                if await self._processed.contains(network, tx.hash):
                    continue
                claimed = await self._processed.add_if_absent(
                    ProcessedTransaction.create(network, tx.hash, processed_at=cycle_start)
                )
                if not claimed:
                    continue
                try:
                    donation = await self._record_donation(tx, wallet)
                except BaseException:
                    await self._processed.discard(network, tx.hash)
                    raise
                created.append(donation)

            self._watermarks[network] = cycle_start
            self._last_checked[network] = cycle_start
            self._logger.debug(
                "monitor_network_checked",
                monitor_transactions_seen=len(transactions),
                monitor_donations_created=len(created),
            )
            return created

    @staticmethod
    def _is_candidate(
        tx: ChainTransaction,
        wallet: WalletAddress,
        watermark: datetime | None,
    ) -> bool:
        if not tx.hash or not _is_incoming(tx, wallet):
            return False
        if tx.status == TransactionStatus.FAILED:
            return False
        if tx.value <= 0:
            return False
        if (
            wallet.network == Network.XRP
            and wallet.destination_tag is not None
            and tx.destination_tag != wallet.destination_tag
        ):
            return False
        if watermark is not None and tx.timestamp is not None and tx.timestamp <= watermark:
            return False
        return True

    async def _record_donation(self, tx: ChainTransaction, wallet: WalletAddress) -> Donation:
        symbol = tx.asset_symbol
        price = await self._prices.get_price(symbol)
        usd_amount = (tx.value * price).quantize(_USD_PLACES, rounding=ROUND_HALF_UP)
        required = required_confirmations(tx.network)

        donation = Donation.create(
            amount=usd_amount,
            currency=symbol,
            network=tx.network,
            tx_hash=tx.hash,
            confirmations=tx.confirmations,
            metadata=CryptoMetadata(
                network=tx.network,
                asset_symbol=symbol,
                crypto_amount=tx.value,
                crypto_price=price,
                wallet_address=wallet.address,
                destination_tag=tx.destination_tag,
                source=DonationSource.BLOCKCHAIN_MONITOR,
                from_address=tx.from_address or None,
                block_height=tx.block_height,
            ),
        )
        donation_id = await self._store.create(donation)
        status = DonationStatus.COMPLETED if tx.confirmations >= required else DonationStatus.PENDING
        donation = await self._store.update_status(
            donation_id, status, tx.hash, confirmations=tx.confirmations
        )

        self._logger.info(
            "donation_detected",
            donation_id=donation.id,
            donation_status=donation.status.value,
            donation_currency=symbol,
            donation_crypto_amount=str(tx.value),
            donation_usd_amount=float(usd_amount),
            donation_confirmations=tx.confirmations,
            donation_from_masked=mask_address(tx.from_address),
        )
        self._emit_received(donation, tx, required)
        return donation

    def _emit_received(self, donation: Donation, tx: ChainTransaction, required: int) -> None:
        """Emit DonationReceivedEvent for DonationNotifier."""
        if self._event_bus is None:
            return
        event = DonationReceivedEvent(
            donation_id=donation.id,
            network=tx.network.value,
            tx_hash=tx.hash,
            currency=donation.currency,
            crypto_amount=tx.value,
            usd_amount=donation.amount,
            status=donation.status.value,
            confirmations=tx.confirmations,
            required_confirmations=required,
            from_address=tx.from_address or None,
            detected_at=donation.created_at,
        )
        self._event_bus.dispatch(event)

    async def get_monitoring_status(self) -> MonitoringStatus:
        return MonitoringStatus(
            is_monitoring=self.is_monitoring,
            wallets_configured=sum(1 for w in self._wallets if w.is_configured),
            last_checked=dict(self._last_checked),
            processed_transactions=await self._processed.count(),
        )
