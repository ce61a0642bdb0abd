# -*- coding: utf-8 -*-
"""
Entry point for the donation monitor.

Orchestrates: logging, settings, container, notifications, monitor loop (which also
reconciles pending donations each tick), shutdown (SIGINT or CancelledError).
Donations flow: adapters -> DonationMonitor -> DonationStore -> event bus -> DonationNotifier.

Run with: python -m crypto_donation_monitor.main
"""
from __future__ import annotations

import asyncio
import signal
from typing import Any

import structlog

from crypto_donation_monitor.DI import Container
from crypto_donation_monitor.config import get_settings
from crypto_donation_monitor.exceptions import MissingRequiredConfigError
from crypto_donation_monitor.logging import configure_logging
from crypto_donation_monitor.notifications.types import NotificationMessage
from crypto_donation_monitor.services.wallets import configured_wallets
from crypto_donation_monitor.utils import mask_address


def _setup_sigint(shutdown_event: asyncio.Event) -> None:
    try:
        loop = asyncio.get_running_loop()
        loop.add_signal_handler(signal.SIGINT, shutdown_event.set)
    except NotImplementedError:
        pass  # Windows has no add_signal_handler


async def _do_shutdown(container: Container, logger: Any) -> None:
    """Stop the monitor (letting an in-flight check finish) and close shared clients."""
    await container.donation_monitor().aclose()
    container.donation_notifier().stop()
    await container.http_client().aclose()
    logger.info("main_shutdown_complete")


async def run() -> None:
    configure_logging()
    logger = structlog.get_logger("main")
    settings = get_settings()
    wallets = configured_wallets(settings)
    if not wallets:
        logger.error("main_no_wallets_configured", message="Set at least one WALLETS__*_ADDRESS")
        raise MissingRequiredConfigError("WALLETS__*_ADDRESS")

    container = Container()
    notification_service = container.notification_service()
    await notification_service.initialize()
    container.donation_notifier().start()
    monitor = container.donation_monitor()

    shutdown_event = asyncio.Event()
    _setup_sigint(shutdown_event)

    logger.info(
        "main_monitoring_started",
        wallets=[f"{w.network.value}:{mask_address(w.address)}" for w in wallets],
        interval_minutes=settings.monitor.interval_minutes,
    )
    notification_service.notify(
        NotificationMessage(
            event_type="monitor_started",
            message="Donation monitor started",
            payload={"networks": [w.network.value for w in wallets]},
        )
    )
    await monitor.start_monitoring(settings.monitor.interval_minutes)

    try:
        await shutdown_event.wait()
    finally:
        await _do_shutdown(container, logger)
        notification_service.notify(
            NotificationMessage(
                event_type="monitor_stopped",
                message="Donation monitor stopped",
                payload={},
            )
        )
        await notification_service.shutdown()


def main() -> None:
    asyncio.run(run())


__all__ = ["run", "main"]

if __name__ == "__main__":
    main()
