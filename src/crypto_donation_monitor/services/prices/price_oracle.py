# -*- coding: utf-8 -*-
"""Spot USD price oracle over CoinGecko with a whole-table TTL cache."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import structlog
from cachetools import TTLCache

from crypto_donation_monitor.config.networks import COINGECKO_IDS, FALLBACK_PRICES
from crypto_donation_monitor.exceptions import ProviderError, UnsupportedAssetError
from crypto_donation_monitor.models.price import PriceCacheEntry

if TYPE_CHECKING:
    from crypto_donation_monitor.clients.coingecko import CoinGeckoClient
    from crypto_donation_monitor.config import Settings

_TABLE_KEY = "prices"


class PriceOracle:
    """Returns USD prices for every supported asset.

    The whole table is fetched in one request and cached for cache_ttl_seconds.
    get_prices() never raises: when CoinGecko fails the fixed fallback table is
    returned (and not cached, so the next call retries).
    """

    def __init__(
        self,
        coingecko: CoinGeckoClient,
        settings: Settings,
        *,
        timer: Callable[[], float] = time.monotonic,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the oracle.

        Args:
            coingecko: CoinGecko client (injected).
            settings: Uses settings.prices.cache_ttl_seconds.
            timer: Clock used by the TTL cache (injectable for tests).
            get_logger: Logger factory (injected) with default of structlog.get_logger.
            logger_name: Optional logger name (defaults to class name).
        """
        self._coingecko = coingecko
        self._cache: TTLCache[str, dict[str, PriceCacheEntry]] = TTLCache(
            maxsize=1,
            ttl=settings.prices.cache_ttl_seconds,
            timer=timer,
        )
        self._lock = asyncio.Lock()
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def get_prices(self) -> dict[str, Decimal]:
        """Return {symbol: usd_price} for BTC, ETH, BNB, XRP, SOL, TRX, USDT and USDC."""
        entries = await self._get_entries()
        return {symbol: entry.usd_price for symbol, entry in entries.items()}

    async def get_price(self, symbol: str) -> Decimal:
        """Return the USD price of one asset.

        Raises:
            UnsupportedAssetError: If the asset is not priced by the oracle.
        """
        upper = symbol.upper()
        if upper not in COINGECKO_IDS:
            raise UnsupportedAssetError(f"No price feed for {upper}", asset=upper)
        prices = await self.get_prices()
        return prices[upper]

    def get_cache_entries(self) -> list[PriceCacheEntry]:
        """Return the currently cached entries (empty when the cache is cold or expired)."""
        table = self._cache.get(_TABLE_KEY)
        return list(table.values()) if table else []

    async def _get_entries(self) -> dict[str, PriceCacheEntry]:
        cached = self._cache.get(_TABLE_KEY)
        if cached is not None:
            return cached
        async with self._lock:
            # Another task may have refreshed the table while we waited.
            cached = self._cache.get(_TABLE_KEY)
            if cached is not None:
                return cached
            try:
                quotes = await self._coingecko.get_usd_prices(COINGECKO_IDS.values())
            except (ProviderError, ArithmeticError, ValueError) as e:
                self._logger.warning(
                    "price_fetch_failed_using_fallback",
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
                return _fallback_entries()

            now = datetime.now(timezone.utc)
            entries: dict[str, PriceCacheEntry] = {}
            missing: list[str] = []
            for symbol, coin_id in COINGECKO_IDS.items():
                price = quotes.get(coin_id)
                if price is None:
                    missing.append(symbol)
                    entries[symbol] = PriceCacheEntry(
                        symbol=symbol,
                        usd_price=FALLBACK_PRICES[symbol],
                        fetched_at=now,
                        is_fallback=True,
                    )
                else:
                    entries[symbol] = PriceCacheEntry(symbol=symbol, usd_price=price, fetched_at=now)
            if missing:
                self._logger.warning("price_symbols_missing", price_missing_symbols=missing)
            self._cache[_TABLE_KEY] = entries
            self._logger.debug("price_table_refreshed", price_symbols_count=len(entries))
            return entries


def _fallback_entries() -> dict[str, PriceCacheEntry]:
    now = datetime.now(timezone.utc)
    return {
        symbol: PriceCacheEntry(symbol=symbol, usd_price=price, fetched_at=now, is_fallback=True)
        for symbol, price in FALLBACK_PRICES.items()
    }
