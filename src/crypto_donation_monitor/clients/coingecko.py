"""CoinGecko simple-price client."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from decimal import Decimal
from typing import TYPE_CHECKING, Any, cast

import structlog

from crypto_donation_monitor.exceptions import TransientProviderError

if TYPE_CHECKING:
    from crypto_donation_monitor.clients.http import AsyncHttpClient
    from crypto_donation_monitor.config import Settings


class CoinGeckoClient:
    """Fetch USD spot prices keyed by CoinGecko coin id."""

    def __init__(
        self,
        http_client: AsyncHttpClient,
        settings: Settings,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        self._http = http_client
        self._base_url = settings.prices.coingecko_api_url.rstrip("/")
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def get_usd_prices(self, coin_ids: Iterable[str]) -> dict[str, Decimal]:
        """Return {coin_id: usd_price} for the ids the API knows.

        Raises:
            ProviderError: If the request fails.
            TransientProviderError: If the payload is not the expected mapping.
        """
        ids = sorted(set(coin_ids))
        response = await self._http.get(
            f"{self._base_url}/simple/price",
            params={"ids": ",".join(ids), "vs_currencies": "usd"},
        )
        if not isinstance(response, dict):
            raise TransientProviderError("Unexpected CoinGecko response", url=self._base_url)
        prices: dict[str, Decimal] = {}
        for coin_id, quote in cast(dict[str, Any], response).items():
            if isinstance(quote, dict) and quote.get("usd") is not None:
                prices[coin_id] = Decimal(str(quote["usd"]))
        self._logger.debug("coingecko_prices_fetched", coingecko_ids_count=len(prices))
        return prices
