# -*- coding: utf-8 -*-
"""Bitcoin adapter over the Esplora (Blockstream) REST API."""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal
from typing import TYPE_CHECKING, Any, cast

import structlog

from crypto_donation_monitor.adapters.base import NetworkAdapter, from_epoch
from crypto_donation_monitor.config.networks import Network
from crypto_donation_monitor.exceptions import (
    ProviderError,
    TransactionNotFoundError,
    TransientProviderError,
)
from crypto_donation_monitor.models.transaction import ChainTransaction, TransactionStatus
from crypto_donation_monitor.models.wallet import WalletSnapshot
from crypto_donation_monitor.utils.units import from_base_units

if TYPE_CHECKING:
    from crypto_donation_monitor.clients.http import AsyncHttpClient
    from crypto_donation_monitor.config import Settings


def _outputs(tx: dict[str, Any]) -> list[dict[str, Any]]:
    return [cast(dict[str, Any], o) for o in tx.get("vout") or [] if isinstance(o, dict)]


def _first_input_address(tx: dict[str, Any]) -> str:
    for vin in tx.get("vin") or []:
        prevout = vin.get("prevout") if isinstance(vin, dict) else None
        if isinstance(prevout, dict) and prevout.get("scriptpubkey_address"):
            return str(prevout["scriptpubkey_address"])
    return ""


class BitcoinAdapter(NetworkAdapter):
    """Reads balances and transactions from an Esplora instance."""

    network = Network.BITCOIN

    def __init__(
        self,
        http_client: AsyncHttpClient,
        settings: Settings,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        super().__init__(get_logger=get_logger, logger_name=logger_name)
        self._http = http_client
        self._base_url = settings.networks.blockstream_api_url.rstrip("/")

    async def _tip_height(self) -> int:
        result = await self._http.get(f"{self._base_url}/blocks/tip/height")
        try:
            return int(result)
        except (TypeError, ValueError) as e:
            raise TransientProviderError(
                f"Unexpected tip height: {result!r}", url=self._base_url, cause=e
            ) from e

    async def fetch_wallet_snapshot(self, address: str) -> WalletSnapshot:
        data = await self._http.get(f"{self._base_url}/address/{address}")
        if not isinstance(data, dict):
            raise TransientProviderError("Unexpected address payload", url=self._base_url)
        body = cast(dict[str, Any], data)
        chain = body.get("chain_stats") or {}
        mempool = body.get("mempool_stats") or {}
        confirmed = int(chain.get("funded_txo_sum", 0)) - int(chain.get("spent_txo_sum", 0))
        unconfirmed = int(mempool.get("funded_txo_sum", 0)) - int(mempool.get("spent_txo_sum", 0))
        balance = from_base_units(confirmed + unconfirmed, self.policy.native_decimals)
        tx_count = int(chain.get("tx_count", 0)) + int(mempool.get("tx_count", 0))
        return self._snapshot(address, [self._native_balance(balance)], tx_count)

    async def fetch_recent_transactions(self, address: str, limit: int) -> list[ChainTransaction]:
        data = await self._http.get(f"{self._base_url}/address/{address}/txs")
        if not isinstance(data, list):
            raise TransientProviderError("Unexpected transactions payload", url=self._base_url)
        tip = await self._tip_height()
        txs = [cast(dict[str, Any], t) for t in data if isinstance(t, dict)][:limit]
        return [self._to_chain_transaction(tx, tip, recipient=address) for tx in txs]

    async def fetch_transaction_by_hash(
        self,
        tx_hash: str,
        *,
        asset: str | None = None,
        recipient: str | None = None,
    ) -> ChainTransaction:
        try:
            data = await self._http.get(f"{self._base_url}/tx/{tx_hash}")
        except ProviderError as e:
            # Esplora answers 400 for malformed ids and 404 for unknown ones.
            if e.status_code in (400, 404):
                raise TransactionNotFoundError(tx_hash, self.network.value) from e
            raise
        if not isinstance(data, dict):
            raise TransientProviderError("Unexpected transaction payload", url=self._base_url)
        tx = cast(dict[str, Any], data)
        tip = await self._tip_height()
        return self._to_chain_transaction(tx, tip, recipient=recipient)

    def _to_chain_transaction(
        self,
        tx: dict[str, Any],
        tip_height: int,
        *,
        recipient: str | None,
    ) -> ChainTransaction:
        outputs = _outputs(tx)
        from_address = _first_input_address(tx)
        if recipient and from_address != recipient:
            matching = [o for o in outputs if o.get("scriptpubkey_address") == recipient]
        else:
            # Spends from the recipient are outgoing; the output back to it is change.
            matching = [o for o in outputs if o.get("scriptpubkey_address") != recipient][:1]
            recipient = None
        if recipient and matching:
            to_address = recipient
        elif matching:
            to_address = str(matching[0].get("scriptpubkey_address") or "")
        else:
            to_address = str(outputs[0].get("scriptpubkey_address") or "") if outputs else ""
        sats = sum(int(o.get("value", 0)) for o in matching)

        status_info = tx.get("status") or {}
        confirmed = bool(status_info.get("confirmed"))
        block_height = status_info.get("block_height") if confirmed else None
        confirmations = 0
        if block_height is not None:
            confirmations = max(0, tip_height - int(block_height) + 1)

        return ChainTransaction(
            hash=str(tx.get("txid", "")),
            network=self.network,
            from_address=from_address,
            to_address=to_address,
            value=from_base_units(sats, self.policy.native_decimals) if matching else Decimal("0"),
            token_symbol=None,
            block_height=int(block_height) if block_height is not None else None,
            confirmations=confirmations,
            timestamp=from_epoch(status_info.get("block_time")),
            status=TransactionStatus.SUCCESS if confirmed else TransactionStatus.PENDING,
        )
