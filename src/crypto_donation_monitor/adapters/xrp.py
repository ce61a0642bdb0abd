# -*- coding: utf-8 -*-
"""XRP Ledger adapter over the XRPSCAN REST API."""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal
from typing import TYPE_CHECKING, Any, cast

import structlog

from crypto_donation_monitor.adapters.base import NetworkAdapter, from_epoch, from_iso
from crypto_donation_monitor.config.networks import Network
from crypto_donation_monitor.exceptions import (
    ProviderNotFoundError,
    TransactionNotFoundError,
    TransientProviderError,
)
from crypto_donation_monitor.models.transaction import ChainTransaction, TransactionStatus
from crypto_donation_monitor.models.wallet import WalletSnapshot
from crypto_donation_monitor.utils.units import from_base_units, to_decimal

if TYPE_CHECKING:
    from crypto_donation_monitor.clients.http import AsyncHttpClient
    from crypto_donation_monitor.config import Settings

# Seconds between the Unix epoch and the Ripple epoch (2000-01-01).
RIPPLE_EPOCH_OFFSET = 946684800


def _flatten(entry: dict[str, Any]) -> dict[str, Any]:
    """XRPSCAN nests the transaction under "tx" in some listings; merge it up."""
    nested = entry.get("tx")
    if isinstance(nested, dict):
        return {**cast(dict[str, Any], nested), **{k: v for k, v in entry.items() if k != "tx"}}
    return entry


def _xrp_drops(amount: Any) -> int | None:
    """Drops for an XRP amount; None for issued-currency (IOU) amounts."""
    if isinstance(amount, (int, str)) and str(amount).isdigit():
        return int(amount)
    return None


class XrpAdapter(NetworkAdapter):
    """Reads XRP balances and payments from XRPSCAN."""

    network = Network.XRP

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
        self._base_url = settings.networks.xrpscan_api_url.rstrip("/")

    async def fetch_wallet_snapshot(self, address: str) -> WalletSnapshot:
        data = await self._http.get(f"{self._base_url}/account/{address}")
        if not isinstance(data, dict):
            raise TransientProviderError("Unexpected account payload", url=self._base_url)
        body = cast(dict[str, Any], data)
        drops = _xrp_drops(body.get("Balance"))
        if drops is not None:
            balance = from_base_units(drops, self.policy.native_decimals)
        else:
            balance = to_decimal(body.get("xrpBalance"), Decimal("0")) or Decimal("0")
        tx_count = int(body.get("txCount") or body.get("tx_count") or 0)
        return self._snapshot(address, [self._native_balance(balance)], tx_count)

    async def fetch_recent_transactions(self, address: str, limit: int) -> list[ChainTransaction]:
        data = await self._http.get(
            f"{self._base_url}/account/{address}/transactions",
            params={"limit": limit},
        )
        if isinstance(data, dict):
            rows = cast(dict[str, Any], data).get("transactions") or []
        elif isinstance(data, list):
            rows = data
        else:
            raise TransientProviderError("Unexpected transactions payload", url=self._base_url)
        transactions: list[ChainTransaction] = []
        for row in rows[:limit]:
            if not isinstance(row, dict):
                continue
            tx = self._to_chain_transaction(_flatten(cast(dict[str, Any], row)))
            if tx is not None:
                transactions.append(tx)
        return transactions

    async def fetch_transaction_by_hash(
        self,
        tx_hash: str,
        *,
        asset: str | None = None,
        recipient: str | None = None,
    ) -> ChainTransaction:
        try:
            data = await self._http.get(f"{self._base_url}/tx/{tx_hash}")
        except ProviderNotFoundError as e:
            raise TransactionNotFoundError(tx_hash, self.network.value) from e
        if not isinstance(data, dict) or not data:
            raise TransactionNotFoundError(tx_hash, self.network.value)
        tx = self._to_chain_transaction(_flatten(cast(dict[str, Any], data)), require_payment=False)
        if tx is None:
            raise TransactionNotFoundError(tx_hash, self.network.value)
        return tx

    def _to_chain_transaction(
        self,
        tx: dict[str, Any],
        *,
        require_payment: bool = True,
    ) -> ChainTransaction | None:
        if require_payment and tx.get("TransactionType") != "Payment":
            return None
        meta = tx.get("meta") or tx.get("metaData") or {}
        # delivered_amount is what actually arrived (partial payments can deliver less).
        drops = _xrp_drops(meta.get("delivered_amount"))
        if drops is None:
            drops = _xrp_drops(tx.get("Amount"))
        if drops is None and require_payment:
            return None

        validated = bool(tx.get("validated", True))
        result = meta.get("TransactionResult")
        if not validated:
            status = TransactionStatus.PENDING
        elif result and result != "tesSUCCESS":
            status = TransactionStatus.FAILED
        else:
            status = TransactionStatus.SUCCESS

        tag = tx.get("DestinationTag")
        ledger_index = tx.get("ledger_index") or tx.get("inLedger")
        timestamp = from_iso(tx.get("date"))
        if timestamp is None and isinstance(tx.get("date"), (int, float)):
            timestamp = from_epoch(int(tx["date"]) + RIPPLE_EPOCH_OFFSET)

        return ChainTransaction(
            hash=str(tx.get("hash", "")),
            network=self.network,
            from_address=str(tx.get("Account") or ""),
            to_address=str(tx.get("Destination") or ""),
            value=from_base_units(drops or 0, self.policy.native_decimals),
            token_symbol=None,
            block_height=int(ledger_index) if ledger_index is not None else None,
            # A validated ledger is final; XRPL has no further confirmation depth.
            confirmations=1 if validated else 0,
            timestamp=timestamp,
            status=status,
            destination_tag=int(tag) if tag is not None else None,
        )
