# -*- coding: utf-8 -*-
"""Tron adapter over the TronGrid HTTP API.

TronGrid mixes address formats: /wallet/* calls with visible=true and the TRC-20
history endpoint return base58 (T...), while account history and event logs carry
hex. Everything is normalized to base58check before leaving the adapter.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, cast

import base58
import structlog

from crypto_donation_monitor.adapters.base import NetworkAdapter, from_epoch
from crypto_donation_monitor.config.networks import TRANSFER_SELECTOR, TRANSFER_TOPIC, Network
from crypto_donation_monitor.exceptions import (
    TransactionNotFoundError,
    TransferDecodingError,
    TransientProviderError,
)
from crypto_donation_monitor.models.transaction import ChainTransaction, TransactionStatus
from crypto_donation_monitor.models.wallet import TokenBalance, WalletSnapshot
from crypto_donation_monitor.utils.units import from_base_units

if TYPE_CHECKING:
    from crypto_donation_monitor.clients.http import AsyncHttpClient
    from crypto_donation_monitor.config import Settings

TRON_ADDRESS_PREFIX = "41"
_TRANSFER_TOPIC_HEX = TRANSFER_TOPIC.removeprefix("0x")
_TRANSFER_SELECTOR_HEX = TRANSFER_SELECTOR.removeprefix("0x")


def hex_to_base58(value: str) -> str:
    """Convert a hex Tron address (41-prefixed or bare 20 bytes) to base58check."""
    s = (value or "").strip().lower().removeprefix("0x")
    if not s:
        return ""
    if len(s) == 40:
        s = TRON_ADDRESS_PREFIX + s
    return base58.b58encode_check(bytes.fromhex(s)).decode()


def base58_to_hex(address: str) -> str:
    """Convert a base58check Tron address to 41-prefixed hex."""
    return base58.b58decode_check(address.strip()).hex()


def normalize_address(value: str | None) -> str:
    """Return base58 form whatever format TronGrid used."""
    if not value:
        return ""
    s = value.strip()
    if s.startswith("T") and len(s) == 34:
        return s
    return hex_to_base58(s)


class TronAdapter(NetworkAdapter):
    """Reads TRX and TRC-20 balances and transfers from TronGrid."""

    network = Network.TRON

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
        self._base_url = settings.networks.tron_api_url.rstrip("/")
        api_key = settings.networks.tron_api_key
        self._headers = {"TRON-PRO-API-KEY": api_key} if api_key else None

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        data = await self._http.get(f"{self._base_url}{path}", params=params, headers=self._headers)
        if not isinstance(data, dict):
            raise TransientProviderError(f"Unexpected TronGrid payload for {path}", url=self._base_url)
        return cast(dict[str, Any], data)

    async def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        data = await self._http.post(f"{self._base_url}{path}", json=body, headers=self._headers)
        if not isinstance(data, dict):
            raise TransientProviderError(f"Unexpected TronGrid payload for {path}", url=self._base_url)
        return cast(dict[str, Any], data)

    async def _now_block(self) -> int:
        block = await self._post("/wallet/getnowblock", {})
        number = ((block.get("block_header") or {}).get("raw_data") or {}).get("number")
        if number is None:
            raise TransientProviderError("getnowblock returned no block number", url=self._base_url)
        return int(number)

    async def fetch_wallet_snapshot(self, address: str) -> WalletSnapshot:
        policy = self.policy
        body = await self._get(f"/v1/accounts/{address}")
        rows = body.get("data") or []
        account = rows[0] if rows and isinstance(rows[0], dict) else {}
        # An account that never received funds is absent from TronGrid.
        sun = int(account.get("balance", 0))
        balances: list[TokenBalance] = [
            self._native_balance(from_base_units(sun, policy.native_decimals))
        ]
        for entry in account.get("trc20") or []:
            for contract_address, raw in cast(dict[str, Any], entry).items():
                contract = policy.token_by_address(contract_address)
                if contract is not None and int(raw) > 0:
                    balances.append(
                        self._token_balance(contract.symbol, from_base_units(raw, contract.decimals))
                    )
        transactions = await self._get(f"/v1/accounts/{address}/transactions", {"limit": 200})
        return self._snapshot(address, balances, len(transactions.get("data") or []))

    async def fetch_recent_transactions(self, address: str, limit: int) -> list[ChainTransaction]:
        now_block = await self._now_block()
        native = await self._get(f"/v1/accounts/{address}/transactions", {"limit": limit})
        tokens = await self._get(f"/v1/accounts/{address}/transactions/trc20", {"limit": limit})

        transactions: list[ChainTransaction] = []
        for row in native.get("data") or []:
            tx = self._from_native_history(cast(dict[str, Any], row), now_block)
            if tx is not None:
                transactions.append(tx)
        for row in tokens.get("data") or []:
            tx = await self._from_trc20_history(cast(dict[str, Any], row), now_block)
            if tx is not None:
                transactions.append(tx)
        transactions.sort(key=lambda t: t.timestamp.timestamp() if t.timestamp else 0, reverse=True)
        return transactions[:limit]

    async def fetch_transaction_by_hash(
        self,
        tx_hash: str,
        *,
        asset: str | None = None,
        recipient: str | None = None,
    ) -> ChainTransaction:
        tx = await self._post("/wallet/gettransactionbyid", {"value": tx_hash, "visible": True})
        if not tx.get("txID"):
            raise TransactionNotFoundError(tx_hash, self.network.value)
        info = await self._post("/wallet/gettransactioninfobyid", {"value": tx_hash})
        now_block = await self._now_block()

        block_height = int(info["blockNumber"]) if info.get("blockNumber") is not None else None
        confirmations = max(0, now_block - block_height + 1) if block_height is not None else 0
        timestamp = from_epoch(info.get("blockTimeStamp") or (tx.get("raw_data") or {}).get("timestamp"))
        status = self._status(tx, info)

        contracts = (tx.get("raw_data") or {}).get("contract") or []
        contract_call = contracts[0] if contracts else {}
        value = (contract_call.get("parameter") or {}).get("value") or {}
        call_type = contract_call.get("type")

        if call_type == "TransferContract" and not self._is_token_asset(asset):
            return ChainTransaction(
                hash=tx_hash,
                network=self.network,
                from_address=normalize_address(value.get("owner_address")),
                to_address=normalize_address(value.get("to_address")),
                value=from_base_units(int(value.get("amount", 0)), self.policy.native_decimals),
                token_symbol=None,
                block_height=block_height,
                confirmations=confirmations,
                timestamp=timestamp,
                status=status,
            )

        if call_type != "TriggerSmartContract":
            raise TransferDecodingError(f"Unsupported Tron contract type {call_type!r} in {tx_hash}")

        token_address = normalize_address(value.get("contract_address"))
        token = self.policy.token_by_address(token_address)
        if token is None or (self._is_token_asset(asset) and token.symbol != cast(str, asset).upper()):
            raise TransferDecodingError(f"{tx_hash} is not a transfer of a supported token")

        from_address, to_address, raw = self._decode_trc20(info, value, token.address, recipient)
        return ChainTransaction(
            hash=tx_hash,
            network=self.network,
            from_address=from_address or normalize_address(value.get("owner_address")),
            to_address=to_address,
            value=from_base_units(raw, token.decimals),
            token_symbol=token.symbol,
            block_height=block_height,
            confirmations=confirmations,
            timestamp=timestamp,
            status=status,
            contract_address=token.address,
        )

    @staticmethod
    def _status(tx: dict[str, Any], info: dict[str, Any]) -> TransactionStatus:
        if not info or info.get("blockNumber") is None:
            return TransactionStatus.PENDING
        receipt_result = (info.get("receipt") or {}).get("result")
        if receipt_result and receipt_result != "SUCCESS":
            return TransactionStatus.FAILED
        ret = tx.get("ret") or []
        if ret and ret[0].get("contractRet") not in (None, "SUCCESS"):
            return TransactionStatus.FAILED
        return TransactionStatus.SUCCESS

    @staticmethod
    def _decode_trc20(
        info: dict[str, Any],
        call_value: dict[str, Any],
        token_address: str,
        recipient: str | None,
    ) -> tuple[str, str, int]:
        token_hex = base58_to_hex(token_address)[2:]
        transfers: list[tuple[str, str, int]] = []
        for log in info.get("log") or []:
            topics = [str(t).lower() for t in log.get("topics") or []]
            if len(topics) < 3 or topics[0] != _TRANSFER_TOPIC_HEX:
                continue
            log_address = str(log.get("address", "")).lower().removeprefix("0x")
            if len(log_address) == 42:
                log_address = log_address[2:]
            if log_address != token_hex:
                continue
            transfers.append(
                (
                    hex_to_base58(topics[1][-40:]),
                    hex_to_base58(topics[2][-40:]),
                    int(str(log.get("data") or "0") or "0", 16),
                )
            )

        if not transfers:
            # Unconfirmed: no logs yet, decode transfer(address,uint256) calldata.
            data = str(call_value.get("data") or "").lower()
            if data.startswith(_TRANSFER_SELECTOR_HEX) and len(data) >= 8 + 128:
                args = data[8:]
                transfers.append(("", hex_to_base58(args[24:64]), int(args[64:128], 16)))

        if not transfers:
            raise TransferDecodingError("No TRC-20 Transfer found")
        if recipient:
            for transfer in transfers:
                if transfer[1] == recipient:
                    return transfer
        return transfers[0]

    def _from_native_history(self, row: dict[str, Any], now_block: int) -> ChainTransaction | None:
        contracts = (row.get("raw_data") or {}).get("contract") or []
        if not contracts or contracts[0].get("type") != "TransferContract":
            return None
        value = (contracts[0].get("parameter") or {}).get("value") or {}
        block_height = int(row["blockNumber"]) if row.get("blockNumber") is not None else None
        ret = row.get("ret") or []
        failed = bool(ret) and ret[0].get("contractRet") not in (None, "SUCCESS")
        return ChainTransaction(
            hash=str(row.get("txID", "")),
            network=self.network,
            from_address=normalize_address(value.get("owner_address")),
            to_address=normalize_address(value.get("to_address")),
            value=from_base_units(int(value.get("amount", 0)), self.policy.native_decimals),
            token_symbol=None,
            block_height=block_height,
            confirmations=max(0, now_block - block_height + 1) if block_height is not None else 0,
            timestamp=from_epoch(row.get("block_timestamp")),
            status=TransactionStatus.FAILED if failed else TransactionStatus.SUCCESS,
        )

    async def _from_trc20_history(self, row: dict[str, Any], now_block: int) -> ChainTransaction | None:
        token_info = row.get("token_info") or {}
        token = self.policy.token_by_address(str(token_info.get("address") or ""))
        if token is None or row.get("type", "Transfer") != "Transfer":
            return None
        tx_hash = str(row.get("transaction_id", ""))
        # The TRC-20 history endpoint omits block numbers; confirmations need the receipt.
        info = await self._post("/wallet/gettransactioninfobyid", {"value": tx_hash})
        block_height = int(info["blockNumber"]) if info.get("blockNumber") is not None else None
        return ChainTransaction(
            hash=tx_hash,
            network=self.network,
            from_address=normalize_address(row.get("from")),
            to_address=normalize_address(row.get("to")),
            value=from_base_units(str(row.get("value") or "0"), token.decimals),
            token_symbol=token.symbol,
            block_height=block_height,
            confirmations=max(0, now_block - block_height + 1) if block_height is not None else 0,
            timestamp=from_epoch(row.get("block_timestamp")),
            status=TransactionStatus.SUCCESS if block_height is not None else TransactionStatus.PENDING,
            contract_address=token.address,
        )


__all__ = ["TronAdapter", "base58_to_hex", "hex_to_base58", "normalize_address"]
