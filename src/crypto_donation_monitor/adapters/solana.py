# -*- coding: utf-8 -*-
"""Solana adapter over the JSON-RPC API (jsonParsed encoding).

Transfers are derived from pre/post balance deltas rather than instruction parsing,
so native SOL and SPL token payments are handled the same way whatever program
moved the funds.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any, cast

import structlog

from crypto_donation_monitor.adapters.base import NetworkAdapter, from_epoch
from crypto_donation_monitor.config.networks import Network
from crypto_donation_monitor.exceptions import (
    TransactionNotFoundError,
    TransferDecodingError,
    TransientProviderError,
)
from crypto_donation_monitor.models.transaction import ChainTransaction, TransactionStatus
from crypto_donation_monitor.models.wallet import TokenBalance, WalletSnapshot
from crypto_donation_monitor.utils.units import from_base_units

if TYPE_CHECKING:
    from crypto_donation_monitor.clients.rpc_client import RpcClient

SPL_TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
# A finalized (rooted) slot has at least the maximum vote lockout of confirmations.
FINALIZED_CONFIRMATIONS = 32
SIGNATURE_COUNT_LIMIT = 1000


@dataclass(frozen=True, slots=True)
class _BalanceChange:
    owner: str
    mint: str | None
    """None for native SOL."""
    delta: int
    decimals: int


def _account_keys(tx: dict[str, Any]) -> list[str]:
    message = (tx.get("transaction") or {}).get("message") or {}
    keys: list[str] = []
    for key in message.get("accountKeys") or []:
        if isinstance(key, dict):
            keys.append(str(key.get("pubkey", "")))
        else:
            keys.append(str(key))
    # Versioned transactions append loaded addresses after the static keys.
    loaded = (tx.get("meta") or {}).get("loadedAddresses") or {}
    keys.extend(str(k) for k in loaded.get("writable") or [])
    keys.extend(str(k) for k in loaded.get("readonly") or [])
    return keys


def balance_changes(tx: dict[str, Any], native_decimals: int = 9) -> list[_BalanceChange]:
    """Per-owner native and token balance deltas for a jsonParsed transaction."""
    meta = tx.get("meta") or {}
    keys = _account_keys(tx)
    changes: list[_BalanceChange] = []

    pre = meta.get("preBalances") or []
    post = meta.get("postBalances") or []
    for index, key in enumerate(keys):
        if index < len(pre) and index < len(post):
            delta = int(post[index]) - int(pre[index])
            if delta:
                changes.append(_BalanceChange(key, None, delta, native_decimals))

    token_totals: dict[tuple[str, str], list[int]] = {}
    token_decimals: dict[str, int] = {}
    for slot, field_name in ((0, "preTokenBalances"), (1, "postTokenBalances")):
        for entry in meta.get(field_name) or []:
            owner = entry.get("owner")
            mint = entry.get("mint")
            amount = (entry.get("uiTokenAmount") or {}).get("amount")
            if not owner or not mint or amount is None:
                continue
            token_decimals[mint] = int((entry.get("uiTokenAmount") or {}).get("decimals", 0))
            totals = token_totals.setdefault((owner, mint), [0, 0])
            totals[slot] += int(amount)
    for (owner, mint), (before, after) in token_totals.items():
        if after != before:
            changes.append(_BalanceChange(owner, mint, after - before, token_decimals[mint]))
    return changes


class SolanaAdapter(NetworkAdapter):
    """Reads balances and transfers from a Solana RPC node."""

    network = Network.SOLANA

    def __init__(
        self,
        rpc_client: RpcClient,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        super().__init__(get_logger=get_logger, logger_name=logger_name)
        self._rpc = rpc_client

    async def fetch_wallet_snapshot(self, address: str) -> WalletSnapshot:
        policy = self.policy
        result = await self._rpc.call("getBalance", [address])
        lamports = int((result or {}).get("value", 0)) if isinstance(result, dict) else 0
        balances: list[TokenBalance] = [
            self._native_balance(from_base_units(lamports, policy.native_decimals))
        ]

        accounts = await self._rpc.call(
            "getTokenAccountsByOwner",
            [address, {"programId": SPL_TOKEN_PROGRAM_ID}, {"encoding": "jsonParsed"}],
        )
        raw_by_mint: dict[str, int] = {}
        for account in (accounts or {}).get("value") or []:
            info = (((account.get("account") or {}).get("data") or {}).get("parsed") or {}).get("info") or {}
            mint = info.get("mint")
            amount = (info.get("tokenAmount") or {}).get("amount")
            if mint and amount is not None:
                raw_by_mint[mint] = raw_by_mint.get(mint, 0) + int(amount)
        for mint, raw in raw_by_mint.items():
            contract = policy.token_by_address(mint)
            if contract is not None and raw > 0:
                balances.append(
                    self._token_balance(contract.symbol, from_base_units(raw, contract.decimals))
                )

        signatures = await self._rpc.call(
            "getSignaturesForAddress", [address, {"limit": SIGNATURE_COUNT_LIMIT}]
        )
        return self._snapshot(address, balances, len(signatures or []))

    async def fetch_recent_transactions(self, address: str, limit: int) -> list[ChainTransaction]:
        signatures = await self._rpc.call("getSignaturesForAddress", [address, {"limit": limit}])
        if not isinstance(signatures, list):
            raise TransientProviderError("Unexpected getSignaturesForAddress payload", url=self._rpc.url)
        entries = [cast(dict[str, Any], s) for s in signatures if isinstance(s, dict)]
        sigs = [str(e["signature"]) for e in entries if e.get("signature")]
        confirmations = await self._confirmations(sigs)

        transactions: list[ChainTransaction] = []
        for sig in sigs:
            tx = await self._get_transaction(sig)
            if tx is None:
                continue
            transactions.append(
                self._to_chain_transaction(
                    sig, tx, confirmations.get(sig, 0), recipient=address, asset=None
                )
            )
        return transactions

    async def fetch_transaction_by_hash(
        self,
        tx_hash: str,
        *,
        asset: str | None = None,
        recipient: str | None = None,
    ) -> ChainTransaction:
        tx = await self._get_transaction(tx_hash)
        if tx is None:
            raise TransactionNotFoundError(tx_hash, self.network.value)
        confirmations = await self._confirmations([tx_hash])
        return self._to_chain_transaction(
            tx_hash,
            tx,
            confirmations.get(tx_hash, 0),
            recipient=recipient,
            asset=asset,
            strict=True,
        )

    async def _get_transaction(self, signature: str) -> dict[str, Any] | None:
        result = await self._rpc.call(
            "getTransaction",
            [
                signature,
                {
                    "encoding": "jsonParsed",
                    "commitment": "confirmed",
                    "maxSupportedTransactionVersion": 0,
                },
            ],
        )
        return cast(dict[str, Any], result) if isinstance(result, dict) else None

    async def _confirmations(self, signatures: list[str]) -> dict[str, int]:
        if not signatures:
            return {}
        result = await self._rpc.call(
            "getSignatureStatuses", [signatures, {"searchTransactionHistory": True}]
        )
        statuses = (result or {}).get("value") or [] if isinstance(result, dict) else []
        confirmations: dict[str, int] = {}
        for sig, status in zip(signatures, statuses):
            if not isinstance(status, dict):
                confirmations[sig] = 0
            elif status.get("confirmations") is not None:
                confirmations[sig] = int(status["confirmations"])
            elif status.get("confirmationStatus") == "finalized":
                confirmations[sig] = FINALIZED_CONFIRMATIONS
            else:
                confirmations[sig] = 0
        return confirmations

    def _to_chain_transaction(
        self,
        signature: str,
        tx: dict[str, Any],
        confirmations: int,
        *,
        recipient: str | None,
        asset: str | None,
        strict: bool = False,
    ) -> ChainTransaction:
        policy = self.policy
        changes = balance_changes(tx, policy.native_decimals)
        keys = _account_keys(tx)
        fee_payer = keys[0] if keys else ""

        mint: str | None = None
        if self._is_token_asset(asset):
            contract = policy.token(cast(str, asset))
            mint = contract.address if contract else None
        candidates = [
            c for c in changes
            if c.delta > 0 and (asset is None or c.mint == mint)
            and (c.mint is None or policy.token_by_address(c.mint) is not None)
        ]
        if recipient:
            incoming = [c for c in candidates if c.owner == recipient]
        else:
            incoming = [c for c in candidates if c.owner != fee_payer]

        if not incoming and strict and asset is not None and mint is not None:
            raise TransferDecodingError(f"No {asset} transfer found in {signature}")

        meta = tx.get("meta") or {}
        status = TransactionStatus.FAILED if meta.get("err") else TransactionStatus.SUCCESS

        if incoming:
            change = incoming[0]
            token = policy.token_by_address(change.mint) if change.mint else None
            senders = [c for c in changes if c.mint == change.mint and c.delta < 0 and c.owner != change.owner]
            from_address = senders[0].owner if senders and change.mint else fee_payer
            to_address = change.owner
            value = from_base_units(change.delta, change.decimals)
            token_symbol = token.symbol if token else None
            contract_address = token.address if token else None
        else:
            # Nothing arrived for the recipient: report as outgoing from the fee payer.
            from_address = fee_payer
            to_address = next((c.owner for c in candidates if c.owner != recipient), "")
            value = Decimal("0")
            token_symbol = None
            contract_address = None

        return ChainTransaction(
            hash=signature,
            network=self.network,
            from_address=from_address,
            to_address=to_address,
            value=value,
            token_symbol=token_symbol,
            block_height=int(tx["slot"]) if tx.get("slot") is not None else None,
            confirmations=confirmations,
            timestamp=from_epoch(tx.get("blockTime")),
            status=status,
            contract_address=contract_address,
        )
