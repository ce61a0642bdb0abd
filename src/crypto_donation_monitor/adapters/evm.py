# -*- coding: utf-8 -*-
"""EVM adapter (Ethereum, BSC).

Reads go to the Etherscan-compatible explorer when an API key is configured and fall
back to the public JSON-RPC endpoint when the explorer is missing or failing. Account
history is only available through the explorer.

Token transfers are decoded from the receipt's ERC-20 Transfer log emitted by the
token contract: recipient from the second indexed topic, amount from the data word.
A transfer still in the mempool has no receipt, so its transfer() calldata is decoded.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Protocol, TypeVar, cast

import structlog

from crypto_donation_monitor.adapters.base import NetworkAdapter, from_epoch
from crypto_donation_monitor.config.networks import (
    TRANSFER_SELECTOR,
    TRANSFER_TOPIC,
    Network,
    TokenContract,
    addresses_equal,
)
from crypto_donation_monitor.exceptions import (
    ProviderError,
    TransactionNotFoundError,
    TransferDecodingError,
    TransientProviderError,
)
from crypto_donation_monitor.models.transaction import ChainTransaction, TransactionStatus
from crypto_donation_monitor.models.wallet import TokenBalance, WalletSnapshot
from crypto_donation_monitor.utils.units import from_base_units, parse_int

T = TypeVar("T")


class EvmReader(Protocol):
    """Read methods shared by RpcClient and EtherscanClient."""

    async def get_transaction_by_hash(self, tx_hash: str) -> dict[str, Any] | None: ...

    async def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any] | None: ...

    async def get_block_by_number(self, block_number: int) -> dict[str, Any] | None: ...

    async def block_number(self) -> int: ...

    async def get_balance(self, address: str) -> int: ...

    async def get_erc20_balance_raw(self, token_address: str, owner_address: str) -> int: ...

    async def get_transaction_count(self, address: str) -> int: ...


class EvmHistory(Protocol):
    async def get_transactions(self, address: str, *, limit: int) -> list[dict[str, Any]]: ...

    async def get_token_transfers(self, address: str, *, limit: int) -> list[dict[str, Any]]: ...


@dataclass(frozen=True, slots=True)
class DecodedTransfer:
    """An ERC-20 transfer decoded from a log or from calldata."""

    from_address: str
    to_address: str
    raw_amount: int


def _topic_address(topic: str) -> str:
    """Address packed in the low 20 bytes of a 32-byte topic."""
    return "0x" + topic.lower().removeprefix("0x")[-40:]


def decode_transfer_logs(
    logs: list[dict[str, Any]],
    token_address: str,
) -> list[DecodedTransfer]:
    """Return every Transfer event emitted by token_address in logs."""
    transfers: list[DecodedTransfer] = []
    for log in logs:
        topics = [str(t) for t in log.get("topics") or []]
        if len(topics) < 3 or topics[0].lower() != TRANSFER_TOPIC:
            continue
        if str(log.get("address", "")).lower() != token_address.lower():
            continue
        data = str(log.get("data") or "0x")
        transfers.append(
            DecodedTransfer(
                from_address=_topic_address(topics[1]),
                to_address=_topic_address(topics[2]),
                raw_amount=parse_int(data) if data not in ("0x", "") else 0,
            )
        )
    return transfers


def decode_transfer_calldata(data: str) -> DecodedTransfer | None:
    """Decode transfer(address,uint256) calldata; None if data is another call."""
    s = (data or "").lower()
    if not s.startswith(TRANSFER_SELECTOR) or len(s) < 10 + 128:
        return None
    args = s[10:]
    return DecodedTransfer(
        from_address="",
        to_address="0x" + args[24:64],
        raw_amount=int(args[64:128], 16),
    )


def _receipt_status(receipt: dict[str, Any] | None) -> TransactionStatus:
    if receipt is None:
        return TransactionStatus.PENDING
    status = receipt.get("status")
    if status is None:
        return TransactionStatus.SUCCESS
    return TransactionStatus.SUCCESS if parse_int(status) == 1 else TransactionStatus.FAILED


class EvmAdapter(NetworkAdapter):
    """Adapter for one EVM network, parameterized by its policy entry."""

    def __init__(
        self,
        network: Network,
        rpc_client: EvmReader,
        *,
        explorer: Any | None = None,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            network: Network.ETHEREUM or Network.BSC.
            rpc_client: Public JSON-RPC reader (always available).
            explorer: Etherscan-compatible client; None when no API key is configured.
        """
        if network not in (Network.ETHEREUM, Network.BSC):
            raise ValueError(f"EvmAdapter does not support {network.value}")
        self.network = network
        super().__init__(get_logger=get_logger, logger_name=logger_name or f"EvmAdapter.{network.value}")
        self._rpc = rpc_client
        self._explorer = explorer

    def _readers(self) -> list[EvmReader]:
        if self._explorer is not None:
            return [cast(EvmReader, self._explorer), self._rpc]
        return [self._rpc]

    async def _read(self, fn: Callable[[EvmReader], Awaitable[T]]) -> T:
        """Run fn against the explorer, then the RPC endpoint if the explorer fails."""
        last_error: ProviderError | None = None
        for reader in self._readers():
            try:
                return await fn(reader)
            except ProviderError as e:
                last_error = e
                self._logger.debug(
                    "evm_reader_failed",
                    evm_network=self.network.value,
                    evm_reader=type(reader).__name__,
                    error_type=type(e).__name__,
                    error_message=str(e),
                )
        if last_error is None:
            raise TransientProviderError(f"No reader configured for {self.network.value}")
        raise last_error

    async def fetch_wallet_snapshot(self, address: str) -> WalletSnapshot:
        policy = self.policy
        wei = await self._read(lambda r: r.get_balance(address))
        balances: list[TokenBalance] = [
            self._native_balance(from_base_units(wei, policy.native_decimals))
        ]
        for contract in policy.tokens.values():
            raw = await self._read(
                lambda r, c=contract: r.get_erc20_balance_raw(c.address, address)  # type: ignore[misc]
            )
            if raw > 0:
                balances.append(
                    self._token_balance(contract.symbol, from_base_units(raw, contract.decimals))
                )
        tx_count = await self._read(lambda r: r.get_transaction_count(address))
        return self._snapshot(address, balances, tx_count)

    async def fetch_recent_transactions(self, address: str, limit: int) -> list[ChainTransaction]:
        if self._explorer is None:
            raise TransientProviderError(
                f"Transaction history for {self.network.value} requires an explorer API key"
            )
        history = cast(EvmHistory, self._explorer)
        native = await history.get_transactions(address, limit=limit)
        tokens = await history.get_token_transfers(address, limit=limit)

        transactions = [self._from_explorer_tx(t) for t in native]
        for transfer in tokens:
            tx = self._from_explorer_token_transfer(transfer)
            if tx is not None:
                transactions.append(tx)
        transactions.sort(key=lambda t: t.block_height or 0, reverse=True)
        return transactions[:limit]

    async def fetch_transaction_by_hash(
        self,
        tx_hash: str,
        *,
        asset: str | None = None,
        recipient: str | None = None,
    ) -> ChainTransaction:
        tx = await self._read(lambda r: r.get_transaction_by_hash(tx_hash))
        if not tx:
            raise TransactionNotFoundError(tx_hash, self.network.value)
        receipt = await self._read(lambda r: r.get_transaction_receipt(tx_hash))
        current_block = await self._read(lambda r: r.block_number())

        block_height = parse_int(tx["blockNumber"]) if tx.get("blockNumber") else None
        confirmations = 0
        if block_height is not None and receipt is not None:
            confirmations = max(0, current_block - block_height + 1)
        timestamp = None
        if block_height is not None:
            block = await self._read(lambda r: r.get_block_by_number(block_height))
            timestamp = from_epoch(parse_int(block["timestamp"])) if block and block.get("timestamp") else None

        contract = self._resolve_token(asset, tx)
        if contract is None:
            return ChainTransaction(
                hash=str(tx.get("hash") or tx_hash),
                network=self.network,
                from_address=str(tx.get("from") or ""),
                to_address=str(tx.get("to") or ""),
                value=from_base_units(tx.get("value") or "0x0", self.policy.native_decimals),
                token_symbol=None,
                block_height=block_height,
                confirmations=confirmations,
                timestamp=timestamp,
                status=_receipt_status(receipt),
            )

        transfer = self._decode_token_transfer(tx, receipt, contract, recipient)
        return ChainTransaction(
            hash=str(tx.get("hash") or tx_hash),
            network=self.network,
            from_address=transfer.from_address or str(tx.get("from") or ""),
            to_address=transfer.to_address,
            value=from_base_units(transfer.raw_amount, contract.decimals),
            token_symbol=contract.symbol,
            block_height=block_height,
            confirmations=confirmations,
            timestamp=timestamp,
            status=_receipt_status(receipt),
            contract_address=contract.address,
        )

    def _resolve_token(self, asset: str | None, tx: dict[str, Any]) -> TokenContract | None:
        if asset is not None:
            return self.policy.token(asset) if self._is_token_asset(asset) else None
        # No asset hint: a call to a known token contract is a token transfer.
        return self.policy.token_by_address(str(tx.get("to") or ""))

    def _decode_token_transfer(
        self,
        tx: dict[str, Any],
        receipt: dict[str, Any] | None,
        contract: TokenContract,
        recipient: str | None,
    ) -> DecodedTransfer:
        if receipt is not None:
            logs = [cast(dict[str, Any], log) for log in receipt.get("logs") or [] if isinstance(log, dict)]
            transfers = decode_transfer_logs(logs, contract.address)
        else:
            if not addresses_equal(self.network, str(tx.get("to") or ""), contract.address):
                transfers = []
            else:
                decoded = decode_transfer_calldata(str(tx.get("input") or ""))
                transfers = [decoded] if decoded else []

        if not transfers:
            raise TransferDecodingError(
                f"No {contract.symbol} Transfer found in {tx.get('hash')} on {self.network.value}"
            )
        if recipient:
            for transfer in transfers:
                if addresses_equal(self.network, transfer.to_address, recipient):
                    return transfer
        return transfers[0]

    def _from_explorer_tx(self, row: dict[str, Any]) -> ChainTransaction:
        failed = str(row.get("isError", "0")) == "1" or str(row.get("txreceipt_status", "1")) == "0"
        return ChainTransaction(
            hash=str(row.get("hash", "")),
            network=self.network,
            from_address=str(row.get("from") or ""),
            to_address=str(row.get("to") or ""),
            value=from_base_units(str(row.get("value") or "0"), self.policy.native_decimals),
            token_symbol=None,
            block_height=int(row["blockNumber"]) if row.get("blockNumber") else None,
            confirmations=int(row.get("confirmations") or 0),
            timestamp=from_epoch(row.get("timeStamp")),
            status=TransactionStatus.FAILED if failed else TransactionStatus.SUCCESS,
        )

    def _from_explorer_token_transfer(self, row: dict[str, Any]) -> ChainTransaction | None:
        contract = self.policy.token_by_address(str(row.get("contractAddress") or ""))
        if contract is None:
            return None
        return ChainTransaction(
            hash=str(row.get("hash", "")),
            network=self.network,
            from_address=str(row.get("from") or ""),
            to_address=str(row.get("to") or ""),
            value=from_base_units(str(row.get("value") or "0"), contract.decimals),
            token_symbol=contract.symbol,
            block_height=int(row["blockNumber"]) if row.get("blockNumber") else None,
            confirmations=int(row.get("confirmations") or 0),
            timestamp=from_epoch(row.get("timeStamp")),
            status=TransactionStatus.SUCCESS,
            contract_address=contract.address,
        )


__all__ = [
    "DecodedTransfer",
    "EvmAdapter",
    "decode_transfer_calldata",
    "decode_transfer_logs",
]
