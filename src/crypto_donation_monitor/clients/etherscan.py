# -*- coding: utf-8 -*-
"""Etherscan-compatible explorer client (multichain v2 API, chainid selects the chain).

Exposes the same read methods as RpcClient (proxy module) so the EVM adapter can use
either, plus account history (txlist / tokentx) that plain RPC does not offer.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, cast

import structlog

from crypto_donation_monitor.exceptions import TransientProviderError
from crypto_donation_monitor.utils.validation import mask_address

if TYPE_CHECKING:
    from crypto_donation_monitor.clients.http import AsyncHttpClient

_EMPTY_RESULT_MESSAGES = ("no transactions found", "no records found")


class EtherscanClient:
    """Client for one EVM chain on an Etherscan-style API."""

    def __init__(
        self,
        http_client: AsyncHttpClient,
        *,
        api_url: str,
        api_key: str,
        chain_id: int,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        self._http = http_client
        self._api_url = api_url.rstrip("/")
        self._api_key = api_key
        self._chain_id = chain_id
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def _query(self, module: str, action: str, **params: Any) -> Any:
        query: dict[str, Any] = {
            "chainid": self._chain_id,
            "module": module,
            "action": action,
            "apikey": self._api_key,
        }
        query.update({k: v for k, v in params.items() if v is not None})
        response = await self._http.get(self._api_url, params=query)
        if not isinstance(response, dict):
            raise TransientProviderError(
                f"Unexpected explorer response type: {type(response).__name__}",
                url=self._api_url,
            )
        body = cast(dict[str, Any], response)
        if module == "proxy":
            if "error" in body:
                err = body["error"]
                message = err.get("message") if isinstance(err, dict) else str(err)
                raise TransientProviderError(f"Explorer proxy error: {message}", url=self._api_url)
            # Proxy errors such as invalid keys come back in the account-style envelope.
            if body.get("status") == "0":
                raise TransientProviderError(
                    f"Explorer proxy error: {body.get('result') or body.get('message')}",
                    url=self._api_url,
                )
            return body.get("result")

        status = str(body.get("status", ""))
        message = str(body.get("message", ""))
        if status == "1":
            return body.get("result")
        if message.lower().startswith(_EMPTY_RESULT_MESSAGES):
            return []
        self._logger.debug(
            "etherscan_query_failed",
            etherscan_module=module,
            etherscan_action=action,
            etherscan_message=message,
        )
        raise TransientProviderError(
            f"Explorer error ({module}.{action}): {body.get('result') or message}",
            url=self._api_url,
        )

    # Proxy reads (same shapes as JSON-RPC)

    async def get_transaction_by_hash(self, tx_hash: str) -> dict[str, Any] | None:
        result = await self._query("proxy", "eth_getTransactionByHash", txhash=tx_hash)
        return cast(dict[str, Any], result) if isinstance(result, dict) else None

    async def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any] | None:
        result = await self._query("proxy", "eth_getTransactionReceipt", txhash=tx_hash)
        return cast(dict[str, Any], result) if isinstance(result, dict) else None

    async def get_block_by_number(self, block_number: int) -> dict[str, Any] | None:
        result = await self._query(
            "proxy", "eth_getBlockByNumber", tag=hex(block_number), boolean="false"
        )
        return cast(dict[str, Any], result) if isinstance(result, dict) else None

    async def block_number(self) -> int:
        result = await self._query("proxy", "eth_blockNumber")
        return int(str(result), 16)

    async def get_balance(self, address: str) -> int:
        """Native balance in wei."""
        result = await self._query("account", "balance", address=address, tag="latest")
        return int(str(result or "0"))

    async def get_erc20_balance_raw(self, token_address: str, owner_address: str) -> int:
        result = await self._query(
            "account",
            "tokenbalance",
            contractaddress=token_address,
            address=owner_address,
            tag="latest",
        )
        return int(str(result or "0"))

    async def get_transaction_count(self, address: str) -> int:
        result = await self._query(
            "proxy", "eth_getTransactionCount", address=address, tag="latest"
        )
        return int(str(result or "0x0"), 16)

    # Account history

    async def get_transactions(self, address: str, *, limit: int) -> list[dict[str, Any]]:
        """Most recent native transactions for address (newest first)."""
        self._logger.debug(
            "etherscan_txlist",
            wallet_masked=mask_address(address),
            limit=limit,
        )
        result = await self._query(
            "account",
            "txlist",
            address=address,
            startblock=0,
            endblock=99999999,
            page=1,
            offset=limit,
            sort="desc",
        )
        return [cast(dict[str, Any], r) for r in result or [] if isinstance(r, dict)]

    async def get_token_transfers(self, address: str, *, limit: int) -> list[dict[str, Any]]:
        """Most recent ERC-20 transfers touching address (newest first)."""
        result = await self._query(
            "account",
            "tokentx",
            address=address,
            page=1,
            offset=limit,
            sort="desc",
        )
        return [cast(dict[str, Any], r) for r in result or [] if isinstance(r, dict)]
