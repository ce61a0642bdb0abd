"""JSON-RPC client for on-chain reads (EVM and Solana endpoints)."""

from __future__ import annotations

import itertools
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, cast

import structlog

from crypto_donation_monitor.exceptions import TransientProviderError

if TYPE_CHECKING:
    from crypto_donation_monitor.clients.http import AsyncHttpClient

# ERC-20 selectors (bytes4(keccak256(...)))
SELECTOR_BALANCE_OF = "0x70a08231"


def _normalize_address(addr: str) -> str:
    """Return lowercase hex address without 0x prefix (for calldata)."""
    s = (addr or "").strip().lower()
    if s.startswith("0x"):
        s = s[2:]
    return s


def encode_balance_of(owner_address: str) -> str:
    """Calldata for balanceOf(address): selector + 32-byte left-padded address."""
    owner_hex = _normalize_address(owner_address)
    if len(owner_hex) != 40:
        raise ValueError(f"Invalid address length: {owner_address!r}")
    return SELECTOR_BALANCE_OF + "0" * 24 + owner_hex


class RpcClient:
    """Client for one JSON-RPC endpoint.

    call() raises TransientProviderError when the node answers with a JSON-RPC error
    object, so callers handle it like any other provider failure.
    """

    def __init__(
        self,
        http_client: AsyncHttpClient,
        rpc_url: str,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: str | None = None,
    ) -> None:
        """Initialize the RPC client.

        Args:
            http_client: HTTP client for POST requests (JSON-RPC).
            rpc_url: Endpoint URL.
            get_logger: Logger factory (injected).
            logger_name: Optional logger name (defaults to class name).
        """
        self._http = http_client
        self._rpc_url = rpc_url.rstrip("/")
        self._ids = itertools.count(1)
        self._logger = get_logger(logger_name or self.__class__.__name__)

    @property
    def url(self) -> str:
        return self._rpc_url

    async def call(self, method: str, params: list[Any] | None = None) -> Any:
        """Send a JSON-RPC request and return its result (may be None).

        Raises:
            ProviderError: If the HTTP request fails.
            TransientProviderError: If the response is malformed or carries an error.
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }
        response = await self._http.post(self._rpc_url, json=payload)
        if not isinstance(response, dict):
            raise TransientProviderError(
                f"Unexpected RPC response type: {type(response).__name__}",
                url=self._rpc_url,
            )
        resp_dict = cast(dict[str, Any], response)
        if resp_dict.get("error"):
            err = resp_dict["error"]
            if isinstance(err, dict):
                err_d = cast(dict[str, Any], err)
                msg = str(err_d.get("message", err_d))
            else:
                msg = str(err)
            self._logger.debug("rpc_error_response", rpc_method=method, error_message=msg)
            raise TransientProviderError(f"RPC error ({method}): {msg}", url=self._rpc_url)
        return resp_dict.get("result")

    # EVM helpers

    async def eth_call(self, to: str, data: str, block: str = "latest") -> str:
        """Perform eth_call (read-only contract call). Returns hex result."""
        to_norm = to.strip()
        if not to_norm.startswith("0x"):
            to_norm = "0x" + to_norm
        result = await self.call("eth_call", [{"to": to_norm, "data": data}, block])
        return str(result) if result is not None else "0x0"

    async def get_transaction_by_hash(self, tx_hash: str) -> dict[str, Any] | None:
        result = await self.call("eth_getTransactionByHash", [tx_hash])
        return cast(dict[str, Any], result) if isinstance(result, dict) else None

    async def get_transaction_receipt(self, tx_hash: str) -> dict[str, Any] | None:
        result = await self.call("eth_getTransactionReceipt", [tx_hash])
        return cast(dict[str, Any], result) if isinstance(result, dict) else None

    async def get_block_by_number(self, block_number: int) -> dict[str, Any] | None:
        result = await self.call("eth_getBlockByNumber", [hex(block_number), False])
        return cast(dict[str, Any], result) if isinstance(result, dict) else None

    async def block_number(self) -> int:
        result = await self.call("eth_blockNumber", [])
        return int(str(result), 16)

    async def get_balance(self, address: str) -> int:
        """Native balance in wei."""
        result = await self.call("eth_getBalance", [address, "latest"])
        return int(str(result or "0x0"), 16)

    async def get_erc20_balance_raw(self, token_address: str, owner_address: str) -> int:
        """Raw (unscaled) ERC-20 balance of owner."""
        raw = await self.eth_call(token_address, encode_balance_of(owner_address))
        return int(raw, 16) if raw not in ("0x", "") else 0

    async def get_transaction_count(self, address: str) -> int:
        """Nonce of address (number of transactions it has sent)."""
        result = await self.call("eth_getTransactionCount", [address, "latest"])
        return int(str(result or "0x0"), 16)
