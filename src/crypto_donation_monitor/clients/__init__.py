"""HTTP and chain API clients."""

from crypto_donation_monitor.clients.coingecko import CoinGeckoClient
from crypto_donation_monitor.clients.etherscan import EtherscanClient
from crypto_donation_monitor.clients.http import AsyncHttpClient
from crypto_donation_monitor.clients.rpc_client import RpcClient

__all__ = [
    "AsyncHttpClient",
    "CoinGeckoClient",
    "EtherscanClient",
    "RpcClient",
]
