# -*- coding: utf-8 -*-
"""Per-network policy table: native units, confirmations, token contracts, tolerances.

Every chain-specific constant used by adapters, the verifier, the monitor and the
payment service lives here so a policy change is made in exactly one place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from crypto_donation_monitor.exceptions import UnsupportedAssetError, UnsupportedNetworkError


class Network(str, Enum):
    """Supported blockchain networks."""

    BITCOIN = "bitcoin"
    ETHEREUM = "ethereum"
    BSC = "bsc"
    XRP = "xrp"
    SOLANA = "solana"
    TRON = "tron"


# Names used by payment forms and older records (erc20/bep20/sol/trc20/xrpl).
_NETWORK_ALIASES: dict[str, Network] = {
    "btc": Network.BITCOIN,
    "erc20": Network.ETHEREUM,
    "eth": Network.ETHEREUM,
    "bep20": Network.BSC,
    "bnb": Network.BSC,
    "sol": Network.SOLANA,
    "trc20": Network.TRON,
    "trx": Network.TRON,
    "xrpl": Network.XRP,
}


def parse_network(value: str | Network) -> Network:
    """Return the Network for a canonical name or known alias (case-insensitive).

    Raises:
        UnsupportedNetworkError: If the name is not recognised.
    """
    if isinstance(value, Network):
        return value
    key = (value or "").strip().lower()
    try:
        return Network(key)
    except ValueError:
        pass
    network = _NETWORK_ALIASES.get(key)
    if network is None:
        raise UnsupportedNetworkError(f"Unsupported network: {value!r}", network=value)
    return network


@dataclass(frozen=True, slots=True)
class TokenContract:
    """A fungible token deployed on a network (ERC-20, BEP-20, TRC-20, SPL)."""

    symbol: str
    name: str
    address: str
    """Contract address (EVM/Tron) or mint address (Solana)."""
    decimals: int


@dataclass(frozen=True, slots=True)
class NetworkPolicy:
    """Static rules for one network."""

    network: Network
    display_name: str
    native_symbol: str
    native_name: str
    native_decimals: int
    required_confirmations: int
    case_insensitive_addresses: bool = False
    chain_id: int | None = None
    tokens: Mapping[str, TokenContract] = field(default_factory=dict)

    def token(self, symbol: str) -> TokenContract | None:
        """Return the token contract for symbol on this network, if any."""
        return self.tokens.get(symbol.upper())

    def token_by_address(self, address: str) -> TokenContract | None:
        """Return the known token deployed at address (compared per address rules)."""
        for contract in self.tokens.values():
            if addresses_equal(self.network, contract.address, address):
                return contract
        return None

    def decimals_for(self, symbol: str) -> int:
        """Return decimals for the native asset or a known token.

        Raises:
            UnsupportedAssetError: If the asset is not known on this network.
        """
        upper = symbol.upper()
        if upper == self.native_symbol:
            return self.native_decimals
        contract = self.token(upper)
        if contract is None:
            raise UnsupportedAssetError(
                f"{upper} is not supported on {self.network.value}",
                asset=upper,
                network=self.network.value,
            )
        return contract.decimals

    def supports_asset(self, symbol: str) -> bool:
        upper = symbol.upper()
        return upper == self.native_symbol or upper in self.tokens


def _tokens(*contracts: TokenContract) -> Mapping[str, TokenContract]:
    return MappingProxyType({c.symbol: c for c in contracts})


NETWORK_POLICIES: Mapping[Network, NetworkPolicy] = MappingProxyType(
    {
        Network.BITCOIN: NetworkPolicy(
            network=Network.BITCOIN,
            display_name="Bitcoin",
            native_symbol="BTC",
            native_name="Bitcoin",
            native_decimals=8,
            required_confirmations=1,
        ),
        Network.ETHEREUM: NetworkPolicy(
            network=Network.ETHEREUM,
            display_name="Ethereum",
            native_symbol="ETH",
            native_name="Ethereum",
            native_decimals=18,
            required_confirmations=12,
            case_insensitive_addresses=True,
            chain_id=1,
            tokens=_tokens(
                TokenContract("USDT", "Tether USD", "0xdAC17F958D2ee523a2206206994597C13D831ec7", 6),
                TokenContract("USDC", "USD Coin", "0xA0b86991c6218b36c1d19d4a2e9eB0cE3606eB48", 6),
            ),
        ),
        Network.BSC: NetworkPolicy(
            network=Network.BSC,
            display_name="BNB Smart Chain",
            native_symbol="BNB",
            native_name="BNB",
            native_decimals=18,
            required_confirmations=12,
            case_insensitive_addresses=True,
            chain_id=56,
            # BEP-20 stablecoins use 18 decimals, unlike their Ethereum counterparts.
            tokens=_tokens(
                TokenContract("USDT", "Tether USD", "0x55d398326f99059fF775485246999027B3197955", 18),
                TokenContract("USDC", "USD Coin", "0x8AC76a51cc950d9822D68b83fE1Ad97B32Cd580d", 18),
            ),
        ),
        Network.SOLANA: NetworkPolicy(
            network=Network.SOLANA,
            display_name="Solana",
            native_symbol="SOL",
            native_name="Solana",
            native_decimals=9,
            required_confirmations=32,
            tokens=_tokens(
                TokenContract("USDT", "Tether USD", "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB", 6),
                TokenContract("USDC", "USD Coin", "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v", 6),
            ),
        ),
        Network.TRON: NetworkPolicy(
            network=Network.TRON,
            display_name="Tron",
            native_symbol="TRX",
            native_name="Tron",
            native_decimals=6,
            required_confirmations=19,
            tokens=_tokens(
                TokenContract("USDT", "Tether USD", "TR7NHqjeKQxGTCi8q8ZY4pL8otSzgjLj6t", 6),
                TokenContract("USDC", "USD Coin", "TEkxiTehnzSmSe2XqrBj4w32RUN966rdz8", 6),
            ),
        ),
        Network.XRP: NetworkPolicy(
            network=Network.XRP,
            display_name="XRP Ledger",
            native_symbol="XRP",
            native_name="XRP",
            native_decimals=6,
            required_confirmations=1,
        ),
    }
)

STABLECOIN_SYMBOLS = frozenset({"USDT", "USDC"})
STABLECOIN_TOLERANCE = Decimal("0.01")
DEFAULT_TOLERANCE = Decimal("0.000001")

# ERC-20 Transfer(address,address,uint256) event signature.
TRANSFER_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
# transfer(address,uint256) function selector.
TRANSFER_SELECTOR = "0xa9059cbb"

COINGECKO_IDS: Mapping[str, str] = MappingProxyType(
    {
        "BTC": "bitcoin",
        "ETH": "ethereum",
        "BNB": "binancecoin",
        "XRP": "ripple",
        "SOL": "solana",
        "TRX": "tron",
        "USDT": "tether",
        "USDC": "usd-coin",
    }
)

FALLBACK_PRICES: Mapping[str, Decimal] = MappingProxyType(
    {
        "BTC": Decimal("45000"),
        "ETH": Decimal("2500"),
        "BNB": Decimal("300"),
        "XRP": Decimal("0.5"),
        "SOL": Decimal("60"),
        "TRX": Decimal("0.1"),
        "USDT": Decimal("1"),
        "USDC": Decimal("1"),
    }
)

# Networks a donor may pick per currency; the first entry is the default.
CURRENCY_NETWORKS: Mapping[str, tuple[Network, ...]] = MappingProxyType(
    {
        "BTC": (Network.BITCOIN,),
        "ETH": (Network.ETHEREUM,),
        "USDT": (Network.SOLANA, Network.ETHEREUM, Network.BSC, Network.TRON),
        "USDC": (Network.SOLANA, Network.ETHEREUM, Network.BSC, Network.TRON),
        "XRP": (Network.XRP,),
        "BNB": (Network.BSC,),
        "SOL": (Network.SOLANA,),
        "TRX": (Network.TRON,),
    }
)

# Decimal places used when quoting a crypto amount to a donor (rounded up).
QUOTE_PRECISION: Mapping[str, int] = MappingProxyType(
    {
        "BTC": 8,
        "ETH": 8,
        "BNB": 8,
        "USDT": 6,
        "USDC": 6,
        "XRP": 6,
        "SOL": 9,
        "TRX": 6,
    }
)


def get_policy(network: str | Network) -> NetworkPolicy:
    """Return the policy for a network name, alias or enum member."""
    return NETWORK_POLICIES[parse_network(network)]


def required_confirmations(network: str | Network) -> int:
    """Return the confirmations a transaction needs before it counts as final."""
    return get_policy(network).required_confirmations


def amount_tolerance(symbol: str) -> Decimal:
    """Return the absolute amount tolerance used when matching an expected amount."""
    if symbol.upper() in STABLECOIN_SYMBOLS:
        return STABLECOIN_TOLERANCE
    return DEFAULT_TOLERANCE


def addresses_equal(network: str | Network, left: str | None, right: str | None) -> bool:
    """Compare two addresses using the network's case rules."""
    if not left or not right:
        return False
    a, b = left.strip(), right.strip()
    if get_policy(network).case_insensitive_addresses:
        return a.lower() == b.lower()
    return a == b
