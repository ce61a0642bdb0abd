# -*- coding: utf-8 -*-
"""Per-chain adapters normalizing explorer/RPC data."""

from crypto_donation_monitor.adapters.base import NetworkAdapter
from crypto_donation_monitor.adapters.bitcoin import BitcoinAdapter
from crypto_donation_monitor.adapters.evm import EvmAdapter
from crypto_donation_monitor.adapters.registry import AdapterRegistry
from crypto_donation_monitor.adapters.solana import SolanaAdapter
from crypto_donation_monitor.adapters.tron import TronAdapter
from crypto_donation_monitor.adapters.xrp import XrpAdapter

__all__ = [
    "AdapterRegistry",
    "BitcoinAdapter",
    "EvmAdapter",
    "NetworkAdapter",
    "SolanaAdapter",
    "TronAdapter",
    "XrpAdapter",
]
