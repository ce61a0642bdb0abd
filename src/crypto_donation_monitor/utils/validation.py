"""Validation helpers for addresses and transaction hashes."""

from __future__ import annotations

import re
from typing import Any

_HEX_TX_HASH = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")


def is_hex_tx_hash(value: Any) -> bool:
    """Return True for a 32-byte hex hash, with or without 0x prefix."""
    return isinstance(value, str) and bool(_HEX_TX_HASH.match(value.strip()))


def mask_address(addr: str | None) -> str:
    """Return a masked wallet address for logging (e.g. 0x1234...abcd)."""
    if not addr or len(addr) < 10:
        return "***"
    return f"{addr[:6]}...{addr[-4:]}"
