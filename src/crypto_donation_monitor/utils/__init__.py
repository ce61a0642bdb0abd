# -*- coding: utf-8 -*-
"""Utility modules."""

from crypto_donation_monitor.utils.units import (
    from_base_units,
    parse_int,
    round_up,
    to_base_units,
    to_decimal,
)
from crypto_donation_monitor.utils.validation import (
    is_hex_tx_hash,
    mask_address,
)

__all__ = [
    "from_base_units",
    "is_hex_tx_hash",
    "mask_address",
    "parse_int",
    "round_up",
    "to_base_units",
    "to_decimal",
]
