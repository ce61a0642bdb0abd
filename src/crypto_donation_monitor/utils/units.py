"""Conversion between raw on-chain integer units and Decimal asset amounts."""

from __future__ import annotations

from decimal import ROUND_CEILING, ROUND_DOWN, Decimal, localcontext
from typing import Any


def from_base_units(raw: int | str, decimals: int) -> Decimal:
    """Scale an integer amount of base units (satoshi, wei, drops...) to asset units.

    Accepts ints or integer strings (decimal or 0x-prefixed hex).
    """
    value = parse_int(raw)
    with localcontext() as ctx:
        ctx.prec = 80
        return Decimal(value).scaleb(-decimals)


def to_base_units(amount: Decimal | int | str, decimals: int) -> int:
    """Convert an asset amount to integer base units, truncating sub-unit dust."""
    with localcontext() as ctx:
        ctx.prec = 80
        scaled = Decimal(str(amount)).scaleb(decimals)
        return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def round_up(amount: Decimal, places: int) -> Decimal:
    """Round amount up to the given number of decimal places."""
    with localcontext() as ctx:
        ctx.prec = 80
        return amount.quantize(Decimal(1).scaleb(-places), rounding=ROUND_CEILING)


def parse_int(raw: Any) -> int:
    """Parse an integer from int, decimal string or 0x-prefixed hex string."""
    if isinstance(raw, bool):
        raise ValueError(f"Not an integer amount: {raw!r}")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str):
        s = raw.strip()
        if s.lower().startswith("0x"):
            return int(s, 16) if len(s) > 2 else 0
        return int(s)
    raise ValueError(f"Not an integer amount: {raw!r}")


def to_decimal(value: Any, default: Decimal | None = None) -> Decimal | None:
    """Best-effort Decimal conversion for provider payload fields."""
    if value is None or value == "":
        return default
    try:
        return Decimal(str(value))
    except (ArithmeticError, ValueError):
        return default
