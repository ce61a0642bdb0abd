"""Spot price cache entry."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True, slots=True)
class PriceCacheEntry:
    symbol: str
    usd_price: Decimal
    fetched_at: datetime
    is_fallback: bool = False
