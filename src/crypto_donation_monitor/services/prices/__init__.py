"""Price oracle: cached USD spot prices."""

from crypto_donation_monitor.services.prices.price_oracle import PriceOracle

__all__ = ["PriceOracle"]
