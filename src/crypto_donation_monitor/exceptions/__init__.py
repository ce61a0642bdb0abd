"""Exceptions subpackage."""

from crypto_donation_monitor.exceptions.exceptions import (
    ConfigurationError,
    CryptoDonationError,
    DonationNotFoundError,
    MissingRequiredConfigError,
    ProviderError,
    ProviderNotFoundError,
    RateLimitError,
    TransactionNotFoundError,
    TransferDecodingError,
    TransientProviderError,
    UnsupportedAssetError,
    UnsupportedNetworkError,
)

__all__ = [
    "ConfigurationError",
    "CryptoDonationError",
    "DonationNotFoundError",
    "MissingRequiredConfigError",
    "ProviderError",
    "ProviderNotFoundError",
    "RateLimitError",
    "TransactionNotFoundError",
    "TransferDecodingError",
    "TransientProviderError",
    "UnsupportedAssetError",
    "UnsupportedNetworkError",
]
