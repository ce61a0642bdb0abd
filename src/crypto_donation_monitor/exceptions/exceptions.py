"""Custom exceptions for chain providers, verification and configuration."""

from __future__ import annotations


class CryptoDonationError(Exception):
    """Base exception for donation monitoring errors."""

    pass


class ConfigurationError(CryptoDonationError):
    """Raised for invalid or incomplete configuration. Always surfaced to the caller."""

    pass


class MissingRequiredConfigError(ConfigurationError):
    """Raised when a required configuration value is missing."""

    pass


class UnsupportedNetworkError(ConfigurationError):
    """Raised when a network name is not one of the supported chains."""

    def __init__(self, message: str, *, network: str | None = None) -> None:
        super().__init__(message)
        self.network = network


class UnsupportedAssetError(ConfigurationError):
    """Raised when an asset is not known on the requested network."""

    def __init__(
        self,
        message: str,
        *,
        asset: str | None = None,
        network: str | None = None,
    ) -> None:
        super().__init__(message)
        self.asset = asset
        self.network = network


class ProviderError(CryptoDonationError):
    """Raised when an explorer/RPC request fails."""

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.cause = cause


class TransientProviderError(ProviderError):
    """Timeouts, 5xx responses, exhausted retries or malformed payloads."""

    pass


class RateLimitError(TransientProviderError):
    """Raised when the provider returns HTTP 429 (Too Many Requests)."""

    def __init__(
        self,
        message: str = "Rate limit exceeded (429)",
        *,
        url: str | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, url=url, status_code=429)
        self.retry_after = retry_after


class ProviderNotFoundError(ProviderError):
    """Raised when the provider answers 404 for the requested resource."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message, url=url, status_code=404)


class TransactionNotFoundError(CryptoDonationError):
    """Raised when a transaction hash is unknown to the chain provider."""

    def __init__(self, tx_hash: str, network: str) -> None:
        super().__init__(f"Transaction {tx_hash} not found on {network}")
        self.tx_hash = tx_hash
        self.network = network


class TransferDecodingError(CryptoDonationError):
    """Raised when a transaction exists but the expected transfer cannot be decoded."""

    pass


class DonationNotFoundError(CryptoDonationError):
    """Raised when a donation id does not exist in the store."""

    def __init__(self, donation_id: str) -> None:
        super().__init__(f"Donation {donation_id} not found")
        self.donation_id = donation_id
