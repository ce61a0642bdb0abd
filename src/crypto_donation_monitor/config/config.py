# -*- coding: utf-8 -*-
"""Configuration loaded from environment via Pydantic Settings.

Nested env vars use <section>__<key>, e.g. LOGGING__CONSOLE_LEVEL, WALLETS__BTC_ADDRESS.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal, Optional

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from crypto_donation_monitor.config.networks import Network


class AppSettings(BaseSettings):
    """General application configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    app_name: str = "crypto-donation-monitor"
    service_name: Optional[str] = None
    service_version: Optional[str] = None
    environment: Literal["development", "test", "production"] = "development"


class LoggingSettings(BaseSettings):
    """Structured logging configuration for structlog/stdlib/Logfire."""

    model_config = SettingsConfigDict(extra="ignore")

    console_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    logfire_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    log_to_console: bool = True
    log_to_file: bool = False
    log_file_path: str = "logs/donation_monitor.log"
    log_file_when: Literal[
        "S", "M", "H", "D", "W0", "W1", "W2", "W3", "W4", "W5", "W6", "midnight"
    ] = "midnight"
    log_file_interval: int = 1
    log_file_backup_count: int = 30
    log_file_utc: bool = True

    # JSONRenderer if True, ConsoleRenderer if False
    json_format: bool = False

    logfire_enabled: bool = False
    logfire_token: Optional[str] = None


class ApiSettings(BaseSettings):
    """HTTP client behaviour shared by every provider."""

    model_config = SettingsConfigDict(extra="ignore")

    timeout_seconds: float = Field(
        default=15.0,
        ge=1.0,
        le=120.0,
        description="HTTP request timeout in seconds.",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Maximum number of attempts for a failed request.",
    )


class NetworkApiSettings(BaseSettings):
    """Explorer and RPC endpoints per chain (from env NETWORKS__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    blockstream_api_url: str = "https://blockstream.info/api"
    etherscan_api_url: str = Field(
        default="https://api.etherscan.io/v2/api",
        description="Etherscan-compatible multichain endpoint (chainid selects the chain).",
    )
    etherscan_api_key: Optional[str] = None
    bscscan_api_key: Optional[str] = Field(
        default=None,
        description="Key for BSC explorer lookups; falls back to etherscan_api_key.",
    )
    ethereum_rpc_url: str = "https://ethereum-rpc.publicnode.com"
    bsc_rpc_url: str = "https://bsc-dataseed.binance.org"
    solana_rpc_url: str = "https://api.mainnet-beta.solana.com"
    tron_api_url: str = "https://api.trongrid.io"
    tron_api_key: Optional[str] = None
    xrpscan_api_url: str = "https://api.xrpscan.com/api/v1"

    def explorer_api_key(self, network: Network) -> Optional[str]:
        """Return the explorer key configured for an EVM network."""
        if network == Network.BSC:
            return self.bscscan_api_key or self.etherscan_api_key
        return self.etherscan_api_key

    def rpc_url(self, network: Network) -> str:
        """Return the public JSON-RPC endpoint for an EVM network."""
        if network == Network.BSC:
            return self.bsc_rpc_url
        return self.ethereum_rpc_url


class WalletSettings(BaseSettings):
    """Receiving wallets, one per network (from env WALLETS__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    btc_address: str = ""
    eth_address: str = ""
    bnb_address: str = ""
    sol_address: str = ""
    trx_address: str = ""
    xrp_address: str = ""
    xrp_destination_tag: Optional[int] = Field(default=None, ge=0, le=4294967295)

    @computed_field
    @property
    def addresses(self) -> dict[str, str]:
        """Configured address per network value (empty string when unset)."""
        return {
            Network.BITCOIN.value: self.btc_address.strip(),
            Network.ETHEREUM.value: self.eth_address.strip(),
            Network.BSC.value: self.bnb_address.strip(),
            Network.SOLANA.value: self.sol_address.strip(),
            Network.TRON.value: self.trx_address.strip(),
            Network.XRP.value: self.xrp_address.strip(),
        }

    def address_for(self, network: Network) -> str:
        return self.addresses.get(network.value, "")


class MonitorSettings(BaseSettings):
    """Donation monitor polling (from env MONITOR__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    interval_minutes: float = Field(default=5.0, gt=0, le=1440)
    transactions_limit: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Recent transactions fetched per wallet per cycle.",
    )
    initial_lookback_hours: float = Field(
        default=24.0,
        ge=0,
        description="Watermark offset applied when monitoring starts.",
    )
    pending_failure_cutoff_hours: float = Field(
        default=48.0,
        gt=0,
        description="Pending donations older than this are failed when verification fails.",
    )
    payment_intent_ttl_hours: float = Field(default=24.0, gt=0)
    reconcile_on_tick: bool = True


class PriceSettings(BaseSettings):
    """Spot price feed (from env PRICES__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    coingecko_api_url: str = "https://api.coingecko.com/api/v3"
    cache_ttl_seconds: float = Field(default=60.0, gt=0, le=3600)


class TelegramNotificationSettings(BaseSettings):
    """Telegram notifications (from env TELEGRAM__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    enabled: bool = False
    api_key: Optional[str] = Field(default=None, description="Telegram bot API key.")
    chat_id: Optional[str] = Field(default=None, description="Telegram chat ID.")
    messages_per_minute: int = Field(default=30, ge=1, le=120)
    max_retries: int = Field(default=5, ge=0, le=20)
    backoff_base_seconds: float = Field(default=1.0, ge=0.1, le=60.0)
    connect_timeout: float = Field(default=10.0, ge=0.1, le=60.0)
    read_timeout: float = Field(default=20.0, ge=0.1, le=120.0)
    write_timeout: float = Field(default=20.0, ge=0.1, le=120.0)
    pool_timeout: float = Field(default=10.0, ge=0.1, le=60.0)


class ConsoleNotificationSettings(BaseSettings):
    """Console notification settings."""

    model_config = SettingsConfigDict(extra="ignore")

    enabled: bool = True


class Settings(BaseSettings):
    """Root application configuration.

    Groups all sub-configurations so the rest of the code does not
    read environment variables directly. Nested overrides use
    <section>__<key>, e.g. NETWORKS__ETHERSCAN_API_KEY, MONITOR__INTERVAL_MINUTES.
    """

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    app: AppSettings = Field(default_factory=AppSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    networks: NetworkApiSettings = Field(default_factory=NetworkApiSettings)
    wallets: WalletSettings = Field(default_factory=WalletSettings)
    monitor: MonitorSettings = Field(default_factory=MonitorSettings)
    prices: PriceSettings = Field(default_factory=PriceSettings)
    telegram: TelegramNotificationSettings = Field(default_factory=TelegramNotificationSettings)
    console: ConsoleNotificationSettings = Field(default_factory=ConsoleNotificationSettings)

    @classmethod
    def from_env(cls, **overrides: Any) -> Settings:
        """Build settings from environment (and .env), with optional overrides.

        Nested overrides can be passed as nested dicts, e.g.
        from_env(wallets={"btc_address": "bc1..."}).
        """
        return cls(**overrides)


@lru_cache
def get_settings() -> Settings:
    """Return a single cached instance of Settings.

    Typical usage:

        from crypto_donation_monitor.config import get_settings

        settings = get_settings()
        interval = settings.monitor.interval_minutes
    """
    return Settings()
