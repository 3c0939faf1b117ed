"""
Configuration management for the MultiversX Relayer.

Supports configuration via environment variables and .env files.
"""

from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class NetworkType(str, Enum):
    """MultiversX network types."""
    MAINNET = "mainnet"
    DEVNET = "devnet"
    TESTNET = "testnet"


CHAIN_IDS = {
    NetworkType.MAINNET: "1",
    NetworkType.DEVNET: "D",
    NetworkType.TESTNET: "T",
}

GATEWAY_URLS = {
    NetworkType.MAINNET: "https://gateway.multiversx.com",
    NetworkType.DEVNET: "https://devnet-gateway.multiversx.com",
    NetworkType.TESTNET: "https://testnet-gateway.multiversx.com",
}

API_URLS = {
    NetworkType.MAINNET: "https://api.multiversx.com",
    NetworkType.DEVNET: "https://devnet-api.multiversx.com",
    NetworkType.TESTNET: "https://testnet-api.multiversx.com",
}


class RelayerConfig(BaseSettings):
    """
    Configuration settings for the MultiversX Relayer.

    All settings can be configured via environment variables with the RELAYER_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="RELAYER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Network settings
    network: NetworkType = Field(
        default=NetworkType.MAINNET,
        description="MultiversX network to connect to"
    )
    chain_id_override: Optional[str] = Field(
        default=None,
        description="Explicit chain ID (derived from network if not set)"
    )
    gateway_base_url: Optional[str] = Field(
        default=None,
        description="Custom proxy gateway URL (optional)"
    )
    api_base_url: Optional[str] = Field(
        default=None,
        description="Custom API URL for token metadata (optional)"
    )
    client_name: str = Field(
        default="multiversx-relayer",
        description="Client name reported to the gateway"
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout for gateway and API requests"
    )

    # Gas settings
    gas_price: int = Field(
        default=1_000_000_000,
        ge=1,
        description="Gas price attached to every transaction"
    )
    default_gas_limit: int = Field(
        default=500_000,
        ge=50_000,
        description="Gas limit for EGLD and ESDT transfers"
    )
    nft_gas_limit: int = Field(
        default=15_000_000,
        ge=50_000,
        description="Gas limit for NFT transfers and base gas for contract calls"
    )
    sft_gas_limit: int = Field(
        default=1_000_000,
        ge=50_000,
        description="Base gas limit for SFT transfers"
    )
    sft_gas_per_unit: int = Field(
        default=10_000,
        ge=0,
        description="Additional gas per SFT unit transferred"
    )
    mint_gas_per_unit: int = Field(
        default=10_000,
        ge=0,
        description="Additional gas per unit requested from a contract call"
    )
    max_gas_limit: int = Field(
        default=600_000_000,
        ge=50_000,
        description="Upper bound applied to every computed gas limit"
    )
    native_decimals: int = Field(
        default=18,
        ge=0,
        description="Decimals of the native EGLD denomination"
    )

    # Batching parameters
    batch_group_size: int = Field(
        default=4,
        ge=1,
        description="Number of transfers run concurrently in one group"
    )
    batch_group_delay_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Idle time between two batch groups"
    )

    # Confirmation settings
    confirmation_max_retries: int = Field(
        default=20,
        ge=1,
        description="Status queries before a transaction is reported unknown"
    )
    confirmation_interval_seconds: float = Field(
        default=5.0,
        ge=0,
        description="Delay between two status queries"
    )

    # Usage fee settings
    usage_fee_enabled: bool = Field(
        default=True,
        description="Charge a usage fee to non-whitelisted senders"
    )
    usage_fee_amount: Decimal = Field(
        default=Decimal("500"),
        gt=0,
        description="Usage fee amount in human units of the fee token"
    )
    usage_fee_token: str = Field(
        default="REWARD-cf6eac",
        description="Token identifier the usage fee is paid in"
    )
    treasury_address: str = Field(
        default="erd158k2c3aserjmwnyxzpln24xukl2fsvlk9x46xae4dxl5xds79g6sdz37qn",
        description="Address receiving usage fees"
    )

    # Token metadata settings
    token_decimals_ttl_seconds: int = Field(
        default=3600,
        ge=0,
        description="How long token decimals stay cached"
    )

    # Whitelist settings
    whitelisted_addresses: List[str] = Field(
        default_factory=list,
        description="Addresses exempt from the usage fee (static whitelist)"
    )
    whitelist_webhook_url: Optional[str] = Field(
        default=None,
        description="Webhook notified about whitelist changes"
    )
    webhook_retries: int = Field(
        default=3,
        ge=1,
        description="Delivery attempts for a webhook update"
    )

    # Database settings
    database_url: str = Field(
        default="sqlite+aiosqlite:///relayer.db",
        description="SQLAlchemy database URL for whitelist and user activity"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )

    @property
    def chain_id(self) -> str:
        """Get the chain ID for the configured network."""
        if self.chain_id_override:
            return self.chain_id_override
        return CHAIN_IDS[self.network]

    @property
    def gateway_url(self) -> str:
        """Get the appropriate proxy gateway URL based on network."""
        if self.gateway_base_url:
            return self.gateway_base_url
        return GATEWAY_URLS.get(self.network, GATEWAY_URLS[NetworkType.MAINNET])

    @property
    def api_url(self) -> str:
        """Get the appropriate API URL based on network."""
        if self.api_base_url:
            return self.api_base_url
        return API_URLS.get(self.network, API_URLS[NetworkType.MAINNET])


# Global config instance
_config: Optional[RelayerConfig] = None


def get_config() -> RelayerConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = RelayerConfig()
    return _config


def set_config(config: RelayerConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
