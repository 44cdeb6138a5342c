"""Application settings using pydantic-settings."""

from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """LPTrack configuration from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars
    )

    # Application
    app_name: str = Field(default="LPTrack", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Log level"
    )

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, ge=1, le=65535, description="Server port")

    # Chain
    chain: str = Field(default="bsc", description="Chain key from the chain table")

    # Block explorer (Etherscan v2 multichain API)
    explorer_api_url: str = Field(
        default="https://api.etherscan.io/v2/api",
        description="Block explorer API endpoint",
    )
    explorer_api_key: SecretStr = Field(
        default=SecretStr(""), description="Block explorer API key"
    )

    # JSON-RPC
    rpc_url: str | None = Field(
        default=None, description="JSON-RPC endpoint (overrides the chain default)"
    )
    receipt_delay_ms: int = Field(
        default=100, ge=0, description="Delay between receipt lookups"
    )

    # Subgraph
    subgraph_url: str = Field(
        default="https://gateway.thegraph.com/api/subgraphs/id/G5MUbSBM7Nsrm9tH2tGQUiAF4SZDGf2qeo1xPLYjKr7K",
        description="Uniswap v3 subgraph endpoint",
    )
    subgraph_api_key: SecretStr = Field(
        default=SecretStr(""), description="Subgraph gateway API key"
    )
    subgraph_page_size: int = Field(
        default=1000, ge=1, le=1000, description="Positions per subgraph page"
    )

    # Price history
    price_api_url: str = Field(
        default="https://api.binance.com", description="Kline price history API"
    )
    price_resolution: str = Field(default="1m", description="Kline interval")
    price_batch_size: int = Field(
        default=1000, ge=1, le=1000, description="Klines per request"
    )
    price_batch_delay_ms: int = Field(
        default=100, ge=0, description="Delay between kline batches"
    )
    price_cache_dir: str = Field(
        default=".cache/prices", description="Directory for cached price series"
    )
    price_cache_ttl_seconds: int = Field(
        default=86400, ge=1, description="Freshness window of cached price series"
    )
    fallback_price: Decimal = Field(
        default=Decimal("600"),
        gt=0,
        description="Reference price used when no price series is available",
    )

    # PnL policy
    partial_withdrawal_policy: Literal["closed", "active"] = Field(
        default="closed",
        description="How a position with withdrawals and remaining liquidity is treated",
    )
    min_position_id: int | None = Field(
        default=None, ge=0, description="Ignore positions with a lower numeric id"
    )
    swap_start_block: int = Field(
        default=0, ge=0, description="First block scanned for swap transactions"
    )

    # Circuit Breaker
    circuit_breaker_threshold: int = Field(
        default=5, ge=1, description="Failures before circuit opens"
    )
    circuit_breaker_cooldown: int = Field(
        default=30, ge=1, description="Seconds before half-open"
    )

    @field_validator("explorer_api_url", "subgraph_url", "price_api_url", "rpc_url")
    @classmethod
    def validate_http_url(cls, v: str | None) -> str | None:
        """Validate upstream URLs use HTTP(S)."""
        if v is not None and not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
