"""Chain table: tracked assets and reference price symbol per chain.

Token identity (chain + address) is mapped to an asset role here, once, at
configuration time. The PnL engine never decides roles by matching symbols
unless an address is missing from this table.
"""

from enum import Enum
from typing import Final

from pydantic import BaseModel, Field, field_validator

from lptrack.core.exceptions import ConfigurationError

# Placeholder address aggregators use for the chain's native coin
NATIVE_TOKEN_ADDRESS: Final[str] = "0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee"


class AssetRole(str, Enum):
    """Accounting role of a token in the two-asset model."""

    STABLE = "stable"
    VOLATILE = "volatile"
    OTHER = "other"


class TokenSpec(BaseModel):
    """Symbol and decimal count of a chain's native or stable token."""

    symbol: str
    decimals: int = Field(default=18, ge=0, le=36)


class TrackedToken(BaseModel):
    """A token address with its configured accounting role."""

    address: str
    symbol: str
    decimals: int = Field(default=18, ge=0, le=36)
    role: AssetRole

    @field_validator("address")
    @classmethod
    def normalize_address(cls, v: str) -> str:
        """Lower-case hex addresses so lookups are case-insensitive."""
        if not v.startswith("0x") or len(v) != 42:
            raise ValueError(f"Invalid token address: {v}")
        return v.lower()


class ChainConfig(BaseModel):
    """Per-chain configuration of the tracked stable/volatile pair.

    Attributes:
        name: Display name of the chain.
        chain_id: EVM chain id (used by the block explorer API).
        native_token: Native coin; gas costs are denominated in it.
        stable_token: The stable side of the tracked pair.
        volatile_symbol: Display symbol of the volatile reference asset.
        price_symbol: Price-history symbol quoting volatile in stable terms.
        rpc_url: Default JSON-RPC endpoint.
        tokens: Address table mapping tokens to roles.
    """

    name: str
    chain_id: int
    native_token: TokenSpec
    stable_token: TokenSpec
    volatile_symbol: str
    price_symbol: str
    rpc_url: str
    tokens: list[TrackedToken] = Field(default_factory=list)


CHAINS: Final[dict[str, ChainConfig]] = {
    "bsc": ChainConfig(
        name="BNB Smart Chain",
        chain_id=56,
        native_token=TokenSpec(symbol="BNB", decimals=18),
        stable_token=TokenSpec(symbol="USDT", decimals=18),
        volatile_symbol="BNB",
        price_symbol="BNBUSDT",
        rpc_url="https://bsc-dataseed.bnbchain.org",
        tokens=[
            TrackedToken(
                address="0x55d398326f99059ff775485246999027b3197955",
                symbol="USDT",
                decimals=18,
                role=AssetRole.STABLE,
            ),
            TrackedToken(
                address=NATIVE_TOKEN_ADDRESS,
                symbol="BNB",
                decimals=18,
                role=AssetRole.VOLATILE,
            ),
            TrackedToken(
                address="0xbb4cdb9cbd36b01bd1cbaebf2de08d9173bc095c",
                symbol="WBNB",
                decimals=18,
                role=AssetRole.VOLATILE,
            ),
        ],
    ),
    "ethereum": ChainConfig(
        name="Ethereum",
        chain_id=1,
        native_token=TokenSpec(symbol="ETH", decimals=18),
        stable_token=TokenSpec(symbol="USDT", decimals=6),
        volatile_symbol="ETH",
        price_symbol="ETHUSDT",
        rpc_url="https://eth.llamarpc.com",
        tokens=[
            TrackedToken(
                address="0xdac17f958d2ee523a2206206994597c13d831ec7",
                symbol="USDT",
                decimals=6,
                role=AssetRole.STABLE,
            ),
            TrackedToken(
                address="0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48",
                symbol="USDC",
                decimals=6,
                role=AssetRole.STABLE,
            ),
            TrackedToken(
                address=NATIVE_TOKEN_ADDRESS,
                symbol="ETH",
                decimals=18,
                role=AssetRole.VOLATILE,
            ),
            TrackedToken(
                address="0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2",
                symbol="WETH",
                decimals=18,
                role=AssetRole.VOLATILE,
            ),
        ],
    ),
}


def get_chain_config(chain: str) -> ChainConfig:
    """Look up a chain by key.

    Raises:
        ConfigurationError: If the chain is not in the table.
    """
    try:
        return CHAINS[chain.lower()]
    except KeyError as e:
        raise ConfigurationError(
            f"Unknown chain: {chain} (available: {', '.join(sorted(CHAINS))})"
        ) from e
