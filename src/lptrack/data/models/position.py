"""Liquidity position models (read-only input to the PnL engine)."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TokenInfo(BaseModel):
    """Pool token metadata."""

    model_config = ConfigDict(frozen=True)

    address: str = Field(description="Token contract address (lower-case)")
    symbol: str = Field(default="", description="Token symbol")
    decimals: int = Field(default=18, ge=0, le=36, description="Token decimals")

    @field_validator("address")
    @classmethod
    def lower_address(cls, v: str) -> str:
        """Store addresses lower-cased."""
        return v.lower()


class Position(BaseModel):
    """A concentrated-liquidity position as reported upstream.

    Token amounts are raw fixed-point integers encoded as strings, in the
    units of the corresponding pool token. Conversion to decimal units happens
    once, in the event normalizer.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Position id (NFT token id)")
    owner: str = Field(default="", description="Owner address")
    created_at: int = Field(ge=0, description="Creation timestamp (seconds)")
    tx_hash: str | None = Field(default=None, description="Creation transaction")

    pool_id: str = Field(default="", description="Pool address")
    token0: TokenInfo
    token1: TokenInfo
    tick_lower: int = Field(description="Lower tick bound")
    tick_upper: int = Field(description="Upper tick bound")
    pool_tick: int | None = Field(default=None, description="Current pool tick")

    liquidity: str = Field(default="0", description="Remaining liquidity")
    deposited_token0: str = Field(default="0")
    deposited_token1: str = Field(default="0")
    withdrawn_token0: str = Field(default="0")
    withdrawn_token1: str = Field(default="0")
    collected_fees_token0: str = Field(default="0")
    collected_fees_token1: str = Field(default="0")

    @property
    def numeric_id(self) -> int | None:
        """Position id as an integer, if it is one."""
        try:
            return int(self.id)
        except ValueError:
            return None
