"""Token identity to asset role resolution."""

from typing import Final

import structlog

from lptrack.config.chains import AssetRole, ChainConfig, TrackedToken

log = structlog.get_logger(__name__)

# Heuristic fallback for tokens missing from the chain table
STABLECOIN_SYMBOLS: Final[frozenset[str]] = frozenset(
    {"USDT", "USDC", "USD", "DAI", "BUSD", "TUSD", "USDP", "GUSD", "USD₮0"}
)

DEFAULT_DECIMALS: Final[int] = 18


class AssetRegistry:
    """Resolves token addresses to their accounting role.

    Built once per run from a ``ChainConfig``. Address lookup is exact; the
    symbol heuristic is only consulted for addresses the table does not know.

    Example:
        registry = AssetRegistry(get_chain_config("bsc"))
        registry.role_of("0x55d398326f99059ff775485246999027b3197955")
        # AssetRole.STABLE
    """

    def __init__(self, chain: ChainConfig) -> None:
        self.chain = chain
        self._tokens: dict[str, TrackedToken] = {t.address: t for t in chain.tokens}
        self._volatile_symbols = {
            chain.volatile_symbol.upper(),
            chain.native_token.symbol.upper(),
            f"W{chain.native_token.symbol.upper()}",
        }

    @property
    def stable_symbol(self) -> str:
        return self.chain.stable_token.symbol

    @property
    def volatile_symbol(self) -> str:
        return self.chain.volatile_symbol

    def role_of(self, address: str, symbol: str | None = None) -> AssetRole:
        """Return the role of a token.

        Args:
            address: Token contract address (any case).
            symbol: Token symbol, used only when the address is unknown.

        Returns:
            The configured role, or the symbol-heuristic role, or OTHER.
        """
        token = self._tokens.get(address.lower())
        if token is not None:
            return token.role

        if symbol:
            upper = symbol.upper()
            if upper in STABLECOIN_SYMBOLS:
                log.debug("asset_role_from_symbol", address=address, symbol=symbol, role="stable")
                return AssetRole.STABLE
            if upper in self._volatile_symbols:
                log.debug("asset_role_from_symbol", address=address, symbol=symbol, role="volatile")
                return AssetRole.VOLATILE

        return AssetRole.OTHER

    def decimals_of(self, address: str, default: int = DEFAULT_DECIMALS) -> int:
        """Return configured decimals for a token, or ``default``."""
        token = self._tokens.get(address.lower())
        return token.decimals if token is not None else default

    def symbol_of(self, address: str) -> str:
        """Return the configured symbol, or a shortened address."""
        token = self._tokens.get(address.lower())
        if token is not None:
            return token.symbol
        return f"{address[:6]}...{address[-4:]}"
