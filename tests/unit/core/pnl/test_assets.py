"""Tests for AssetRegistry."""

from lptrack.config.chains import AssetRole, get_chain_config
from lptrack.core.pnl.assets import AssetRegistry
from tests.factories import NATIVE, OTHER, USDT, WBNB


class TestRoleResolution:
    """Address-first role lookup."""

    def test_configured_addresses(self, registry: AssetRegistry) -> None:
        assert registry.role_of(USDT) == AssetRole.STABLE
        assert registry.role_of(WBNB) == AssetRole.VOLATILE
        assert registry.role_of(NATIVE) == AssetRole.VOLATILE

    def test_lookup_ignores_case(self, registry: AssetRegistry) -> None:
        assert registry.role_of(USDT.upper().replace("0X", "0x")) == AssetRole.STABLE

    def test_address_wins_over_symbol(self, registry: AssetRegistry) -> None:
        """
        Given: A configured stable address reported with a misleading symbol
        When: Its role is resolved
        Then: The configured role is used
        """
        assert registry.role_of(USDT, symbol="WBNB") == AssetRole.STABLE

    def test_symbol_fallback(self, registry: AssetRegistry) -> None:
        """Unknown addresses are classified by symbol when one is given."""
        assert registry.role_of(OTHER, symbol="usdc") == AssetRole.STABLE
        assert registry.role_of(OTHER, symbol="WBNB") == AssetRole.VOLATILE
        assert registry.role_of(OTHER, symbol="CAKE") == AssetRole.OTHER

    def test_unknown_without_symbol(self, registry: AssetRegistry) -> None:
        assert registry.role_of(OTHER) == AssetRole.OTHER


class TestTokenMetadata:
    def test_decimals(self) -> None:
        registry = AssetRegistry(get_chain_config("ethereum"))

        assert registry.decimals_of("0xdAC17F958D2ee523a2206206994597C13D831ec7") == 6
        assert registry.decimals_of(OTHER) == 18

    def test_symbols(self, registry: AssetRegistry) -> None:
        assert registry.stable_symbol == "USDT"
        assert registry.volatile_symbol == "BNB"
        assert registry.symbol_of(WBNB) == "WBNB"
        assert registry.symbol_of(OTHER) == "0x1111...1111"
