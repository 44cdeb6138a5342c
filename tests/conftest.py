"""Shared pytest fixtures for LPTrack tests.

This module provides fixtures for:
- Environment isolation for settings
- The default chain configuration and asset registry
- A frozen clock
- Test data factories

Usage:
    def test_something(registry, position_factory):
        position = position_factory(closed=True)
"""

import os
from collections.abc import Generator

import pytest

from lptrack.config.chains import ChainConfig, get_chain_config
from lptrack.config.settings import get_settings
from lptrack.core.pnl.assets import AssetRegistry
from tests.factories import PositionFactory, SwapRecordFactory

# =============================================================================
# Environment Configuration
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_settings() -> Generator[None, None, None]:
    """Isolate each test from the process environment and the settings cache."""
    original_env = os.environ.copy()
    get_settings.cache_clear()

    yield

    os.environ.clear()
    os.environ.update(original_env)
    get_settings.cache_clear()


# =============================================================================
# Domain Fixtures
# =============================================================================


@pytest.fixture
def bsc_chain() -> ChainConfig:
    """Default chain: USDT stable, BNB/WBNB volatile."""
    return get_chain_config("bsc")


@pytest.fixture
def registry(bsc_chain: ChainConfig) -> AssetRegistry:
    """Asset registry of the default chain."""
    return AssetRegistry(bsc_chain)


@pytest.fixture
def now() -> int:
    """Frozen 'now' used by normalization and orchestration tests."""
    return 1_700_100_000


# =============================================================================
# Factory Fixtures
# =============================================================================


@pytest.fixture
def swap_factory() -> type[SwapRecordFactory]:
    """Provide swap record factory."""
    return SwapRecordFactory


@pytest.fixture
def position_factory() -> type[PositionFactory]:
    """Provide position factory."""
    return PositionFactory
