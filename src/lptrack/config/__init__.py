"""Configuration module for LPTrack.

Usage:
    from lptrack.config import get_settings

    settings = get_settings()  # Cached singleton
    print(settings.chain)
"""

from lptrack.config.chains import CHAINS, AssetRole, ChainConfig, TrackedToken, get_chain_config
from lptrack.config.settings import Settings, get_settings

__all__ = [
    "CHAINS",
    "AssetRole",
    "ChainConfig",
    "Settings",
    "TrackedToken",
    "get_chain_config",
    "get_settings",
]
