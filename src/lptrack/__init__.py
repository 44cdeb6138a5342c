"""LPTrack: liquidity-provision and swap PnL reconstruction."""

__version__ = "0.1.0"
