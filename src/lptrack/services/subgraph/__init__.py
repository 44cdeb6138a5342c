"""Uniswap v3 subgraph integration."""

from lptrack.services.subgraph.client import SubgraphClient

__all__ = ["SubgraphClient"]
