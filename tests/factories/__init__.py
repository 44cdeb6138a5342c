"""Test data factories for LPTrack models."""

from tests.factories.position import PositionFactory, TokenInfoFactory
from tests.factories.swap import SwapRecordFactory
from tests.factories.tokens import NATIVE, OTHER, USDT, WBNB, wei

__all__ = [
    "NATIVE",
    "OTHER",
    "USDT",
    "WBNB",
    "PositionFactory",
    "SwapRecordFactory",
    "TokenInfoFactory",
    "wei",
]
