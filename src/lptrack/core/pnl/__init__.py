"""PnL reconstruction engine.

Leaf to root: price index, event normalizer, timeline builder, aggregator.
The orchestrator (``lptrack.core.pnl.orchestrator``) wires them to the
upstream clients.
"""

from lptrack.core.pnl.aggregator import PnlAggregator, average_price, safe_ratio
from lptrack.core.pnl.assets import AssetRegistry
from lptrack.core.pnl.normalizer import (
    EventNormalizer,
    NormalizationResult,
    PartialWithdrawalPolicy,
)
from lptrack.core.pnl.price_index import PriceIndex, merge_price_batches
from lptrack.core.pnl.timeline import TimelineBuilder, price_window

__all__ = [
    "AssetRegistry",
    "EventNormalizer",
    "NormalizationResult",
    "PartialWithdrawalPolicy",
    "PnlAggregator",
    "PriceIndex",
    "TimelineBuilder",
    "average_price",
    "merge_price_batches",
    "price_window",
    "safe_ratio",
]
