"""Pydantic models for data validation and serialization."""

from lptrack.data.models.operation import (
    Operation,
    OperationKind,
    PricePoint,
    SkippedRecord,
)
from lptrack.data.models.position import Position, TokenInfo
from lptrack.data.models.report import (
    ActivePositionSummary,
    ChainInfo,
    CombinedSummary,
    KeyMoment,
    KindBreakdown,
    PnlReport,
    PositionSummary,
    SwapSummary,
    TrendStatistics,
)
from lptrack.data.models.swap import ExplorerTransaction, SwapRecord

__all__ = [
    "ActivePositionSummary",
    "ChainInfo",
    "CombinedSummary",
    "ExplorerTransaction",
    "KeyMoment",
    "KindBreakdown",
    "Operation",
    "OperationKind",
    "PnlReport",
    "Position",
    "PositionSummary",
    "PricePoint",
    "SkippedRecord",
    "SwapRecord",
    "SwapSummary",
    "TokenInfo",
    "TrendStatistics",
]
