"""PnL report models."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from lptrack.data.models.common import ZERO, Amount
from lptrack.data.models.operation import Operation, OperationKind, SkippedRecord


class SwapSummary(BaseModel):
    """Net flows restricted to swap operations."""

    net_stable: Amount = ZERO
    net_volatile: Amount = ZERO
    avg_price: Amount | None = Field(
        default=None, description="|net_stable / net_volatile|, None when undefined"
    )
    transaction_count: int = 0
    total_gas_cost: Amount = Field(
        default=ZERO, description="Gas spent, in native token units"
    )


class ActivePositionSummary(BaseModel):
    """Unrealized view of positions that are still open."""

    count: int = 0
    in_range_count: int = 0
    out_of_range_count: int = 0
    deposited_stable: Amount = ZERO
    deposited_volatile: Amount = ZERO
    current_stable: Amount = ZERO
    current_volatile: Amount = ZERO
    unrealized_stable: Amount = ZERO
    unrealized_volatile: Amount = ZERO
    current_value: Amount = ZERO
    unrealized_value: Amount = ZERO


class PositionSummary(BaseModel):
    """Realized flows of closed positions, plus the active-position view."""

    net_stable: Amount = ZERO
    net_volatile: Amount = ZERO
    avg_price: Amount | None = None
    fees_stable: Amount = ZERO
    fees_volatile: Amount = ZERO
    closed_count: int = 0
    active: ActivePositionSummary = Field(default_factory=ActivePositionSummary)


class CombinedSummary(BaseModel):
    """Swap and closed-position flows taken together."""

    net_stable: Amount = ZERO
    net_volatile: Amount = ZERO
    avg_price: Amount | None = None
    current_price: Amount = ZERO
    total_profit: Amount = Field(
        default=ZERO, description="net_stable + net_volatile * current_price"
    )
    total_gas_cost: Amount = ZERO


class KeyMoment(BaseModel):
    """The operation at which the timeline value peaked or bottomed."""

    timestamp: int
    kind: OperationKind
    description: str
    value: Amount


class TrendStatistics(BaseModel):
    """Statistics over the valued timeline.

    ``max_drawdown`` is ``max_value - min_value`` over the whole sequence,
    not a peak-to-trough-after-peak drawdown.
    """

    initial_value: Amount = ZERO
    final_value: Amount = ZERO
    max_value: Amount = ZERO
    min_value: Amount = ZERO
    total_pnl: Amount = ZERO
    max_drawdown: Amount = ZERO
    roi: Amount | None = None
    peak: KeyMoment | None = None
    trough: KeyMoment | None = None
    current_market_value: Amount = ZERO
    unrealized_delta: Amount = Field(
        default=ZERO, description="current_market_value - final_value"
    )


class KindBreakdown(BaseModel):
    """Per-kind operation count and balance impact."""

    kind: OperationKind
    count: int = 0
    stable_impact: Amount = ZERO
    volatile_impact: Amount = ZERO


class ChainInfo(BaseModel):
    """Chain and tracked pair the report is denominated in."""

    name: str
    chain_id: int
    stable_symbol: str
    volatile_symbol: str
    native_symbol: str


class PnlReport(BaseModel):
    """Complete reconstruction result for one wallet."""

    swap_summary: SwapSummary = Field(default_factory=SwapSummary)
    position_summary: PositionSummary = Field(default_factory=PositionSummary)
    combined: CombinedSummary = Field(default_factory=CombinedSummary)
    trend: TrendStatistics = Field(default_factory=TrendStatistics)
    breakdown: list[KindBreakdown] = Field(default_factory=list)
    timeline: list[Operation] = Field(default_factory=list)
    skipped: list[SkippedRecord] = Field(default_factory=list)
    chain: ChainInfo | None = None
    generated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
