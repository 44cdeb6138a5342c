"""PnL aggregator: reduces a valued timeline into summary statistics."""

from collections.abc import Sequence
from decimal import Decimal

import structlog

from lptrack.core.exceptions import DecodeError
from lptrack.core.pnl.assets import AssetRegistry
from lptrack.core.pnl.liquidity import amounts_for_liquidity, is_in_range
from lptrack.core.pnl.normalizer import (
    PartialWithdrawalPolicy,
    is_position_closed,
    pair_amounts,
    read_position_amounts,
)
from lptrack.data.models.common import ZERO
from lptrack.data.models.operation import Operation, OperationKind, SkippedRecord
from lptrack.data.models.position import Position
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

log = structlog.get_logger(__name__)


def safe_ratio(numerator: Decimal, denominator: Decimal) -> Decimal | None:
    """Return ``numerator / denominator``, or None when the denominator is 0."""
    if denominator == 0:
        return None
    return numerator / denominator


def average_price(net_stable: Decimal, net_volatile: Decimal) -> Decimal | None:
    """Return ``|net_stable / net_volatile|``, or None when undefined."""
    ratio = safe_ratio(net_stable, net_volatile)
    return abs(ratio) if ratio is not None else None


class PnlAggregator:
    """Computes swap, position, combined and trend summaries.

    Args:
        registry: Asset roles of the tracked pair.
        policy: Partial-withdrawal policy, must match the normalizer's.

    Example:
        aggregator = PnlAggregator(registry)
        report = aggregator.aggregate(timeline, positions, current_price=Decimal("612.5"))
    """

    def __init__(
        self,
        registry: AssetRegistry,
        policy: PartialWithdrawalPolicy = PartialWithdrawalPolicy.CLOSED,
    ) -> None:
        self.registry = registry
        self.policy = policy

    def aggregate(
        self,
        timeline: Sequence[Operation],
        positions: Sequence[Position],
        current_price: Decimal,
        skipped: Sequence[SkippedRecord] = (),
    ) -> PnlReport:
        """Reduce a built timeline into a report.

        Args:
            timeline: Ordered, valued operations from the timeline builder.
            positions: The positions the timeline was built from.
            current_price: Reference price "now".
            skipped: Records the normalizer dropped.

        Returns:
            The PnlReport. Always produced, with zeroed sections when a
            source is empty.
        """
        swap_summary = self.summarize_swaps(timeline)
        position_summary = self.summarize_positions(positions, current_price)
        combined = self.combine(swap_summary, position_summary, current_price)
        trend = self.trend_statistics(timeline, combined.total_profit)

        chain = self.registry.chain
        report = PnlReport(
            swap_summary=swap_summary,
            position_summary=position_summary,
            combined=combined,
            trend=trend,
            breakdown=self.breakdown(timeline),
            timeline=list(timeline),
            skipped=list(skipped),
            chain=ChainInfo(
                name=chain.name,
                chain_id=chain.chain_id,
                stable_symbol=chain.stable_token.symbol,
                volatile_symbol=chain.volatile_symbol,
                native_symbol=chain.native_token.symbol,
            ),
        )

        log.info(
            "pnl_report_aggregated",
            operations=len(timeline),
            total_profit=str(combined.total_profit),
            roi=str(trend.roi) if trend.roi is not None else None,
        )
        return report

    def summarize_swaps(self, timeline: Sequence[Operation]) -> SwapSummary:
        """Net flows, average price and gas cost of swap operations."""
        swaps = [op for op in timeline if op.kind == OperationKind.SWAP]
        net_stable = sum((op.stable_change for op in swaps), ZERO)
        net_volatile = sum((op.volatile_change for op in swaps), ZERO)

        return SwapSummary(
            net_stable=net_stable,
            net_volatile=net_volatile,
            avg_price=average_price(net_stable, net_volatile),
            transaction_count=len(swaps),
            total_gas_cost=self.total_gas_cost(swaps),
        )

    def total_gas_cost(self, operations: Sequence[Operation]) -> Decimal:
        """Gas cost (native units) of each distinct transaction, summed.

        A transaction with several decoded swaps is only charged once.
        Operations without gas details contribute nothing.
        """
        seen: set[str] = set()
        total_wei = 0
        for op in operations:
            tx_hash = op.details.get("tx_hash")
            if not tx_hash or tx_hash in seen:
                continue
            seen.add(tx_hash)
            total_wei += int(op.details.get("gas_used") or 0) * int(
                op.details.get("gas_price") or 0
            )
        return Decimal(total_wei).scaleb(-self.registry.chain.native_token.decimals)

    def summarize_positions(
        self, positions: Sequence[Position], current_price: Decimal
    ) -> PositionSummary:
        """Realized flows of closed positions and the unrealized active view."""
        summary = PositionSummary()
        active = ActivePositionSummary()

        for position in positions:
            try:
                amounts = read_position_amounts(position)
            except DecodeError:
                # Already reported by the normalizer
                log.debug("position_excluded_from_summary", position_id=position.id)
                continue

            deposited = pair_amounts(self.registry, position, amounts.deposited0, amounts.deposited1)
            withdrawn = pair_amounts(self.registry, position, amounts.withdrawn0, amounts.withdrawn1)
            fees = pair_amounts(self.registry, position, amounts.fees0, amounts.fees1)

            if is_position_closed(amounts, self.policy):
                summary.closed_count += 1
                summary.fees_stable += fees[0]
                summary.fees_volatile += fees[1]
                summary.net_stable += withdrawn[0] + fees[0] - deposited[0]
                summary.net_volatile += withdrawn[1] + fees[1] - deposited[1]
                continue

            current = self._current_amounts(position, amounts.liquidity, deposited, withdrawn)
            active.count += 1
            if position.pool_tick is not None:
                if is_in_range(position.tick_lower, position.tick_upper, position.pool_tick):
                    active.in_range_count += 1
                else:
                    active.out_of_range_count += 1

            active.deposited_stable += deposited[0]
            active.deposited_volatile += deposited[1]
            active.current_stable += current[0]
            active.current_volatile += current[1]
            active.unrealized_stable += current[0] + withdrawn[0] + fees[0] - deposited[0]
            active.unrealized_volatile += current[1] + withdrawn[1] + fees[1] - deposited[1]

        active.current_value = active.current_stable + active.current_volatile * current_price
        active.unrealized_value = (
            active.unrealized_stable + active.unrealized_volatile * current_price
        )
        summary.avg_price = average_price(summary.net_stable, summary.net_volatile)
        summary.active = active
        return summary

    def _current_amounts(
        self,
        position: Position,
        liquidity: int,
        deposited: tuple[Decimal, Decimal],
        withdrawn: tuple[Decimal, Decimal],
    ) -> tuple[Decimal, Decimal]:
        """(stable, volatile) currently held by an active position."""
        if position.pool_tick is None:
            return (
                max(deposited[0] - withdrawn[0], ZERO),
                max(deposited[1] - withdrawn[1], ZERO),
            )

        raw0, raw1 = amounts_for_liquidity(
            liquidity, position.tick_lower, position.tick_upper, position.pool_tick
        )
        return pair_amounts(
            self.registry,
            position,
            raw0.scaleb(-position.token0.decimals),
            raw1.scaleb(-position.token1.decimals),
        )

    def combine(
        self,
        swaps: SwapSummary,
        positions: PositionSummary,
        current_price: Decimal,
    ) -> CombinedSummary:
        """Sum swap and closed-position flows and value them at ``current_price``."""
        net_stable = swaps.net_stable + positions.net_stable
        net_volatile = swaps.net_volatile + positions.net_volatile
        return CombinedSummary(
            net_stable=net_stable,
            net_volatile=net_volatile,
            avg_price=average_price(net_stable, net_volatile),
            current_price=current_price,
            total_profit=net_stable + net_volatile * current_price,
            total_gas_cost=swaps.total_gas_cost,
        )

    def trend_statistics(
        self, timeline: Sequence[Operation], current_market_value: Decimal = ZERO
    ) -> TrendStatistics:
        """Initial / final / extreme values, simplified drawdown and ROI.

        Args:
            timeline: Valued timeline.
            current_market_value: Combined net position valued now.
        """
        valued = [op for op in timeline if op.total_usd_value is not None]
        if not valued:
            return TrendStatistics(
                current_market_value=current_market_value,
                unrealized_delta=current_market_value,
            )

        values = [op.total_usd_value for op in valued]
        initial, final = values[0], values[-1]
        max_value, min_value = max(values), min(values)
        peak = valued[values.index(max_value)]
        trough = valued[values.index(min_value)]

        return TrendStatistics(
            initial_value=initial,
            final_value=final,
            max_value=max_value,
            min_value=min_value,
            total_pnl=final - initial,
            max_drawdown=max_value - min_value,
            roi=safe_ratio(final - initial, abs(initial)),
            peak=self._moment(peak, max_value),
            trough=self._moment(trough, min_value),
            current_market_value=current_market_value,
            unrealized_delta=current_market_value - final,
        )

    @staticmethod
    def _moment(op: Operation, value: Decimal) -> KeyMoment:
        return KeyMoment(
            timestamp=op.timestamp, kind=op.kind, description=op.description, value=value
        )

    @staticmethod
    def breakdown(timeline: Sequence[Operation]) -> list[KindBreakdown]:
        """Count and balance impact per operation kind."""
        rows = {kind: KindBreakdown(kind=kind) for kind in OperationKind}
        for op in timeline:
            row = rows[op.kind]
            row.count += 1
            row.stable_impact += op.stable_change
            row.volatile_impact += op.volatile_change
        return list(rows.values())
