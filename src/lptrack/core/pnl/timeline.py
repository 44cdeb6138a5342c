"""Timeline builder: ordering, running balances and valuation."""

from collections.abc import Sequence

import structlog

from lptrack.core.pnl.price_index import PriceIndex
from lptrack.data.models.common import ZERO
from lptrack.data.models.operation import Operation

log = structlog.get_logger(__name__)


def price_window(operations: Sequence[Operation], now: int) -> tuple[int, int] | None:
    """Time range the price series must cover for a timeline.

    Returns:
        ``(min timestamp, max(max timestamp, now))``, or None when there
        are no operations.
    """
    if not operations:
        return None
    timestamps = [op.timestamp for op in operations]
    return min(timestamps), max(max(timestamps), now)


class TimelineBuilder:
    """Orders operations and derives their cumulative and valuation fields.

    The input is never mutated; ``build`` returns annotated copies. All
    derived fields are recomputed from scratch on every call, so the result
    only depends on the set of operations and the price index.
    """

    def build(
        self, operations: Sequence[Operation], price_index: PriceIndex
    ) -> list[Operation]:
        """Build the ordered, fully annotated timeline.

        Args:
            operations: Unordered operations.
            price_index: Reference price lookups.

        Returns:
            Operations sorted by timestamp (ties keep input order), each
            carrying running balances, reference price and portfolio value.
        """
        ordered = sorted(operations, key=lambda op: op.timestamp)

        cumulative_stable = ZERO
        cumulative_volatile = ZERO
        fees_stable = ZERO
        fees_volatile = ZERO
        fees_usd = ZERO
        timeline: list[Operation] = []

        for op in ordered:
            cumulative_stable += op.stable_change
            cumulative_volatile += op.volatile_change
            price = price_index.lookup(op.timestamp)

            fees_stable += op.fee_stable
            fees_volatile += op.fee_volatile
            fees_usd += op.fee_stable + op.fee_volatile * price

            timeline.append(
                op.model_copy(
                    update={
                        "cumulative_stable": cumulative_stable,
                        "cumulative_volatile": cumulative_volatile,
                        "reference_price": price,
                        "total_usd_value": cumulative_stable + cumulative_volatile * price,
                        "cumulative_fees_stable": fees_stable,
                        "cumulative_fees_volatile": fees_volatile,
                        "cumulative_fees_usd": fees_usd,
                    }
                )
            )

        log.debug(
            "timeline_built",
            operations=len(timeline),
            final_stable=str(cumulative_stable),
            final_volatile=str(cumulative_volatile),
        )
        return timeline
