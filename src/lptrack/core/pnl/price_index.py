"""Point-in-time price lookups over a sampled reference price series."""

from bisect import bisect_right
from collections.abc import Iterable, Sequence
from decimal import Decimal
from typing import Final

import structlog

from lptrack.core.exceptions import PriceUnavailableError
from lptrack.data.models.operation import PricePoint

log = structlog.get_logger(__name__)

DEFAULT_FALLBACK_PRICE: Final[Decimal] = Decimal("600")


class PriceIndex:
    """Piecewise-linear price function over a sorted sample series.

    Lookups before the first sample or after the last one are clamped to the
    boundary price; there is no extrapolation. An empty index answers every
    lookup with ``fallback_price`` unless ``strict`` is set.

    Args:
        points: Samples sorted ascending by timestamp.
        fallback_price: Price returned when the series is empty.
        strict: Raise PriceUnavailableError instead of falling back.

    Raises:
        ValueError: If ``points`` is not sorted by timestamp.

    Example:
        index = PriceIndex([PricePoint(timestamp=0, price=1), PricePoint(timestamp=10, price=2)])
        index.lookup(5)  # Decimal("1.5")
    """

    def __init__(
        self,
        points: Sequence[PricePoint],
        fallback_price: Decimal = DEFAULT_FALLBACK_PRICE,
        strict: bool = False,
    ) -> None:
        self._timestamps = [p.timestamp for p in points]
        self._prices = [p.price for p in points]
        self.fallback_price = fallback_price
        self.strict = strict

        for i in range(1, len(self._timestamps)):
            if self._timestamps[i] < self._timestamps[i - 1]:
                raise ValueError(
                    f"Price series not sorted at index {i}: "
                    f"{self._timestamps[i - 1]} > {self._timestamps[i]}"
                )

    def __len__(self) -> int:
        return len(self._timestamps)

    @property
    def earliest_timestamp(self) -> int | None:
        return self._timestamps[0] if self._timestamps else None

    @property
    def latest_timestamp(self) -> int | None:
        return self._timestamps[-1] if self._timestamps else None

    @property
    def latest_price(self) -> Decimal:
        """Most recent sample price (fallback when empty)."""
        if not self._prices:
            return self._fallback(None)
        return self._prices[-1]

    def lookup(self, timestamp: int) -> Decimal:
        """Return the reference price at ``timestamp``.

        Args:
            timestamp: Unix time in seconds.

        Returns:
            The interpolated (or clamped) price.

        Raises:
            PriceUnavailableError: If the index is empty and strict.
        """
        if not self._timestamps:
            return self._fallback(timestamp)

        if timestamp <= self._timestamps[0]:
            return self._prices[0]
        if timestamp >= self._timestamps[-1]:
            return self._prices[-1]

        # ts[i - 1] <= timestamp < ts[i]
        i = bisect_right(self._timestamps, timestamp)
        t1, t2 = self._timestamps[i - 1], self._timestamps[i]
        p1, p2 = self._prices[i - 1], self._prices[i]

        if t1 == t2 or timestamp == t1:
            return p1

        return p1 + (p2 - p1) * (timestamp - t1) / (t2 - t1)

    def _fallback(self, timestamp: int | None) -> Decimal:
        if self.strict:
            raise PriceUnavailableError(
                f"No price samples available (timestamp={timestamp})"
            )
        log.warning(
            "price_index_empty_fallback",
            timestamp=timestamp,
            fallback_price=str(self.fallback_price),
        )
        return self.fallback_price


def merge_price_batches(batches: Iterable[Iterable[PricePoint]]) -> list[PricePoint]:
    """Merge paginated price batches into one sorted series.

    Duplicate timestamps keep the sample from the latest batch.
    """
    by_timestamp: dict[int, PricePoint] = {}
    for batch in batches:
        for point in batch:
            by_timestamp[point.timestamp] = point
    return [by_timestamp[t] for t in sorted(by_timestamp)]
