"""Tests for PriceIndex lookups."""

from decimal import Decimal

import pytest

from lptrack.core.exceptions import PriceUnavailableError
from lptrack.core.pnl.price_index import PriceIndex, merge_price_batches
from lptrack.data.models.operation import PricePoint


def _series(*samples: tuple[int, str]) -> list[PricePoint]:
    return [PricePoint(timestamp=t, price=Decimal(p)) for t, p in samples]


@pytest.fixture
def index() -> PriceIndex:
    return PriceIndex(_series((100, "600"), (160, "612"), (220, "606.5")))


class TestPriceIndexClamp:
    """Out-of-range lookups return boundary prices."""

    @pytest.mark.parametrize("timestamp", [0, 99, 100])
    def test_clamp_low(self, index: PriceIndex, timestamp: int) -> None:
        """
        Given: A series starting at t=100
        When: Looking up at or before t=100
        Then: The first sample's price is returned
        """
        assert index.lookup(timestamp) == Decimal("600")

    @pytest.mark.parametrize("timestamp", [220, 221, 10_000_000])
    def test_clamp_high(self, index: PriceIndex, timestamp: int) -> None:
        """
        Given: A series ending at t=220
        When: Looking up at or after t=220
        Then: The last sample's price is returned
        """
        assert index.lookup(timestamp) == Decimal("606.5")


class TestPriceIndexInterpolation:
    """In-range lookups."""

    @pytest.mark.parametrize(
        ("timestamp", "expected"),
        [(100, "600"), (160, "612"), (220, "606.5")],
    )
    def test_exact_sample_has_no_drift(
        self, index: PriceIndex, timestamp: int, expected: str
    ) -> None:
        """
        Given: A lookup at a sample's own timestamp
        When: lookup() is called
        Then: The sample price is returned exactly
        """
        assert index.lookup(timestamp) == Decimal(expected)

    def test_linear_interpolation(self, index: PriceIndex) -> None:
        """
        Given: Samples (100, 600) and (160, 612)
        When: Looking up t=130
        Then: Returns the midpoint 606
        """
        assert index.lookup(130) == Decimal("606")

    def test_interpolation_descending_segment(self, index: PriceIndex) -> None:
        """
        Given: Samples (160, 612) and (220, 606.5)
        When: Looking up t=190
        Then: Returns 609.25
        """
        assert index.lookup(190) == Decimal("609.25")

    def test_duplicate_timestamps_return_a_sample_price(self) -> None:
        """
        Given: Two samples with the same timestamp
        When: Looking up that timestamp and a later in-range time
        Then: No division by zero occurs
        """
        index = PriceIndex(_series((0, "1"), (10, "2"), (10, "3"), (20, "4")))

        assert index.lookup(10) in (Decimal("2"), Decimal("3"))
        assert index.lookup(15) == Decimal("3.5")

    def test_single_sample_series(self) -> None:
        """A single sample answers every lookup."""
        index = PriceIndex(_series((50, "42")))

        assert index.lookup(0) == Decimal("42")
        assert index.lookup(50) == Decimal("42")
        assert index.lookup(99) == Decimal("42")


class TestPriceIndexEmpty:
    """Empty series degrade to the fallback price."""

    def test_empty_returns_default_fallback(self) -> None:
        """
        Given: An empty series
        When: lookup() is called
        Then: The documented fallback constant (600) is returned
        """
        assert PriceIndex([]).lookup(123) == Decimal("600")

    def test_empty_returns_configured_fallback(self) -> None:
        """Fallback price is configurable."""
        assert PriceIndex([], fallback_price=Decimal("2500")).lookup(1) == Decimal("2500")

    def test_strict_mode_raises(self) -> None:
        """
        Given: An empty strict index
        When: lookup() is called
        Then: PriceUnavailableError is raised
        """
        with pytest.raises(PriceUnavailableError):
            PriceIndex([], strict=True).lookup(1)

    def test_latest_price_of_empty_index(self) -> None:
        """latest_price falls back as well."""
        index = PriceIndex([])

        assert index.latest_price == Decimal("600")
        assert index.earliest_timestamp is None
        assert len(index) == 0


class TestPriceIndexValidation:
    """Series must be sorted."""

    def test_unsorted_series_rejected(self) -> None:
        """
        Given: Samples out of timestamp order
        When: Building the index
        Then: ValueError is raised
        """
        with pytest.raises(ValueError, match="not sorted"):
            PriceIndex(_series((10, "1"), (5, "2")))

    def test_boundary_properties(self, index: PriceIndex) -> None:
        """Boundary accessors expose the covered window."""
        assert index.earliest_timestamp == 100
        assert index.latest_timestamp == 220
        assert index.latest_price == Decimal("606.5")
        assert len(index) == 3


class TestMergePriceBatches:
    """Merging paginated batches."""

    def test_merge_sorts_and_deduplicates(self) -> None:
        """
        Given: Overlapping, unordered batches
        When: Merged
        Then: Result is sorted and the later batch wins on duplicates
        """
        first = _series((120, "2"), (60, "1"))
        second = _series((120, "2.5"), (180, "3"))

        merged = merge_price_batches([first, second])

        assert [p.timestamp for p in merged] == [60, 120, 180]
        assert merged[1].price == Decimal("2.5")

    def test_merge_empty(self) -> None:
        """No batches, no points."""
        assert merge_price_batches([]) == []
