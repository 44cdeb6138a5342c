"""Tests for PriceSeriesCache."""

import json
import os
from decimal import Decimal
from pathlib import Path

from lptrack.data.models.operation import PricePoint
from lptrack.services.pricing.cache import PriceSeriesCache


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _points(*timestamps: int) -> list[PricePoint]:
    return [PricePoint(timestamp=t, price=Decimal(600 + i)) for i, t in enumerate(timestamps)]


class TestPriceSeriesCache:
    """Tests for coverage, freshness and persistence."""

    def test_miss_when_empty(self, tmp_path: Path) -> None:
        cache = PriceSeriesCache(tmp_path)

        assert cache.get("BNBUSDT", "1m", 0, 100) is None

    def test_hit_filters_to_window(self, tmp_path: Path) -> None:
        """
        Given: A cached series for [0, 300]
        When: A sub-window [60, 180] is requested
        Then: Only the samples inside it are returned
        """
        clock = FakeClock()
        cache = PriceSeriesCache(tmp_path, clock=clock)
        cache.put("BNBUSDT", "1m", 0, 300, _points(0, 60, 120, 180, 240, 300))

        points = cache.get("BNBUSDT", "1m", 60, 180)

        assert [p.timestamp for p in points] == [60, 120, 180]

    def test_miss_when_window_not_covered(self, tmp_path: Path) -> None:
        cache = PriceSeriesCache(tmp_path, clock=FakeClock())
        cache.put("BNBUSDT", "1m", 100, 200, _points(100, 200))

        assert cache.get("BNBUSDT", "1m", 50, 200) is None
        assert cache.get("BNBUSDT", "1m", 100, 250) is None

    def test_resolution_is_part_of_key(self, tmp_path: Path) -> None:
        cache = PriceSeriesCache(tmp_path, clock=FakeClock())
        cache.put("BNBUSDT", "1m", 0, 60, _points(0, 60))

        assert cache.get("BNBUSDT", "5m", 0, 60) is None

    def test_expired_entry_is_miss(self, tmp_path: Path) -> None:
        """
        Given: An entry cached more than ttl seconds ago
        When: It is read
        Then: It is a miss
        """
        clock = FakeClock()
        cache = PriceSeriesCache(tmp_path, ttl_seconds=3600, clock=clock)
        cache.put("BNBUSDT", "1m", 0, 60, _points(0, 60))

        clock.now += 3601

        assert cache.get("BNBUSDT", "1m", 0, 60) is None

    def test_persisted_across_instances(self, tmp_path: Path) -> None:
        """
        Given: A series stored by one cache instance
        When: A new instance reads the same directory
        Then: The series is loaded from disk with exact prices
        """
        clock = FakeClock()
        PriceSeriesCache(tmp_path, clock=clock).put(
            "BNBUSDT", "1m", 0, 60, [PricePoint(timestamp=0, price=Decimal("612.345678"))]
        )

        points = PriceSeriesCache(tmp_path, clock=clock).get("BNBUSDT", "1m", 0, 60)

        assert points == [PricePoint(timestamp=0, price=Decimal("612.345678"))]

    def test_file_format(self, tmp_path: Path) -> None:
        cache = PriceSeriesCache(tmp_path, clock=FakeClock(1_700_000_000.5))
        cache.put("BNBUSDT", "1m", 0, 60, _points(0))

        data = json.loads((tmp_path / "BNBUSDT_1m.json").read_text())

        assert data["symbol"] == "BNBUSDT"
        assert data["interval"] == "1m"
        assert data["startTime"] == 0
        assert data["endTime"] == 60
        assert data["data"] == [{"timestamp": 0, "price": "600"}]
        assert data["cachedAt"] == 1_700_000_000_500

    def test_stale_file_ignored(self, tmp_path: Path) -> None:
        clock = FakeClock()
        PriceSeriesCache(tmp_path, ttl_seconds=60, clock=clock).put(
            "BNBUSDT", "1m", 0, 60, _points(0, 60)
        )
        clock.now += 120

        assert PriceSeriesCache(tmp_path, ttl_seconds=60, clock=clock).get("BNBUSDT", "1m", 0, 60) is None

    def test_corrupt_file_is_miss(self, tmp_path: Path) -> None:
        (tmp_path / "BNBUSDT_1m.json").write_text("{not json")

        assert PriceSeriesCache(tmp_path).get("BNBUSDT", "1m", 0, 60) is None

    def test_empty_series_not_cached(self, tmp_path: Path) -> None:
        cache = PriceSeriesCache(tmp_path)
        cache.put("BNBUSDT", "1m", 0, 60, [])

        assert list(tmp_path.iterdir()) == []

    def test_memory_only(self) -> None:
        cache = PriceSeriesCache(None, clock=FakeClock())
        cache.put("BNBUSDT", "1m", 0, 60, _points(0, 60))

        assert len(cache.get("BNBUSDT", "1m", 0, 60)) == 2
        assert cache.clean_expired() == 0


class TestCleanExpired:
    def test_removes_old_files(self, tmp_path: Path) -> None:
        """
        Given: One file older than the cleanup age and one recent file
        When: clean_expired runs
        Then: Only the old file is removed
        """
        clock = FakeClock()
        old = tmp_path / "OLD_1m.json"
        recent = tmp_path / "NEW_1m.json"
        old.write_text("{}")
        recent.write_text("{}")
        os.utime(old, (clock.now - 8 * 86400, clock.now - 8 * 86400))
        os.utime(recent, (clock.now - 60, clock.now - 60))

        removed = PriceSeriesCache(tmp_path, clock=clock).clean_expired()

        assert removed == 1
        assert not old.exists()
        assert recent.exists()
