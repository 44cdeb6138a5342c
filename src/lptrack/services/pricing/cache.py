"""Time-bounded price series cache.

A JSON file per ``{symbol}_{resolution}`` on disk, fronted by an in-memory
TTLCache. Both use the same injectable clock.
"""

import json
import time
from collections.abc import Callable
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import structlog
from cachetools import TTLCache

from lptrack.data.models.operation import PricePoint

log = structlog.get_logger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60
DEFAULT_CLEANUP_AGE_SECONDS = 7 * 24 * 60 * 60


class CachedSeries:
    """A cached series and the window it was fetched for."""

    def __init__(
        self,
        symbol: str,
        resolution: str,
        start_time: int,
        end_time: int,
        points: list[PricePoint],
        cached_at: float,
    ) -> None:
        self.symbol = symbol
        self.resolution = resolution
        self.start_time = start_time
        self.end_time = end_time
        self.points = points
        self.cached_at = cached_at

    def covers(self, start: int, end: int) -> bool:
        return self.start_time <= start and self.end_time >= end

    def window(self, start: int, end: int) -> list[PricePoint]:
        return [p for p in self.points if start <= p.timestamp <= end]

    def to_json(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "interval": self.resolution,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "data": [{"timestamp": p.timestamp, "price": str(p.price)} for p in self.points],
            "cachedAt": int(self.cached_at * 1000),
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "CachedSeries":
        return cls(
            symbol=data["symbol"],
            resolution=data["interval"],
            start_time=int(data["startTime"]),
            end_time=int(data["endTime"]),
            points=[
                PricePoint(timestamp=int(p["timestamp"]), price=Decimal(str(p["price"])))
                for p in data["data"]
            ],
            cached_at=data["cachedAt"] / 1000,
        )


class PriceSeriesCache:
    """Cache of fetched price series keyed by symbol and resolution.

    Args:
        cache_dir: Directory for the JSON files; None keeps it in memory only.
        ttl_seconds: Freshness window of an entry.
        clock: Wall-clock time source in seconds.
        max_entries: In-memory capacity.

    Example:
        cache = PriceSeriesCache(".cache/prices")
        points = cache.get("BNBUSDT", "1m", start, end)
        if points is None:
            points = await fetch(...)
            cache.put("BNBUSDT", "1m", start, end, points)
    """

    def __init__(
        self,
        cache_dir: str | Path | None = None,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
        max_entries: int = 32,
    ) -> None:
        self.cache_dir = Path(cache_dir) if cache_dir is not None else None
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._memory: TTLCache = TTLCache(maxsize=max_entries, ttl=ttl_seconds, timer=clock)

    def get(
        self, symbol: str, resolution: str, start: int, end: int
    ) -> list[PricePoint] | None:
        """Return the cached points inside ``[start, end]``.

        Returns:
            The points, or None when no fresh entry covers the window.
        """
        key = self._key(symbol, resolution)
        entry = self._memory.get(key)
        if entry is None:
            entry = self._load(key)
            if entry is not None:
                self._memory[key] = entry

        if entry is None or not self._fresh(entry) or not entry.covers(start, end):
            log.debug("price_cache_miss", symbol=symbol, resolution=resolution)
            return None

        points = entry.window(start, end)
        log.info(
            "price_cache_hit",
            symbol=symbol,
            resolution=resolution,
            cached=len(entry.points),
            filtered=len(points),
        )
        return points

    def put(
        self,
        symbol: str,
        resolution: str,
        start: int,
        end: int,
        points: list[PricePoint],
    ) -> None:
        """Store a freshly fetched series (empty series are not cached)."""
        if not points:
            return

        key = self._key(symbol, resolution)
        entry = CachedSeries(symbol, resolution, start, end, list(points), self._clock())
        self._memory[key] = entry

        if self.cache_dir is not None:
            try:
                self.cache_dir.mkdir(parents=True, exist_ok=True)
                self._path(key).write_text(json.dumps(entry.to_json()), encoding="utf-8")
            except OSError as e:
                log.warning("price_cache_write_failed", path=str(self._path(key)), error=str(e))
                return
        log.debug("price_cache_stored", symbol=symbol, resolution=resolution, points=len(points))

    def clean_expired(self, max_age_seconds: int = DEFAULT_CLEANUP_AGE_SECONDS) -> int:
        """Delete cache files older than ``max_age_seconds``.

        Returns:
            Number of files removed.
        """
        if self.cache_dir is None or not self.cache_dir.is_dir():
            return 0

        removed = 0
        now = self._clock()
        for path in self.cache_dir.glob("*.json"):
            try:
                if now - path.stat().st_mtime > max_age_seconds:
                    path.unlink()
                    removed += 1
                    log.info("price_cache_file_removed", path=str(path))
            except OSError as e:
                log.warning("price_cache_cleanup_failed", path=str(path), error=str(e))
        return removed

    def _load(self, key: str) -> CachedSeries | None:
        if self.cache_dir is None:
            return None
        path = self._path(key)
        if not path.is_file():
            return None

        try:
            entry = CachedSeries.from_json(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError, KeyError, TypeError, InvalidOperation) as e:
            log.warning("price_cache_file_unreadable", path=str(path), error=str(e))
            return None

        if not self._fresh(entry):
            log.info("price_cache_stale", path=str(path))
            return None
        return entry

    def _fresh(self, entry: CachedSeries) -> bool:
        return self._clock() - entry.cached_at <= self.ttl_seconds

    def _path(self, key: str) -> Path:
        assert self.cache_dir is not None
        return self.cache_dir / f"{key}.json"

    @staticmethod
    def _key(symbol: str, resolution: str) -> str:
        return f"{symbol}_{resolution}"
