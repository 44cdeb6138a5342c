"""Historical reference prices: paginated fetch behind a local cache."""

import asyncio

import structlog

from lptrack.core.pnl.price_index import merge_price_batches
from lptrack.data.models.operation import PricePoint
from lptrack.services.pricing.binance_client import BinanceKlinesClient
from lptrack.services.pricing.cache import PriceSeriesCache

log = structlog.get_logger(__name__)

RESOLUTION_SECONDS = {
    "1m": 60,
    "3m": 180,
    "5m": 300,
    "15m": 900,
    "30m": 1800,
    "1h": 3600,
    "4h": 14400,
    "1d": 86400,
}


class HistoricalPriceService:
    """Builds a complete price series for a window.

    Batches are fetched back to back from the window start, each starting
    one interval after the previous batch's last candle, until a short
    batch comes back or the window end is passed.

    Example:
        service = HistoricalPriceService(BinanceKlinesClient(), PriceSeriesCache(".cache/prices"))
        points = await service.get_price_series("BNBUSDT", start, end, "1m")
    """

    def __init__(
        self,
        client: BinanceKlinesClient,
        cache: PriceSeriesCache | None = None,
        batch_size: int = 1000,
        batch_delay_ms: int = 100,
    ) -> None:
        self.client = client
        self.cache = cache
        self.batch_size = batch_size
        self.batch_delay = batch_delay_ms / 1000.0

    async def get_price_series(
        self, symbol: str, start: int, end: int, resolution: str = "1m"
    ) -> list[PricePoint]:
        """Return samples covering ``[start, end]``, ascending.

        Raises:
            UpstreamFetchError: If any batch fails.
        """
        if self.cache is not None:
            cached = self.cache.get(symbol, resolution, start, end)
            if cached is not None:
                return cached

        points = await self._fetch_all(symbol, start, end, resolution)

        if self.cache is not None:
            self.cache.put(symbol, resolution, start, end, points)
        return points

    async def _fetch_all(
        self, symbol: str, start: int, end: int, resolution: str
    ) -> list[PricePoint]:
        step = RESOLUTION_SECONDS.get(resolution, 60)
        batches: list[list[PricePoint]] = []
        cursor = start

        log.info("price_series_fetch_started", symbol=symbol, start=start, end=end, resolution=resolution)

        while cursor < end:
            batch = await self.client.fetch_klines(
                symbol, cursor, end, resolution, limit=self.batch_size
            )
            if not batch:
                break

            batches.append(batch)
            cursor = batch[-1].timestamp + step
            log.debug("price_batch_fetched", symbol=symbol, points=len(batch), next_start=cursor)

            if len(batch) < self.batch_size:
                break
            await asyncio.sleep(self.batch_delay)

        points = merge_price_batches(batches)
        log.info("price_series_fetched", symbol=symbol, points=len(points))
        return points
