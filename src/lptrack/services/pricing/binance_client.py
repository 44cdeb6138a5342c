"""Binance klines client for reference price history."""

from decimal import Decimal, InvalidOperation
from typing import Any

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from lptrack.core.exceptions import UpstreamFetchError
from lptrack.data.models.operation import PricePoint

log = structlog.get_logger(__name__)

KLINES_PATH = "/api/v3/klines"
MAX_RETRIES = 3


def _is_retryable(error: BaseException) -> bool:
    if isinstance(error, httpx.TransportError):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return status == 429 or status >= 500
    return False


def parse_kline(kline: list[Any]) -> PricePoint:
    """Candle open time (ms) and close price to a PricePoint."""
    return PricePoint(timestamp=int(kline[0]) // 1000, price=Decimal(str(kline[4])))


class BinanceKlinesClient:
    """Fetches one batch of candles per call.

    Example:
        client = BinanceKlinesClient()
        points = await client.fetch_klines("BNBUSDT", start, end, "1m", limit=1000)
        await client.close()
    """

    def __init__(self, base_url: str = "https://api.binance.com", timeout: float = 30.0) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"Accept": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()

    async def fetch_klines(
        self,
        symbol: str,
        start: int,
        end: int,
        resolution: str = "1m",
        limit: int = 1000,
    ) -> list[PricePoint]:
        """Fetch up to ``limit`` candles starting at ``start``.

        Args:
            symbol: Pair symbol, e.g. ``BNBUSDT``.
            start: Window start (seconds).
            end: Window end (seconds).
            resolution: Kline interval.
            limit: Maximum candles in the batch.

        Returns:
            Close-price samples, ascending.

        Raises:
            UpstreamFetchError: If the request fails after retries or the
                payload is malformed.
        """
        try:
            rows = await self._fetch_batch(symbol, start, end, resolution, limit)
        except httpx.HTTPStatusError as e:
            raise UpstreamFetchError(
                service="price_history",
                message=str(e),
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamFetchError(service="price_history", message=str(e)) from e

        if not isinstance(rows, list):
            raise UpstreamFetchError(service="price_history", message="Unexpected klines payload")

        try:
            return [parse_kline(row) for row in rows]
        except (IndexError, TypeError, ValueError, InvalidOperation) as e:
            raise UpstreamFetchError(
                service="price_history", message=f"Malformed kline: {e}"
            ) from e

    @retry(
        stop=stop_after_attempt(MAX_RETRIES),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
        retry=retry_if_exception(_is_retryable),
        reraise=True,
    )
    async def _fetch_batch(
        self, symbol: str, start: int, end: int, resolution: str, limit: int
    ) -> Any:
        client = await self._get_client()
        params = {
            "symbol": symbol,
            "interval": resolution,
            "startTime": start * 1000,
            "endTime": end * 1000,
            "limit": limit,
        }
        try:
            response = await client.get(KLINES_PATH, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            log.warning(
                "klines_http_error",
                symbol=symbol,
                status=e.response.status_code,
            )
            raise
        except httpx.TimeoutException as e:
            log.warning("klines_timeout", symbol=symbol, error=str(e))
            raise

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamFetchError(
                service="price_history", message=f"Malformed JSON response: {e}"
            ) from e
