"""Tests for BinanceKlinesClient with respx mocking."""

from decimal import Decimal

import pytest
import respx
from httpx import Response

from lptrack.core.exceptions import UpstreamFetchError
from lptrack.services.pricing.binance_client import BinanceKlinesClient, parse_kline

BASE_URL = "https://api.binance.example"
KLINES_URL = f"{BASE_URL}/api/v3/klines"


def _kline(open_time_ms: int, close: str) -> list:
    return [open_time_ms, "600.0", "601.0", "599.0", close, "12.5", open_time_ms + 59_999]


class TestParseKline:
    def test_open_time_and_close_price(self) -> None:
        point = parse_kline(_kline(1_700_000_040_000, "612.34"))

        assert point.timestamp == 1_700_000_040
        assert point.price == Decimal("612.34")


class TestFetchKlines:
    """Tests for single-batch kline requests."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_fetch_klines(self) -> None:
        """
        Given: The API returns two candles
        When: fetch_klines is called
        Then: Close prices are returned and times are sent in milliseconds
        """
        route = respx.get(KLINES_URL).mock(
            return_value=Response(
                200, json=[_kline(1_700_000_000_000, "600.5"), _kline(1_700_000_060_000, "601")]
            )
        )
        client = BinanceKlinesClient(base_url=BASE_URL)

        try:
            points = await client.fetch_klines("BNBUSDT", 1_700_000_000, 1_700_000_100, "1m", limit=500)
        finally:
            await client.close()

        assert [p.timestamp for p in points] == [1_700_000_000, 1_700_000_060]
        assert points[0].price == Decimal("600.5")
        params = route.calls[0].request.url.params
        assert params["symbol"] == "BNBUSDT"
        assert params["interval"] == "1m"
        assert params["startTime"] == "1700000000000"
        assert params["endTime"] == "1700000100000"
        assert params["limit"] == "500"

    @pytest.mark.asyncio
    @respx.mock
    async def test_client_error_not_retried(self) -> None:
        """
        Given: The API rejects the symbol with 400
        When: fetch_klines is called
        Then: UpstreamFetchError is raised after a single attempt
        """
        route = respx.get(KLINES_URL).mock(
            return_value=Response(400, json={"code": -1121, "msg": "Invalid symbol."})
        )
        client = BinanceKlinesClient(base_url=BASE_URL)

        with pytest.raises(UpstreamFetchError) as exc_info:
            await client.fetch_klines("NOPE", 0, 60)

        assert exc_info.value.status_code == 400
        assert exc_info.value.service == "price_history"
        assert route.call_count == 1

    @pytest.mark.asyncio
    @respx.mock
    async def test_malformed_kline(self) -> None:
        respx.get(KLINES_URL).mock(return_value=Response(200, json=[[1_700_000_000_000]]))
        client = BinanceKlinesClient(base_url=BASE_URL)

        with pytest.raises(UpstreamFetchError):
            await client.fetch_klines("BNBUSDT", 0, 60)

    @pytest.mark.asyncio
    @respx.mock
    async def test_unexpected_payload(self) -> None:
        respx.get(KLINES_URL).mock(return_value=Response(200, json={"klines": []}))
        client = BinanceKlinesClient(base_url=BASE_URL)

        with pytest.raises(UpstreamFetchError):
            await client.fetch_klines("BNBUSDT", 0, 60)
