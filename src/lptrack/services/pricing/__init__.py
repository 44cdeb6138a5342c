"""Reference price history service package."""

from lptrack.services.pricing.binance_client import BinanceKlinesClient
from lptrack.services.pricing.cache import PriceSeriesCache
from lptrack.services.pricing.history import HistoricalPriceService

__all__ = ["BinanceKlinesClient", "HistoricalPriceService", "PriceSeriesCache"]
