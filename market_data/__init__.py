"""Market data acquisition: RSI indicator, Yahoo chart client, snapshot provider."""

from market_data.indicators import NEUTRAL_RSI, relative_strength_index
from market_data.provider import SnapshotProvider
from market_data.yahoo import MarketDataError, YahooChartClient, parse_chart_payload

__all__ = [
    "NEUTRAL_RSI",
    "relative_strength_index",
    "SnapshotProvider",
    "MarketDataError",
    "YahooChartClient",
    "parse_chart_payload",
]
