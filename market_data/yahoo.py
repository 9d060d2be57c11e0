"""Async client for the Yahoo Finance chart endpoint."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Any, Optional
from urllib.parse import quote

import aiohttp

from models.config import MarketDataConfig
from models.snapshot import PriceHistory

logger = logging.getLogger(__name__)

_HEADERS = {
    "Accept": "application/json",
    "User-Agent": "Mozilla/5.0 (compatible; momentum-desk/0.1)",
}


class MarketDataError(Exception):
    """Raised for non-success responses and payloads without a usable quote series."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)


class YahooChartClient:
    """Fetches intraday close/volume series per symbol.

    The ``aiohttp`` session is created lazily and reused across ticks; call
    ``close`` when the engine shuts down.
    """

    def __init__(self, config: Optional[MarketDataConfig] = None):
        self._config = config or MarketDataConfig()
        self._timeout = aiohttp.ClientTimeout(total=self._config.timeout_seconds)
        self._session: Optional[aiohttp.ClientSession] = None
        self._lock = asyncio.Lock()

    async def _get_session(self) -> aiohttp.ClientSession:
        async with self._lock:
            if self._session is None or self._session.closed:
                self._session = aiohttp.ClientSession(timeout=self._timeout, headers=_HEADERS)
            return self._session

    async def close(self) -> None:
        async with self._lock:
            if self._session and not self._session.closed:
                await self._session.close()
                self._session = None

    async def fetch_history(self, symbol: str) -> PriceHistory:
        """Return the recent close/volume series for *symbol*.

        Raises ``MarketDataError`` for HTTP errors or unusable payloads; network
        failures surface as ``aiohttp.ClientError`` or ``asyncio.TimeoutError``.
        """
        session = await self._get_session()
        url = f"{self._config.base_url.rstrip('/')}/{quote(symbol, safe='')}"
        params = {"range": self._config.range, "interval": self._config.interval}

        async with session.get(url, params=params) as resp:
            if resp.status >= 400:
                raise MarketDataError(
                    f"Yahoo request failed for {symbol}: {resp.status}", status=resp.status
                )
            try:
                payload = await resp.json(content_type=None)
            except ValueError as exc:
                # HTML rate-limit pages and captive portals arrive with a 200 status
                raise MarketDataError(
                    f"Malformed chart payload for {symbol}: {exc}", status=resp.status
                ) from exc

        history = parse_chart_payload(payload)
        logger.debug("Fetched %d closes for %s", len(history.closes), symbol)
        return history


def parse_chart_payload(payload: Any) -> PriceHistory:
    """Extract finite closes and volumes from a chart API response.

    Bars with a missing (null) or non-numeric value are dropped.
    """
    try:
        result = payload["chart"]["result"][0]
        quote_block = result["indicators"]["quote"][0]
    except (KeyError, IndexError, TypeError) as exc:
        raise MarketDataError(f"Malformed chart payload: missing {exc}") from exc
    if not isinstance(quote_block, dict):
        raise MarketDataError("Malformed chart payload: quote block is not an object")

    return PriceHistory(
        closes=_finite_series(quote_block.get("close")),
        volumes=_finite_series(quote_block.get("volume")),
    )


def _finite_series(values: Any) -> list[float]:
    series: list[float] = []
    for value in values or []:
        if value is None or isinstance(value, bool):
            continue
        try:
            number = float(value)
        except (TypeError, ValueError):
            continue
        if math.isfinite(number):
            series.append(number)
    return series
