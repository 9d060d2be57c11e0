"""Snapshot provider: market data with a synthetic random-walk fallback.

``acquire`` never raises for data problems. When the market data source fails
the provider returns a synthetic snapshot derived from the previous one and
reports the triggering error as ``SnapshotResult.warning`` so the engine can
aggregate it into ``last_error``.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Optional, Protocol

import aiohttp

from market_data.indicators import NEUTRAL_RSI, relative_strength_index
from market_data.yahoo import MarketDataError
from models.snapshot import PriceHistory, Snapshot, SnapshotResult, SnapshotSource
from models.timestamps import Clock, utc_now

logger = logging.getLogger(__name__)

DEFAULT_SYNTHETIC_PRICE = 100.0
SYNTHETIC_DRIFT = 0.01  # total width of the uniform multiplicative perturbation

# Failures recovered by falling back to a synthetic snapshot.
_RECOVERABLE_ERRORS = (MarketDataError, aiohttp.ClientError, asyncio.TimeoutError, OSError)


class MarketDataClient(Protocol):
    async def fetch_history(self, symbol: str) -> PriceHistory:
        ...

    async def close(self) -> None:
        ...


class SnapshotProvider:
    """Builds one snapshot per symbol per tick."""

    def __init__(
        self,
        client: MarketDataClient,
        rsi_period: int,
        history_points: int,
        clock: Clock = utc_now,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._client = client
        self._rsi_period = rsi_period
        self._history_points = history_points
        self._clock = clock
        self._rng = rng or random.Random()

    async def acquire(self, symbol: str, previous: Snapshot | None = None) -> SnapshotResult:
        """Return an authoritative snapshot, or a synthetic one plus the reason."""
        try:
            history = await self._client.fetch_history(symbol)
            snapshot = self._from_history(symbol, history)
        except _RECOVERABLE_ERRORS as exc:
            message = str(exc) or type(exc).__name__
            logger.warning("Market data unavailable for %s (%s); using synthetic snapshot.", symbol, message)
            return SnapshotResult(snapshot=self.synthesize(symbol, previous), warning=message)
        return SnapshotResult(snapshot=snapshot)

    def synthesize(self, symbol: str, previous: Snapshot | None = None) -> Snapshot:
        """Random-walk the previous price by up to +/-0.5%; carry volume and RSI forward."""
        last_price = previous.price if previous is not None else DEFAULT_SYNTHETIC_PRICE
        drift = 1 + (self._rng.random() - 0.5) * SYNTHETIC_DRIFT
        return Snapshot(
            symbol=symbol,
            price=round(last_price * drift, 2),
            volume=previous.volume if previous is not None else 0.0,
            rsi=previous.rsi if previous is not None else NEUTRAL_RSI,
            ts=self._clock(),
            source=SnapshotSource.SYNTHETIC,
        )

    async def close(self) -> None:
        await self._client.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _from_history(self, symbol: str, history: PriceHistory) -> Snapshot:
        closes = history.closes
        if len(closes) < self._rsi_period + 1:
            raise MarketDataError(
                f"Not enough price history for {symbol}: "
                f"{len(closes)} closes, need {self._rsi_period + 1}"
            )

        window = closes[-self._history_points:]
        return Snapshot(
            symbol=symbol,
            price=closes[-1],
            volume=history.volumes[-1] if history.volumes else 0.0,
            rsi=relative_strength_index(window, self._rsi_period),
            ts=self._clock(),
            source=SnapshotSource.MARKET,
        )
