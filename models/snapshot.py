"""Market snapshot models."""

from enum import Enum

from pydantic import BaseModel


class SnapshotSource(str, Enum):
    """Provenance of a snapshot: observed market data or a local substitute."""

    MARKET = "market"
    SYNTHETIC = "synthetic-fallback"


class PriceHistory(BaseModel):
    """Ordered (oldest first) closes and volumes returned by the market data source."""

    closes: list[float]
    volumes: list[float]


class Snapshot(BaseModel):
    """One tick's observed or synthesized market data point for a symbol.

    Produced once per symbol per tick and superseded, never merged, by the
    next tick's snapshot.
    """

    model_config = {"frozen": True}

    symbol: str
    price: float
    volume: float
    rsi: float
    ts: str  # ISO8601, UTC
    source: SnapshotSource = SnapshotSource.MARKET

    @property
    def is_synthetic(self) -> bool:
        return self.source is SnapshotSource.SYNTHETIC


class SnapshotResult(BaseModel):
    """Snapshot plus the warning that forced a synthetic fallback, if any."""

    snapshot: Snapshot
    warning: str | None = None
