"""Full engine state document, shared by subscribers and the persistence sink."""

from __future__ import annotations

from pydantic import BaseModel

from models.config import EngineConfig
from models.portfolio import PortfolioState
from models.snapshot import Snapshot


class EngineState(BaseModel):
    """Everything a subscriber or the state file needs after a tick.

    ``updated_at`` is the completion time of the last tick (or engine
    creation), so two reads without an intervening tick are equal.
    """

    updated_at: str
    config: EngineConfig
    snapshots: dict[str, Snapshot]
    portfolio: PortfolioState
    last_error: str | None = None
    tick_count: int = 0
    skipped_ticks: int = 0
