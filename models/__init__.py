"""Data models for the simulated trading desk.

The market data, oracle and simulation packages all import from models.
"""

from models.config import EngineConfig, MarketDataConfig, OracleConfig
from models.decision import Decision, DecisionSource, FillStatus, TradeAction, TradeRecord
from models.portfolio import EquityPoint, Metrics, PortfolioState, Position
from models.snapshot import PriceHistory, Snapshot, SnapshotResult, SnapshotSource
from models.state import EngineState
from models.timestamps import Clock, utc_now

__all__ = [
    # config
    "EngineConfig",
    "MarketDataConfig",
    "OracleConfig",
    # decision
    "Decision",
    "DecisionSource",
    "FillStatus",
    "TradeAction",
    "TradeRecord",
    # portfolio
    "EquityPoint",
    "Metrics",
    "PortfolioState",
    "Position",
    # snapshot
    "PriceHistory",
    "Snapshot",
    "SnapshotResult",
    "SnapshotSource",
    # state
    "EngineState",
    # timestamps
    "Clock",
    "utc_now",
]
