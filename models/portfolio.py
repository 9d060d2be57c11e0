"""Portfolio state models."""

from pydantic import BaseModel

from models.decision import TradeRecord


class Position(BaseModel):
    """Held shares and volume-weighted average cost for one symbol.

    A position that has been sold down to zero keeps its last cost basis.
    """

    shares: float = 0.0
    avg_cost: float = 0.0


class EquityPoint(BaseModel):
    ts: str
    value: float


class Metrics(BaseModel):
    """Derived performance figures, recomputed after every tick."""

    pnl: float = 0.0
    return_pct: float = 0.0
    win_rate: float = 0.0
    sharpe: float = 0.0
    portfolio_value: float = 0.0


class PortfolioState(BaseModel):
    """Serializable copy of the runtime portfolio at a point in time."""

    cash: float
    positions: dict[str, Position]
    trades: list[TradeRecord]
    equity_curve: list[EquityPoint]
    metrics: Metrics
