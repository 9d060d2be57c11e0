"""Runtime portfolio: cash, positions, trade log, equity curve and metrics.

The engine owns one ``Portfolio`` for its whole lifetime. Only the trade
executor changes cash and positions; the metrics engine appends equity points
and replaces ``metrics``.
"""

from __future__ import annotations

from typing import Mapping

from models.decision import TradeRecord
from models.portfolio import EquityPoint, Metrics, PortfolioState, Position
from simulation.bounded import BoundedLog

TRADE_LOG_CAPACITY = 300
EQUITY_CURVE_CAPACITY = 500


class Portfolio:
    """Mutable portfolio state for one engine run."""

    def __init__(
        self,
        capital: float,
        opened_at: str,
        trade_capacity: int = TRADE_LOG_CAPACITY,
        curve_capacity: int = EQUITY_CURVE_CAPACITY,
    ) -> None:
        self.starting_capital = capital
        self.cash: float = capital
        self.positions: dict[str, Position] = {}
        self.trades: BoundedLog[TradeRecord] = BoundedLog(trade_capacity)
        self.equity_curve: BoundedLog[EquityPoint] = BoundedLog(curve_capacity)
        self.equity_curve.append(EquityPoint(ts=opened_at, value=capital))
        self.metrics = Metrics(portfolio_value=capital)

    def position(self, symbol: str) -> Position:
        """Return the position for *symbol*, creating an empty one on first use."""
        if symbol not in self.positions:
            self.positions[symbol] = Position()
        return self.positions[symbol]

    def total_value(self, marks: Mapping[str, float]) -> float:
        """Cash plus positions valued at *marks*, or at cost basis where no mark exists."""
        position_value = sum(
            position.shares * marks.get(symbol, position.avg_cost)
            for symbol, position in self.positions.items()
        )
        return round(self.cash + position_value, 2)

    def snapshot(self) -> PortfolioState:
        """Return an independent, serializable copy of the current state."""
        return PortfolioState(
            cash=self.cash,
            positions={s: p.model_copy() for s, p in self.positions.items()},
            trades=self.trades.to_list(),
            equity_curve=[point.model_copy() for point in self.equity_curve],
            metrics=self.metrics.model_copy(),
        )
