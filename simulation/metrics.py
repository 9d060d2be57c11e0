"""Performance metrics derived from the portfolio after every tick."""

from __future__ import annotations

import math
import statistics
from typing import Iterable, Mapping

from models.decision import FillStatus, TradeAction
from models.portfolio import EquityPoint, Metrics
from models.timestamps import Clock, utc_now
from simulation.portfolio import Portfolio


class MetricsEngine:
    """Appends an equity point and recomputes ``Portfolio.metrics``.

    Uses only portfolio and mark-price state; no I/O, cannot fail.
    """

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock

    def update(self, portfolio: Portfolio, marks: Mapping[str, float]) -> Metrics:
        value = portfolio.total_value(marks)
        portfolio.equity_curve.append(EquityPoint(ts=self._clock(), value=value))

        capital = portfolio.starting_capital
        pnl = value - capital
        metrics = Metrics(
            pnl=round(pnl, 2),
            return_pct=round(pnl / capital * 100, 2),
            win_rate=round(win_rate(portfolio), 2),
            sharpe=round(sharpe_ratio(p.value for p in portfolio.equity_curve), 2),
            portfolio_value=value,
        )
        portfolio.metrics = metrics
        return metrics


def win_rate(portfolio: Portfolio) -> float:
    """Percentage of filled sells priced above the position's current average cost.

    Compares against the cost basis as it stands now, not as it stood when the
    sell happened. Ties count as losses.
    """
    sells = [
        t for t in portfolio.trades
        if t.action is TradeAction.SELL and t.status is FillStatus.FILLED
    ]
    if not sells:
        return 0.0

    wins = 0
    for trade in sells:
        position = portfolio.positions.get(trade.symbol)
        basis = position.avg_cost if position is not None else trade.price
        if trade.price > basis:
            wins += 1
    return wins / len(sells) * 100


def sharpe_ratio(values: Iterable[float]) -> float:
    """Mean over population stdev of period returns, scaled by sqrt(sample count).

    No annualisation: the curve's own sampling frequency is the period. Zero
    dispersion (or fewer than one return) yields 0.
    """
    series = list(values)
    returns = []
    for prev, cur in zip(series, series[1:]):
        if prev == 0:
            continue
        r = (cur - prev) / prev
        if math.isfinite(r):
            returns.append(r)
    if not returns:
        return 0.0

    mean = statistics.fmean(returns)
    std = statistics.pstdev(returns)
    if std == 0:
        return 0.0
    return mean / std * math.sqrt(len(returns))
