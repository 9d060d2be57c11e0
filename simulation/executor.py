"""In-process trade executor: applies decisions to the simulated portfolio.

The executor never raises for insufficient cash or shares. Every call appends
exactly one ``TradeRecord``; constraint violations are recorded as
``FillStatus.SKIPPED`` so the audit trail shows what was asked and refused.
"""

from __future__ import annotations

import logging
import math

from models.decision import Decision, DecisionSource, FillStatus, TradeAction, TradeRecord
from models.snapshot import Snapshot
from models.timestamps import Clock, utc_now
from simulation.portfolio import Portfolio

logger = logging.getLogger(__name__)

SHARE_DECIMALS = 6


def clamp(value: float, low: float, high: float) -> float:
    """Clamp *value* into [low, high]; non-finite input clamps to *low*."""
    if not math.isfinite(value):
        return low
    return max(low, min(high, value))


class TradeExecutor:
    """Sizes and fills decisions against one ``Portfolio``.

    Instantiate one executor per engine. Sizes are clamped to
    ``[0, max_position_pct]`` of portfolio value before any cash or share
    check.
    """

    def __init__(
        self,
        portfolio: Portfolio,
        max_position_pct: float,
        clock: Clock = utc_now,
    ) -> None:
        self._portfolio = portfolio
        self._max_position_pct = max_position_pct
        self._clock = clock

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def execute(
        self,
        symbol: str,
        snapshot: Snapshot,
        decision: Decision,
        portfolio_value: float,
    ) -> TradeRecord:
        """Fill *decision* for *symbol* at the snapshot price and log the result.

        ``portfolio_value`` is the marked-to-market total used to turn the
        size fraction into a notional amount.
        """
        size_pct = clamp(float(decision.size_pct or 0.0), 0.0, self._max_position_pct)
        price = snapshot.price
        notional = portfolio_value * size_pct
        position = self._portfolio.position(symbol)

        shares = 0.0
        status = FillStatus.SKIPPED

        if price > 0 and notional > 0:
            if decision.action is TradeAction.BUY:
                shares = self._buy(symbol, notional, price)
            elif decision.action is TradeAction.SELL:
                shares = self._sell(symbol, notional, price)
            if shares > 0:
                status = FillStatus.FILLED

        trade = TradeRecord(
            ts=self._clock(),
            symbol=symbol,
            action=decision.action,
            status=status,
            size_pct=size_pct,
            shares=round(shares, SHARE_DECIMALS),
            price=price,
            reason=decision.reason or "No reason supplied",
            decision_source=decision.source or DecisionSource.HEURISTIC,
        )
        self._portfolio.trades.append(trade)

        logger.info(
            "%s %s %s: %.6f shares @ %.2f (size %.4f, cash %.2f, held %.6f)",
            status.value,
            decision.action.value,
            symbol,
            shares,
            price,
            size_pct,
            self._portfolio.cash,
            position.shares,
        )
        return trade

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _buy(self, symbol: str, notional: float, price: float) -> float:
        spend = min(notional, self._portfolio.cash)
        if spend <= 0:
            return 0.0

        position = self._portfolio.position(symbol)
        shares = spend / price
        current_cost = position.avg_cost * position.shares
        position.shares += shares
        position.avg_cost = (current_cost + spend) / position.shares
        self._portfolio.cash -= spend
        return shares

    def _sell(self, symbol: str, notional: float, price: float) -> float:
        position = self._portfolio.position(symbol)
        shares = min(position.shares, notional / price)
        if shares <= 0:
            return 0.0

        position.shares -= shares
        self._portfolio.cash += shares * price
        return shares
