"""Deterministic RSI rule table, used directly or as the LLM fallback."""

from __future__ import annotations

from models.decision import Decision, DecisionSource, TradeAction
from models.snapshot import Snapshot
from oracles.base import DecisionOracle
from oracles.registry import register

OVERSOLD_BELOW = 35.0
OVERBOUGHT_ABOVE = 70.0
RULE_SIZE_PCT = 0.07


def fallback_decision(snapshot: Snapshot) -> Decision:
    """Map the snapshot's RSI to BUY (oversold), SELL (overbought) or HOLD."""
    if snapshot.rsi < OVERSOLD_BELOW:
        return Decision(
            action=TradeAction.BUY,
            size_pct=RULE_SIZE_PCT,
            reason="oversold",
            source=DecisionSource.HEURISTIC,
        )
    if snapshot.rsi > OVERBOUGHT_ABOVE:
        return Decision(
            action=TradeAction.SELL,
            size_pct=RULE_SIZE_PCT,
            reason="overbought",
            source=DecisionSource.HEURISTIC,
        )
    return Decision(
        action=TradeAction.HOLD,
        size_pct=0.0,
        reason="neutral momentum",
        source=DecisionSource.HEURISTIC,
    )


@register("rules")
@register("mock")
class RuleBasedOracle(DecisionOracle):
    """Applies the rule table with no network call."""

    async def decide(self, snapshot: Snapshot, portfolio_value: float) -> Decision:
        return fallback_decision(snapshot)
