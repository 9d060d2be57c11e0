"""Oracle output and execution models: Decision, TradeRecord."""

from enum import Enum

from pydantic import BaseModel, Field


class TradeAction(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class DecisionSource(str, Enum):
    """Which path produced a decision: the external oracle or the local rule table."""

    ORACLE = "oracle"
    HEURISTIC = "heuristic"


class FillStatus(str, Enum):
    FILLED = "FILLED"
    SKIPPED = "SKIPPED"


class Decision(BaseModel):
    """Buy/sell/hold with a requested size as a fraction of portfolio value.

    Consumed immediately by the executor; the resulting TradeRecord carries
    the audit trail.
    """

    action: TradeAction
    size_pct: float = 0.0  # Unclamped; the executor enforces max_position_pct
    reason: str = "No reason supplied"
    source: DecisionSource = DecisionSource.HEURISTIC


class TradeRecord(BaseModel):
    """Single execution attempt. SKIPPED attempts are kept for audit."""

    model_config = {"frozen": True}

    ts: str
    symbol: str
    action: TradeAction
    status: FillStatus
    size_pct: float = Field(description="Size fraction after clamping to [0, max_position_pct].")
    shares: float
    price: float
    reason: str
    decision_source: DecisionSource = DecisionSource.HEURISTIC
