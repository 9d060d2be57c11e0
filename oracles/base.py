"""Abstract base class for decision oracles.

Every oracle (rule table, LLM-backed, ...) implements this protocol so the
trading engine can invoke them interchangeably.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from models.config import OracleConfig
from models.decision import Decision
from models.snapshot import Snapshot


class DecisionOracle(ABC):
    """Common interface for pluggable decision sources.

    Lifecycle:
        1. ``__init__``: receive the oracle config and the engine's size limit.
        2. ``decide``: called once per symbol per tick.
    """

    def __init__(self, config: OracleConfig, max_position_pct: float) -> None:
        self.config = config
        self.max_position_pct = max_position_pct

    @abstractmethod
    async def decide(self, snapshot: Snapshot, portfolio_value: float) -> Decision:
        """Return a decision for *snapshot* given the current portfolio value.

        Implementations must not raise for service failures; they degrade to
        the rule table instead (see ``oracles.rules.fallback_decision``).
        """
