"""Simulated portfolio, trade execution, metrics and the tick scheduler."""

from simulation.bounded import BoundedLog
from simulation.engine import TradingEngine
from simulation.executor import TradeExecutor
from simulation.metrics import MetricsEngine, sharpe_ratio, win_rate
from simulation.observers import ListenerRegistry
from simulation.persistence import StateWriter
from simulation.portfolio import Portfolio

__all__ = [
    "BoundedLog",
    "TradingEngine",
    "TradeExecutor",
    "MetricsEngine",
    "sharpe_ratio",
    "win_rate",
    "ListenerRegistry",
    "StateWriter",
    "Portfolio",
]
