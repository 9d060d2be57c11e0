"""Async trading engine: the tick scheduler.

Lifecycle:
    1. Build the portfolio, snapshot provider, oracle, executor and writer.
    2. ``start()``:
        a. Run one tick immediately and wait for it.
        b. Arm a timer task that fires every ``poll_interval_seconds``.
    3. Each tick, for every configured symbol in order:
        - Acquire a snapshot (synthetic fallback on data failure).
        - Ask the oracle for a decision.
        - Execute it against the portfolio.
       Then recompute metrics, persist the state file and notify listeners.
    4. ``stop()`` disarms the timer; a tick already running finishes.

Ticks are serialized by a reentrancy guard: a timer fire that arrives while a
tick is still running is dropped and counted in ``skipped_ticks``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Optional

from market_data.provider import SnapshotProvider
from market_data.yahoo import YahooChartClient
from models.config import EngineConfig
from models.decision import TradeRecord
from models.snapshot import Snapshot
from models.state import EngineState
from models.timestamps import Clock, utc_now
from oracles.base import DecisionOracle
from oracles.registry import create_oracle
from simulation.executor import TradeExecutor
from simulation.metrics import MetricsEngine
from simulation.observers import Listener, ListenerRegistry, Unsubscribe
from simulation.persistence import StateWriter
from simulation.portfolio import Portfolio

logger = logging.getLogger(__name__)

ERROR_SEPARATOR = " | "


class TradingEngine:
    """Drives the decide-and-execute loop across ticks and symbols."""

    def __init__(
        self,
        config: EngineConfig,
        provider: Optional[SnapshotProvider] = None,
        oracle: Optional[DecisionOracle] = None,
        writer: Optional[StateWriter] = None,
        clock: Clock = utc_now,
    ) -> None:
        self._config = config
        self._clock = clock
        self._provider = provider or SnapshotProvider(
            YahooChartClient(config.market_data),
            rsi_period=config.rsi_period,
            history_points=config.history_points,
            clock=clock,
        )
        self._oracle = oracle or create_oracle(config.oracle, config.max_position_pct)
        self._writer = writer or StateWriter(config.output_path)

        self._portfolio = Portfolio(config.capital, opened_at=clock())
        self._executor = TradeExecutor(self._portfolio, config.max_position_pct, clock=clock)
        self._metrics = MetricsEngine(clock=clock)
        self._listeners = ListenerRegistry()

        self._snapshots: dict[str, Snapshot] = {}
        self._last_error: str | None = None
        self._updated_at = clock()
        self._tick_count = 0
        self._skipped_ticks = 0

        self._tick_lock = asyncio.Lock()
        self._timer: Optional[asyncio.Task[None]] = None
        self._inflight: set[asyncio.Task[Any]] = set()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Run one tick now, then schedule a tick every poll interval."""
        if self._timer is not None:
            raise RuntimeError("Engine is already running.")

        logger.info(
            "Starting engine: %d symbol(s) %s, every %.1fs, oracle '%s'.",
            len(self._config.symbols),
            ", ".join(self._config.symbols),
            self._config.poll_interval_seconds,
            self._config.oracle.provider,
        )
        await self.tick()
        self._timer = asyncio.create_task(self._timer_loop(), name="trading-engine-timer")

    def stop(self) -> None:
        """Disarm the timer. In-flight ticks are left to complete."""
        if self._timer is None:
            return
        self._timer.cancel()
        self._timer = None
        logger.info("Engine stopped after %d tick(s).", self._tick_count)

    @property
    def running(self) -> bool:
        return self._timer is not None

    async def wait_idle(self) -> None:
        """Wait for timer-launched ticks and pending listener deliveries."""
        if self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)
        await self._listeners.drain()

    async def aclose(self) -> None:
        """Stop scheduling and release the market data session."""
        self.stop()
        await self._provider.close()

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    async def tick(self) -> bool:
        """Run one full cycle. Returns ``False`` if dropped because a tick is in progress."""
        if self._tick_lock.locked():
            self._skipped_ticks += 1
            logger.warning(
                "Previous tick still running; dropping this one (%d dropped so far).",
                self._skipped_ticks,
            )
            return False

        async with self._tick_lock:
            t0 = time.monotonic()
            await self._run_tick()
            logger.info(
                "Tick %d complete in %.2fs: value %.2f, cash %.2f%s",
                self._tick_count,
                time.monotonic() - t0,
                self._portfolio.metrics.portfolio_value,
                self._portfolio.cash,
                f", errors: {self._last_error}" if self._last_error else "",
            )
        return True

    async def _run_tick(self) -> None:
        errors: list[str] = []

        for symbol in self._config.symbols:
            result = await self._provider.acquire(symbol, self._snapshots.get(symbol))
            if result.warning:
                errors.append(f"{symbol}: {result.warning}")

            snapshot = result.snapshot
            self._snapshots[symbol] = snapshot

            portfolio_value = self._portfolio.total_value(self._marks())
            decision = await self._oracle.decide(snapshot, portfolio_value)
            self._executor.execute(symbol, snapshot, decision, portfolio_value)

        self._last_error = ERROR_SEPARATOR.join(errors) if errors else None
        self._metrics.update(self._portfolio, self._marks())
        self._tick_count += 1
        self._updated_at = self._clock()

        state = self.get_state()
        self._persist(state)
        self._listeners.broadcast(state)

    async def _timer_loop(self) -> None:
        interval = self._config.poll_interval_seconds
        while True:
            await asyncio.sleep(interval)
            task = asyncio.create_task(self.tick())
            self._inflight.add(task)
            task.add_done_callback(self._on_tick_done)

    def _on_tick_done(self, task: asyncio.Task[Any]) -> None:
        self._inflight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Scheduled tick failed: %s", exc, exc_info=exc)

    def _persist(self, state: EngineState) -> None:
        try:
            self._writer.write(state)
        except OSError:
            logger.exception("Failed to persist engine state to %s", self._writer.path)

    # ------------------------------------------------------------------
    # Subscriber boundary
    # ------------------------------------------------------------------

    def get_state(self) -> EngineState:
        """Return a copy of the full engine state; no side effects."""
        return EngineState(
            updated_at=self._updated_at,
            config=self._config,
            snapshots=dict(self._snapshots),
            portfolio=self._portfolio.snapshot(),
            last_error=self._last_error,
            tick_count=self._tick_count,
            skipped_ticks=self._skipped_ticks,
        )

    def on_update(self, listener: Listener) -> Unsubscribe:
        """Call *listener* with the full state after every tick; returns an unsubscribe handle."""
        return self._listeners.add(listener)

    def recent_trades(self, limit: int = 50) -> list[TradeRecord]:
        """Most recent trade records, oldest first."""
        return self._portfolio.trades.tail(limit)

    def portfolio_summary(self) -> dict[str, Any]:
        """Cash, positions and metrics, without the trade log or equity curve."""
        state = self._portfolio.snapshot()
        return {
            "cash": state.cash,
            "positions": {s: p.model_dump() for s, p in state.positions.items()},
            "metrics": state.metrics.model_dump(),
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _marks(self) -> dict[str, float]:
        return {symbol: snap.price for symbol, snap in self._snapshots.items()}

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def portfolio(self) -> Portfolio:
        return self._portfolio

    @property
    def last_error(self) -> str | None:
        return self._last_error
