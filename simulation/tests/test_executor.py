"""Tests for the trade executor, runtime portfolio and bounded log."""

import random

import pytest

from models.decision import Decision, DecisionSource, FillStatus, TradeAction
from models.snapshot import Snapshot
from simulation.bounded import BoundedLog
from simulation.executor import TradeExecutor, clamp
from simulation.portfolio import TRADE_LOG_CAPACITY, Portfolio

FIXED_TS = "2024-01-01T00:00:00+00:00"


def _clock() -> str:
    return FIXED_TS


def _snapshot(price: float = 100.0, symbol: str = "AAPL") -> Snapshot:
    return Snapshot(symbol=symbol, price=price, volume=10.0, rsi=25.0, ts=FIXED_TS)


def _decision(action: TradeAction, size_pct: float, reason: str = "test") -> Decision:
    return Decision(action=action, size_pct=size_pct, reason=reason, source=DecisionSource.ORACLE)


@pytest.fixture
def portfolio() -> Portfolio:
    return Portfolio(capital=1000.0, opened_at=FIXED_TS)


@pytest.fixture
def executor(portfolio: Portfolio) -> TradeExecutor:
    return TradeExecutor(portfolio, max_position_pct=0.2, clock=_clock)


# =============================================================================
# 1. BOUNDED LOG
# =============================================================================


class TestBoundedLog:
    def test_evicts_oldest_first(self):
        log = BoundedLog(3)
        for i in range(5):
            log.append(i)
        assert log.to_list() == [2, 3, 4]
        assert log.evicted == 2
        assert log.latest() == 4

    def test_tail(self):
        log = BoundedLog(10, range(6))
        assert log.tail(2) == [4, 5]
        assert log.tail(0) == []
        assert log.tail(50) == [0, 1, 2, 3, 4, 5]

    def test_rejects_non_positive_capacity(self):
        with pytest.raises(ValueError):
            BoundedLog(0)


# =============================================================================
# 2. PORTFOLIO VALUE
# =============================================================================


class TestPortfolio:
    def test_initial_state(self, portfolio: Portfolio):
        assert portfolio.cash == 1000.0
        assert portfolio.positions == {}
        assert len(portfolio.equity_curve) == 1
        assert portfolio.equity_curve.latest().value == 1000.0

    def test_marks_positions_at_latest_price(self, portfolio: Portfolio):
        portfolio.cash = 500.0
        pos = portfolio.position("AAPL")
        pos.shares, pos.avg_cost = 5.0, 100.0
        assert portfolio.total_value({"AAPL": 120.0}) == 1100.0

    def test_falls_back_to_cost_basis_without_mark(self, portfolio: Portfolio):
        portfolio.cash = 500.0
        pos = portfolio.position("MSFT")
        pos.shares, pos.avg_cost = 2.0, 250.0
        assert portfolio.total_value({"AAPL": 1.0}) == 1000.0

    def test_snapshot_is_independent(self, portfolio: Portfolio):
        portfolio.position("AAPL").shares = 1.0
        state = portfolio.snapshot()
        state.positions["AAPL"].shares = 99.0
        assert portfolio.positions["AAPL"].shares == 1.0


# =============================================================================
# 3. EXECUTION
# =============================================================================


class TestTradeExecutor:
    def test_buy_then_sell_round_trip(self, executor: TradeExecutor, portfolio: Portfolio):
        snap = _snapshot(100.0)

        buy = executor.execute("AAPL", snap, _decision(TradeAction.BUY, 0.1, "test buy"), 1000.0)
        assert buy.status is FillStatus.FILLED
        assert buy.shares == pytest.approx(1.0)
        assert portfolio.cash == pytest.approx(900.0)
        assert portfolio.positions["AAPL"].shares > 0
        assert portfolio.positions["AAPL"].avg_cost == pytest.approx(100.0)

        value = portfolio.total_value({"AAPL": 100.0})
        sell = executor.execute("AAPL", snap, _decision(TradeAction.SELL, 0.1, "test sell"), value)

        assert len(portfolio.trades) == 2
        assert sell.status is FillStatus.FILLED
        assert sell.shares > 0
        assert portfolio.cash > 900.0
        assert portfolio.cash <= 1000.0 + 1e-9

    def test_size_above_limit_is_clamped(self, executor: TradeExecutor, portfolio: Portfolio):
        trade = executor.execute("AAPL", _snapshot(), _decision(TradeAction.BUY, 5.0), 1000.0)
        assert trade.size_pct == 0.2
        assert portfolio.cash == pytest.approx(800.0)

    def test_negative_size_is_skipped(self, executor: TradeExecutor, portfolio: Portfolio):
        trade = executor.execute("AAPL", _snapshot(), _decision(TradeAction.BUY, -0.5), 1000.0)
        assert trade.size_pct == 0.0
        assert trade.status is FillStatus.SKIPPED
        assert trade.shares == 0
        assert portfolio.cash == 1000.0

    def test_buy_limited_by_cash(self, executor: TradeExecutor, portfolio: Portfolio):
        portfolio.cash = 30.0
        trade = executor.execute("AAPL", _snapshot(10.0), _decision(TradeAction.BUY, 0.2), 1000.0)
        assert trade.status is FillStatus.FILLED
        assert trade.shares == pytest.approx(3.0)
        assert portfolio.cash == 0.0

    def test_buy_without_cash_is_skipped(self, executor: TradeExecutor, portfolio: Portfolio):
        portfolio.cash = 0.0
        trade = executor.execute("AAPL", _snapshot(), _decision(TradeAction.BUY, 0.1), 1000.0)
        assert trade.status is FillStatus.SKIPPED
        assert trade.shares == 0

    def test_sell_without_shares_is_skipped(self, executor: TradeExecutor, portfolio: Portfolio):
        trade = executor.execute("AAPL", _snapshot(), _decision(TradeAction.SELL, 0.1), 1000.0)
        assert trade.status is FillStatus.SKIPPED
        assert portfolio.positions["AAPL"].shares == 0
        assert portfolio.cash == 1000.0

    def test_sell_limited_by_holdings(self, executor: TradeExecutor, portfolio: Portfolio):
        pos = portfolio.position("AAPL")
        pos.shares, pos.avg_cost = 0.5, 90.0
        trade = executor.execute("AAPL", _snapshot(100.0), _decision(TradeAction.SELL, 0.2), 1000.0)
        assert trade.shares == pytest.approx(0.5)
        assert pos.shares == 0
        assert pos.avg_cost == 90.0
        assert portfolio.cash == pytest.approx(1050.0)

    def test_hold_is_recorded_as_skipped(self, executor: TradeExecutor, portfolio: Portfolio):
        trade = executor.execute("AAPL", _snapshot(), _decision(TradeAction.HOLD, 0.1), 1000.0)
        assert trade.status is FillStatus.SKIPPED
        assert trade.action is TradeAction.HOLD
        assert len(portfolio.trades) == 1
        assert "AAPL" in portfolio.positions

    def test_average_cost_is_volume_weighted(self, executor: TradeExecutor, portfolio: Portfolio):
        executor.execute("AAPL", _snapshot(100.0), _decision(TradeAction.BUY, 0.1), 1000.0)
        executor.execute("AAPL", _snapshot(50.0), _decision(TradeAction.BUY, 0.1), 1000.0)
        pos = portfolio.positions["AAPL"]
        assert pos.shares == pytest.approx(3.0)
        assert pos.avg_cost == pytest.approx(200.0 / 3.0)

    def test_record_carries_audit_fields(self, executor: TradeExecutor):
        trade = executor.execute(
            "AAPL", _snapshot(123.45), _decision(TradeAction.BUY, 0.1, "dip"), 1000.0
        )
        assert trade.ts == FIXED_TS
        assert trade.symbol == "AAPL"
        assert trade.price == 123.45
        assert trade.reason == "dip"
        assert trade.decision_source is DecisionSource.ORACLE
        assert trade.shares == round(trade.shares, 6)

    def test_non_positive_price_is_skipped(self, executor: TradeExecutor, portfolio: Portfolio):
        trade = executor.execute("AAPL", _snapshot(0.0), _decision(TradeAction.BUY, 0.1), 1000.0)
        assert trade.status is FillStatus.SKIPPED
        assert portfolio.cash == 1000.0

    def test_trade_log_is_capped(self, executor: TradeExecutor, portfolio: Portfolio):
        for i in range(TRADE_LOG_CAPACITY + 25):
            executor.execute("AAPL", _snapshot(), _decision(TradeAction.HOLD, 0, f"hold {i}"), 1000.0)
        assert len(portfolio.trades) == TRADE_LOG_CAPACITY
        assert portfolio.trades.to_list()[0].reason == "hold 25"
        assert portfolio.trades.latest().reason == f"hold {TRADE_LOG_CAPACITY + 24}"


class TestInvariants:
    def test_randomized_decisions_never_break_cash_or_shares(self):
        rng = random.Random(20240101)
        portfolio = Portfolio(capital=1000.0, opened_at=FIXED_TS)
        executor = TradeExecutor(portfolio, max_position_pct=0.2, clock=_clock)
        prices = {"AAPL": 100.0, "MSFT": 300.0}

        for _ in range(2000):
            symbol = rng.choice(list(prices))
            prices[symbol] = max(0.01, prices[symbol] * rng.uniform(0.9, 1.1))
            decision = _decision(
                rng.choice(list(TradeAction)), rng.uniform(-0.5, 1.5)
            )
            value = portfolio.total_value(prices)
            trade = executor.execute(symbol, _snapshot(prices[symbol], symbol), decision, value)

            assert 0.0 <= trade.size_pct <= 0.2
            assert portfolio.cash >= 0
            assert all(p.shares >= 0 for p in portfolio.positions.values())
            assert len(portfolio.trades) <= TRADE_LOG_CAPACITY


def test_clamp_handles_non_finite():
    assert clamp(float("nan"), 0.0, 0.2) == 0.0
    assert clamp(float("inf"), 0.0, 0.2) == 0.0
    assert clamp(0.15, 0.0, 0.2) == 0.15
