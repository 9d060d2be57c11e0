"""Tests for the RSI indicator calculator."""

import random

import pytest

from market_data.indicators import NEUTRAL_RSI, relative_strength_index


class TestInsufficientHistory:
    """Histories with no full window of deltas return the neutral value."""

    def test_three_closes_with_lookback_three(self):
        assert relative_strength_index([10, 11, 12], 3) == 50

    def test_short_history_with_default_period(self):
        assert relative_strength_index([10, 11, 12], 14) == 50

    def test_empty_history(self):
        assert relative_strength_index([], 14) == NEUTRAL_RSI

    @pytest.mark.parametrize("length", range(0, 15))
    def test_any_length_up_to_period(self, length: int):
        closes = [100 + i for i in range(length)]
        assert relative_strength_index(closes, 14) == 50


class TestWilderSmoothing:
    def test_only_gains_is_maximal(self):
        assert relative_strength_index([1, 2, 3, 4, 5, 6], 3) == 100

    def test_flat_prices_have_no_loss(self):
        assert relative_strength_index([5, 5, 5, 5, 5], 3) == 100

    def test_only_losses_is_zero(self):
        assert relative_strength_index([6, 5, 4, 3, 2, 1], 3) == 0

    def test_symmetric_moves_are_neutral(self):
        assert relative_strength_index([1, 2, 1], 2) == 50

    def test_smoothing_after_seed_window(self):
        # seed: avg_gain 1.0, avg_loss 0.5; then +2 -> 1.5 / 0.25 -> RS 6
        assert relative_strength_index([1, 3, 2, 4], 2) == pytest.approx(85.71)

    def test_result_rounded_to_two_decimals(self):
        value = relative_strength_index([44.0, 44.3, 44.1, 44.6, 44.2, 44.9, 45.1], 3)
        assert value == round(value, 2)

    def test_always_within_bounds(self):
        rng = random.Random(7)
        for _ in range(200):
            closes = [rng.uniform(1, 200) for _ in range(rng.randint(0, 60))]
            value = relative_strength_index(closes, rng.randint(1, 20))
            assert 0 <= value <= 100
