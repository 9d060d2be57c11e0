"""Momentum indicators computed from closing prices."""

from __future__ import annotations

from typing import Sequence

NEUTRAL_RSI = 50.0
MAX_RSI = 100.0


def relative_strength_index(closes: Sequence[float], period: int = 14) -> float:
    """Wilder-smoothed RSI of *closes* (oldest first), rounded to 2 dp.

    With ``period`` or fewer closes there is no full window of deltas and the
    neutral value 50 is returned. A window with no losses returns 100.
    """
    if len(closes) <= period:
        return NEUTRAL_RSI

    gains = 0.0
    losses = 0.0
    for i in range(1, period + 1):
        delta = closes[i] - closes[i - 1]
        if delta >= 0:
            gains += delta
        else:
            losses -= delta

    avg_gain = gains / period
    avg_loss = losses / period

    for i in range(period + 1, len(closes)):
        delta = closes[i] - closes[i - 1]
        avg_gain = (avg_gain * (period - 1) + max(delta, 0.0)) / period
        avg_loss = (avg_loss * (period - 1) + max(-delta, 0.0)) / period

    if avg_loss == 0:
        return MAX_RSI
    rs = avg_gain / avg_loss
    return round(100 - 100 / (1 + rs), 2)
