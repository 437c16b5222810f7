"""Swing high/low detection.

A candle is a swing high when its high is >= every high within
``radius`` candles on both sides, and a swing low when its low is <=
every low in the same neighbourhood. Candles closer than ``radius`` to
either end of the window are never swings because their neighbourhood
is incomplete.
"""

from typing import Sequence

import numpy as np

from smc_core.models import Candle, SwingKind, SwingPoint

DEFAULT_SWING_RADIUS = 5


def find_swings(
    candles: Sequence[Candle],
    radius: int = DEFAULT_SWING_RADIUS,
) -> list[SwingPoint]:
    """Find swing points ordered by index (high before low on the same candle).

    Ties count: adjacent candles with the same extreme both register.
    """
    n = len(candles)
    if n < 2 * radius + 1:
        return []

    highs = np.array([c.high for c in candles], dtype=np.float64)
    lows = np.array([c.low for c in candles], dtype=np.float64)

    swings: list[SwingPoint] = []
    for i in range(radius, n - radius):
        window = slice(i - radius, i + radius + 1)
        if highs[i] >= np.max(highs[window]):
            swings.append(SwingPoint(price=float(highs[i]), kind=SwingKind.HIGH, index=i))
        if lows[i] <= np.min(lows[window]):
            swings.append(SwingPoint(price=float(lows[i]), kind=SwingKind.LOW, index=i))

    return swings


def swing_highs(swings: Sequence[SwingPoint]) -> list[float]:
    """Prices of swing highs in window order."""
    return [s.price for s in swings if s.kind == SwingKind.HIGH]


def swing_lows(swings: Sequence[SwingPoint]) -> list[float]:
    """Prices of swing lows in window order."""
    return [s.price for s in swings if s.kind == SwingKind.LOW]
