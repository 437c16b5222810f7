"""Zone detection: Order Blocks, Fair Value Gaps, liquidity, support/resistance.

Every detector works on the most recent ``ZONE_LOOKBACK`` candles and
returns an empty result when there is not enough data.
"""

from typing import Sequence

import numpy as np

from smc_core.analysis.swings import find_swings
from smc_core.models import (
    Bias,
    Candle,
    FairValueGap,
    LevelKind,
    LiquidityLevel,
    LiquiditySide,
    LiquidityZones,
    OrderBlock,
    SupportResistanceLevel,
    SwingKind,
)

ZONE_LOOKBACK = 100
MAX_RECENT_ZONES = 5

ORDER_BLOCK_MIN_CANDLES = 20

LIQUIDITY_MIN_CANDLES = 50
LIQUIDITY_RADIUS = 5
LIQUIDITY_TOLERANCE = 0.001  # 0.1% relative
LIQUIDITY_MIN_CLUSTER = 3
LIQUIDITY_STRENGTH_SCALE = 5

SR_MIN_CANDLES = 20
SR_TOLERANCE_RATIO = 0.02  # Of the window's high-low range
SR_MIN_TOUCHES = 2
SR_MAX_LEVELS = 5


def detect_order_blocks(candles: Sequence[Candle]) -> list[OrderBlock]:
    """Find reversal candles confirmed by the next candle's continuation.

    Bullish: bearish prev, bullish curr closing above prev.high, next closes
    above curr. Bearish is the mirror.
    """
    if len(candles) < ORDER_BLOCK_MIN_CANDLES:
        return []

    recent = list(candles)[-ZONE_LOOKBACK:]
    blocks: list[OrderBlock] = []

    for prev, curr, nxt in zip(recent, recent[1:], recent[2:]):
        if (
            prev.is_bearish
            and curr.is_bullish
            and curr.close > prev.high
            and nxt.close > curr.close
        ):
            blocks.append(
                OrderBlock(direction=Bias.BULLISH, high=curr.high, low=curr.low, time=curr.time)
            )

        if (
            prev.is_bullish
            and curr.is_bearish
            and curr.close < prev.low
            and nxt.close < curr.close
        ):
            blocks.append(
                OrderBlock(direction=Bias.BEARISH, high=curr.high, low=curr.low, time=curr.time)
            )

    return blocks[-MAX_RECENT_ZONES:]


def detect_fvg(candles: Sequence[Candle]) -> list[FairValueGap]:
    """Find gaps between the wicks of the candles around each interior candle."""
    if len(candles) < 3:
        return []

    recent = list(candles)[-ZONE_LOOKBACK:]
    gaps: list[FairValueGap] = []

    for prev, curr, nxt in zip(recent, recent[1:], recent[2:]):
        if prev.high < nxt.low:
            gaps.append(
                FairValueGap(direction=Bias.BULLISH, low=prev.high, high=nxt.low, time=curr.time)
            )

        if prev.low > nxt.high:
            gaps.append(
                FairValueGap(direction=Bias.BEARISH, low=nxt.high, high=prev.low, time=curr.time)
            )

    return gaps[-MAX_RECENT_ZONES:]


def _cluster_count(values: np.ndarray, center: int) -> int:
    """Count values in the neighbourhood within relative tolerance of values[center]."""
    ref = values[center]
    if ref == 0:
        return 0
    window = values[center - LIQUIDITY_RADIUS : center + LIQUIDITY_RADIUS + 1]
    return int(np.count_nonzero(np.abs(window - ref) / abs(ref) < LIQUIDITY_TOLERANCE))


def detect_liquidity(candles: Sequence[Candle]) -> LiquidityZones | None:
    """Find equal highs (sell-side) and equal lows (buy-side) liquidity.

    The candle itself counts toward its own cluster.
    """
    if len(candles) < LIQUIDITY_MIN_CANDLES:
        return None

    recent = list(candles)[-ZONE_LOOKBACK:]
    highs = np.array([c.high for c in recent], dtype=np.float64)
    lows = np.array([c.low for c in recent], dtype=np.float64)

    zones = LiquidityZones()
    for i in range(LIQUIDITY_RADIUS, len(recent) - LIQUIDITY_RADIUS):
        count = _cluster_count(highs, i)
        if count >= LIQUIDITY_MIN_CLUSTER:
            zones.sell.append(
                LiquidityLevel(
                    side=LiquiditySide.SELL,
                    price=float(highs[i]),
                    strength=count / LIQUIDITY_STRENGTH_SCALE,
                )
            )

    for i in range(LIQUIDITY_RADIUS, len(recent) - LIQUIDITY_RADIUS):
        count = _cluster_count(lows, i)
        if count >= LIQUIDITY_MIN_CLUSTER:
            zones.buy.append(
                LiquidityLevel(
                    side=LiquiditySide.BUY,
                    price=float(lows[i]),
                    strength=count / LIQUIDITY_STRENGTH_SCALE,
                )
            )

    return zones


def detect_support_resistance(candles: Sequence[Candle]) -> list[SupportResistanceLevel]:
    """Cluster swing points into horizontal levels.

    Each swing merges into the first level of the same kind within
    tolerance (price averaged, touch counted), otherwise starts a new
    level. Levels touched at least twice are ranked by touches; ties keep
    detection order.
    """
    if len(candles) < SR_MIN_CANDLES:
        return []

    recent = list(candles)[-ZONE_LOOKBACK:]
    tolerance = (max(c.high for c in recent) - min(c.low for c in recent)) * SR_TOLERANCE_RATIO

    levels: list[SupportResistanceLevel] = []
    for swing in find_swings(recent):
        kind = LevelKind.RESISTANCE if swing.kind == SwingKind.HIGH else LevelKind.SUPPORT
        similar = next(
            (
                level
                for level in levels
                if level.kind == kind and abs(level.price - swing.price) < tolerance
            ),
            None,
        )
        if similar is not None:
            similar.touches += 1
            similar.price = (similar.price + swing.price) / 2
        else:
            levels.append(SupportResistanceLevel(kind=kind, price=swing.price))

    strong = [level for level in levels if level.touches >= SR_MIN_TOUCHES]
    strong.sort(key=lambda level: level.touches, reverse=True)
    return strong[:SR_MAX_LEVELS]
