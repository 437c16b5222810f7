"""Market structure: trend classification, Break of Structure, Change of Character."""

from typing import Sequence

from smc_core.analysis.swings import find_swings, swing_highs, swing_lows
from smc_core.models import (
    Bias,
    BreakOfStructure,
    Candle,
    ChangeOfCharacter,
    StructureResult,
    Trend,
)


# Coarse categorical confidences, not derived from any formula
TREND_STRENGTH = 0.7
BOS_STRENGTH = 0.8
CHOCH_STRENGTH = 0.7

MIN_STRUCTURE_CANDLES = 20
BOS_MIN_CANDLES = 20
BOS_LOOKBACK = 30
CHOCH_MIN_CANDLES = 30
CHOCH_LOOKBACK = 50


def _strictly_increasing(values: Sequence[float]) -> bool:
    return all(b > a for a, b in zip(values, values[1:]))


def _strictly_decreasing(values: Sequence[float]) -> bool:
    return all(b < a for a, b in zip(values, values[1:]))


def analyze_structure(candles: Sequence[Candle], lookback: int = 50) -> StructureResult:
    """Classify trend from the last three swing highs and lows.

    Bullish when both sequences are strictly increasing, bearish when both
    are strictly decreasing, ranging otherwise.
    """
    if len(candles) < MIN_STRUCTURE_CANDLES:
        return StructureResult()

    swings = find_swings(list(candles)[-lookback:])
    highs = swing_highs(swings)
    lows = swing_lows(swings)

    trend = Trend.RANGING
    strength = 0.0

    if len(highs) >= 2 and len(lows) >= 2:
        last_highs = highs[-3:]
        last_lows = lows[-3:]
        if _strictly_increasing(last_highs) and _strictly_increasing(last_lows):
            trend = Trend.BULLISH
            strength = TREND_STRENGTH
        elif _strictly_decreasing(last_highs) and _strictly_decreasing(last_lows):
            trend = Trend.BEARISH
            strength = TREND_STRENGTH

    return StructureResult(trend=trend, strength=strength, highs=highs, lows=lows)


def detect_bos(candles: Sequence[Candle]) -> BreakOfStructure | None:
    """Detect the latest close breaking beyond the prior swing range.

    The most recent swing is excluded from the reference range.
    """
    if len(candles) < BOS_MIN_CANDLES:
        return None

    recent = list(candles)[-BOS_LOOKBACK:]
    structure = analyze_structure(recent, lookback=BOS_LOOKBACK)
    last_close = recent[-1].close

    prior_highs = structure.highs[:-1]
    if prior_highs:
        previous_high = max(prior_highs)
        if last_close > previous_high:
            return BreakOfStructure(
                direction=Bias.BULLISH,
                broken_level=previous_high,
                strength=BOS_STRENGTH,
            )

    prior_lows = structure.lows[:-1]
    if prior_lows:
        previous_low = min(prior_lows)
        if last_close < previous_low:
            return BreakOfStructure(
                direction=Bias.BEARISH,
                broken_level=previous_low,
                strength=BOS_STRENGTH,
            )

    return None


def detect_choch(candles: Sequence[Candle]) -> ChangeOfCharacter | None:
    """Detect a one-step reversal in the swing sequence.

    Bullish: highs were descending and the last high turned up.
    Bearish: lows were ascending and the last low turned down.
    """
    if len(candles) < CHOCH_MIN_CANDLES:
        return None

    structure = analyze_structure(list(candles)[-CHOCH_LOOKBACK:], lookback=CHOCH_LOOKBACK)
    highs = structure.highs
    lows = structure.lows

    if len(highs) < 3 or len(lows) < 3:
        return None

    if highs[-3] > highs[-2] and highs[-2] < highs[-1]:
        return ChangeOfCharacter(direction=Bias.BULLISH, strength=CHOCH_STRENGTH)

    if lows[-3] < lows[-2] and lows[-2] > lows[-1]:
        return ChangeOfCharacter(direction=Bias.BEARISH, strength=CHOCH_STRENGTH)

    return None
