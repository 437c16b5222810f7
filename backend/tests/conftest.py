"""Shared candle and signal factories."""

from datetime import datetime, timedelta, timezone

import pytest

from smc_core.models import Candle, Direction, Signal

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)

# Pivot series (one pivot every 5 bars, linear in between)
BULLISH_PIVOTS = [100, 110, 102, 112, 104, 114, 106, 116, 108, 118, 110, 120]
BEARISH_PIVOTS = [300 - p for p in BULLISH_PIVOTS]


def make_candle(index: int, price: float, wick: float = 0.5) -> Candle:
    """Doji candle centred on price (neither bullish nor bearish)."""
    return Candle(
        time=BASE_TIME + timedelta(minutes=15 * index),
        open=price,
        high=price + wick,
        low=price - wick,
        close=price,
    )


def candles_from_pivots(pivots: list[float], step: int = 5) -> list[Candle]:
    """Zigzag series through pivots placed every ``step`` bars."""
    prices: list[float] = []
    for a, b in zip(pivots, pivots[1:]):
        for k in range(step):
            prices.append(a + (b - a) * k / step)
    prices.append(pivots[-1])
    return [make_candle(i, p) for i, p in enumerate(prices)]


@pytest.fixture
def bullish_candles() -> list[Candle]:
    return candles_from_pivots(BULLISH_PIVOTS)


@pytest.fixture
def bearish_candles() -> list[Candle]:
    return candles_from_pivots(BEARISH_PIVOTS)


@pytest.fixture
def buy_signal() -> Signal:
    """Tracked BUY: entry 100, SL 97, TP 101/103/106."""
    return Signal(
        id="sig-buy",
        symbol="XAUUSD",
        direction=Direction.BUY,
        entry=100.0,
        sl=97.0,
        tp1=101.0,
        tp2=103.0,
        tp3=106.0,
        confidence=75.0,
        tracked=True,
    )


@pytest.fixture
def sell_signal() -> Signal:
    """Tracked SELL: entry 100, SL 103, TP 99/97/94."""
    return Signal(
        id="sig-sell",
        symbol="EURUSD",
        direction=Direction.SELL,
        entry=100.0,
        sl=103.0,
        tp1=99.0,
        tp2=97.0,
        tp3=94.0,
        confidence=70.0,
        tracked=True,
    )
