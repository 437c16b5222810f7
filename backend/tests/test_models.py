"""Tests for candle and signal models."""

from datetime import datetime, timedelta, timezone

import pytest

from smc_core.models import (
    Candle,
    CandleBuffer,
    CloseReason,
    Direction,
    Signal,
    TrackerStats,
)

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _candle(i: int, close: float) -> Candle:
    return Candle(
        time=T0 + timedelta(minutes=15 * i),
        open=100,
        high=max(100, close) + 1,
        low=min(100, close) - 1,
        close=close,
    )


def _closes(buffer: CandleBuffer) -> list[float]:
    return [c.close for c in buffer.candles]


class TestCandle:
    def test_properties(self):
        candle = _candle(0, 104)

        assert candle.is_bullish and not candle.is_bearish
        assert not _candle(1, 100).is_bullish


class TestCandleBuffer:
    def test_same_timestamp_replaces_live_bar(self):
        buffer = CandleBuffer(symbol="XAUUSD")
        buffer.add(_candle(0, 101))
        buffer.add(_candle(1, 102))

        buffer.add(_candle(1, 99))

        assert len(buffer) == 2
        assert _closes(buffer) == [101, 99]

    def test_older_candle_ignored(self):
        buffer = CandleBuffer(symbol="XAUUSD")
        buffer.add(_candle(5, 101))

        buffer.add(_candle(2, 150))

        assert _closes(buffer) == [101]

    def test_max_size(self):
        buffer = CandleBuffer(symbol="XAUUSD", max_size=3)
        for i in range(5):
            buffer.add(_candle(i, 100 + i))

        assert _closes(buffer) == [102, 103, 104]
        assert buffer.candles[0].time == T0 + timedelta(minutes=30)


class TestSignal:
    def _buy(self, **kwargs) -> Signal:
        fields = dict(
            symbol="XAUUSD",
            direction=Direction.BUY,
            entry=100,
            sl=97,
            tp1=101,
            tp2=103,
            tp3=106,
        )
        fields.update(kwargs)
        return Signal(**fields)

    def test_levels_ordered(self):
        assert self._buy().levels_ordered()
        assert not self._buy(tp2=100.5).levels_ordered()

    def test_is_active(self):
        assert not self._buy().is_active
        assert self._buy(tracked=True).is_active
        assert not self._buy(tracked=True, closed=True).is_active

    def test_is_winner(self):
        assert self._buy(closed=True, closed_reason=CloseReason.ALL_TPS).is_winner
        assert self._buy(closed=True, closed_reason=CloseReason.STOP_LOSS, tp1_hit=True).is_winner
        assert not self._buy(closed=True, closed_reason=CloseReason.STOP_LOSS).is_winner
        assert not self._buy(tp1_hit=True).is_winner


class TestTrackerStats:
    def test_empty(self):
        stats = TrackerStats.from_signals([])

        assert stats.total == 0
        assert stats.win_rate == 0

    def test_win_rate_rounded(self):
        base = Signal(symbol="XAUUSD", direction=Direction.BUY, tracked=True)
        signals = [
            base.model_copy(update={"closed": True, "closed_reason": CloseReason.ALL_TPS}),
            base.model_copy(update={"closed": True, "tp1_hit": True,
                                    "closed_reason": CloseReason.STOP_LOSS}),
            base.model_copy(update={"closed": True, "closed_reason": CloseReason.STOP_LOSS}),
            base,
        ]

        stats = TrackerStats.from_signals(signals)

        assert (stats.total, stats.active, stats.closed) == (4, 1, 3)
        assert (stats.winning, stats.losing) == (2, 1)
        assert stats.win_rate == pytest.approx(66.7)
