"""Tests for the signal lifecycle transition table."""

from datetime import datetime, timedelta, timezone

import pytest

from smc_core.lifecycle import TransitionEvent, evaluate_tick
from smc_core.models import CloseReason, Direction, Signal

T0 = datetime(2024, 1, 1, 12, tzinfo=timezone.utc)


def _replay(signal: Signal, prices: list[float]) -> tuple[Signal, list[TransitionEvent]]:
    events = []
    for i, price in enumerate(prices):
        transition = evaluate_tick(signal, price, T0 + timedelta(seconds=i))
        if transition is not None:
            events.append(transition.event)
            signal = transition.signal
    return signal, events


class TestBuyLifecycle:
    def test_tp1_moves_stop_to_breakeven(self, buy_signal):
        transition = evaluate_tick(buy_signal, 102, T0)

        assert transition is not None
        assert transition.event == TransitionEvent.TP1_HIT
        updated = transition.signal
        assert updated.tp1_hit is True
        assert updated.tp1_hit_at == T0
        assert updated.breakeven_set is True
        assert updated.sl == 100
        assert updated.tp2_hit is False
        assert updated.closed is False
        assert transition.changes == {
            "tp1_hit": True,
            "tp1_hit_at": T0,
            "breakeven_set": True,
            "sl": 100,
        }
        assert transition.message == "XAUUSD TP1 hit at 102.00 - SL moved to breakeven"

    def test_input_signal_not_mutated(self, buy_signal):
        evaluate_tick(buy_signal, 102, T0)

        assert buy_signal.tp1_hit is False
        assert buy_signal.sl == 97

    def test_tp2_after_tp1(self, buy_signal):
        signal, events = _replay(buy_signal, [102, 103])

        assert events == [TransitionEvent.TP1_HIT, TransitionEvent.TP2_HIT]
        assert signal.tp1_hit and signal.tp2_hit
        assert not signal.closed

    def test_gap_through_levels_registers_one_event_per_tick(self, buy_signal):
        signal, events = _replay(buy_signal, [110])

        assert events == [TransitionEvent.TP1_HIT]
        assert signal.tp2_hit is False

        signal, events = _replay(signal, [110, 110])

        assert events == [TransitionEvent.TP2_HIT, TransitionEvent.TP3_HIT]
        assert signal.closed is True
        assert signal.closed_reason == CloseReason.ALL_TPS
        assert signal.closed_price == 110

    def test_stop_loss_before_breakeven(self, buy_signal):
        transition = evaluate_tick(buy_signal, 96, T0)

        assert transition.event == TransitionEvent.STOP_LOSS
        assert transition.closes
        assert transition.signal.closed_reason == CloseReason.STOP_LOSS
        assert transition.signal.closed_price == 96
        assert transition.signal.closed_at == T0
        assert transition.message == "XAUUSD BUY signal stopped out at 96.00"

    def test_breakeven_stop_after_tp1(self, buy_signal):
        signal, events = _replay(buy_signal, [101.5, 100.5, 100])

        assert events == [TransitionEvent.TP1_HIT, TransitionEvent.STOP_LOSS]
        assert signal.closed_reason == CloseReason.STOP_LOSS
        assert signal.tp1_hit is True
        assert signal.is_winner

    def test_full_ladder(self, buy_signal):
        signal, events = _replay(buy_signal, [100.5, 101, 102, 103, 104, 106])

        assert events == [
            TransitionEvent.TP1_HIT,
            TransitionEvent.TP2_HIT,
            TransitionEvent.TP3_HIT,
        ]
        assert signal.tp3_hit and signal.closed
        assert signal.closed_reason == CloseReason.ALL_TPS

    def test_closed_signal_ignores_ticks(self, buy_signal):
        closed, _ = _replay(buy_signal, [96])

        assert evaluate_tick(closed, 200, T0) is None
        assert evaluate_tick(closed, 50, T0) is None

    def test_untracked_signal_ignored(self, buy_signal):
        untracked = buy_signal.model_copy(update={"tracked": False})

        assert evaluate_tick(untracked, 96, T0) is None

    def test_neutral_signal_ignored(self):
        neutral = Signal(symbol="XAUUSD", direction=Direction.NEUTRAL, tracked=True)

        assert evaluate_tick(neutral, 0, T0) is None

    def test_no_change_between_levels(self, buy_signal):
        assert evaluate_tick(buy_signal, 100.5, T0) is None


class TestSellLifecycle:
    def test_tp1_moves_stop_to_breakeven(self, sell_signal):
        transition = evaluate_tick(sell_signal, 98.5, T0)

        assert transition.event == TransitionEvent.TP1_HIT
        assert transition.signal.sl == 100
        assert transition.signal.breakeven_set

    def test_stop_loss(self, sell_signal):
        transition = evaluate_tick(sell_signal, 103, T0)

        assert transition.event == TransitionEvent.STOP_LOSS
        assert transition.signal.closed_reason == CloseReason.STOP_LOSS

    def test_full_ladder(self, sell_signal):
        signal, events = _replay(sell_signal, [99, 97, 94])

        assert events == [
            TransitionEvent.TP1_HIT,
            TransitionEvent.TP2_HIT,
            TransitionEvent.TP3_HIT,
        ]
        assert signal.closed_reason == CloseReason.ALL_TPS


@pytest.mark.parametrize(
    "prices",
    [
        [102, 96, 103],
        [110, 90, 110, 110],
        [101, 103, 106, 50, 200],
        [98, 97.5, 101, 99, 103],
    ],
)
def test_tp_flags_are_monotonic(buy_signal, prices):
    signal = buy_signal
    for i, price in enumerate(prices):
        transition = evaluate_tick(signal, price, T0 + timedelta(seconds=i))
        if transition is None:
            continue
        signal = transition.signal
        assert not signal.tp2_hit or signal.tp1_hit
        assert not signal.tp3_hit or signal.tp2_hit
        if signal.tp1_hit:
            assert signal.breakeven_set and signal.sl == signal.entry
