"""Signal lifecycle transition table.

Evaluates one price tick against a signal's pre-tick state and returns
at most one transition:

    not closed          price beyond SL   -> closed ("Stop Loss Hit")
    !tp1_hit            price reaches TP1 -> tp1_hit, SL moved to entry
    tp1_hit, !tp2_hit   price reaches TP2 -> tp2_hit
    tp2_hit, !tp3_hit   price reaches TP3 -> tp3_hit, closed ("All TPs Hit")

Rows are checked in order and the first match wins, so a gap straight
through TP1 and TP2 registers only TP1 on that tick. The next tick at or
beyond TP2 progresses further.

This module is pure: the input signal is never mutated.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from smc_core.models import CloseReason, Direction, Signal


class TransitionEvent(str, Enum):
    """Lifecycle event committed by a tick."""

    STOP_LOSS = "stop_loss"
    TP1_HIT = "tp1_hit"
    TP2_HIT = "tp2_hit"
    TP3_HIT = "tp3_hit"


@dataclass
class Transition:
    """Result of applying a tick to a signal.

    Attributes:
        event: Which row of the transition table fired.
        signal: Updated copy of the signal.
        changes: Changed fields only (for partial persistence updates).
        message: Human-readable notification text.
    """

    event: TransitionEvent
    signal: Signal
    changes: dict[str, Any] = field(default_factory=dict)
    message: str = ""

    @property
    def closes(self) -> bool:
        return self.signal.closed


def _reached(direction: Direction, price: float, level: float) -> bool:
    """Price has reached a take-profit level in the trade's favour."""
    if direction == Direction.BUY:
        return price >= level
    return price <= level


def _stopped(direction: Direction, price: float, sl: float) -> bool:
    """Price has reached the stop loss against the trade."""
    if direction == Direction.BUY:
        return price <= sl
    return price >= sl


def _close_fields(price: float, at: datetime, reason: CloseReason) -> dict[str, Any]:
    return {
        "closed": True,
        "closed_at": at,
        "closed_price": price,
        "closed_reason": reason,
    }


def evaluate_tick(signal: Signal, price: float, at: datetime) -> Transition | None:
    """
    Apply one tick to a signal.

    Args:
        signal: Pre-tick signal state (not modified)
        price: Tick price
        at: Tick timestamp

    Returns:
        Transition, or None when nothing changes (including closed,
        untracked, and NEUTRAL signals)
    """
    if not signal.is_active or signal.direction == Direction.NEUTRAL:
        return None

    direction = signal.direction
    changes: dict[str, Any]

    if _stopped(direction, price, signal.sl):
        event = TransitionEvent.STOP_LOSS
        changes = _close_fields(price, at, CloseReason.STOP_LOSS)
        message = (
            f"{signal.symbol} {direction.value} signal stopped out at {price:.2f}"
        )

    elif not signal.tp1_hit and _reached(direction, price, signal.tp1):
        event = TransitionEvent.TP1_HIT
        changes = {"tp1_hit": True, "tp1_hit_at": at}
        message = f"{signal.symbol} TP1 hit at {price:.2f}"
        if not signal.breakeven_set:
            changes["breakeven_set"] = True
            changes["sl"] = signal.entry
            message += " - SL moved to breakeven"

    elif signal.tp1_hit and not signal.tp2_hit and _reached(direction, price, signal.tp2):
        event = TransitionEvent.TP2_HIT
        changes = {"tp2_hit": True, "tp2_hit_at": at}
        message = f"{signal.symbol} TP2 hit at {price:.2f}"

    elif signal.tp2_hit and not signal.tp3_hit and _reached(direction, price, signal.tp3):
        event = TransitionEvent.TP3_HIT
        changes = {"tp3_hit": True, "tp3_hit_at": at}
        changes.update(_close_fields(price, at, CloseReason.ALL_TPS))
        message = f"{signal.symbol} TP3 hit at {price:.2f} - Signal closed!"

    else:
        return None

    return Transition(
        event=event,
        signal=signal.model_copy(update=changes),
        changes=changes,
        message=message,
    )
