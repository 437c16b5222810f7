"""Signal and lifecycle data models."""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class Direction(str, Enum):
    """Trade direction."""

    BUY = "BUY"
    SELL = "SELL"
    NEUTRAL = "NEUTRAL"


class CloseReason(str, Enum):
    """Why a tracked signal was closed."""

    STOP_LOSS = "Stop Loss Hit"
    ALL_TPS = "All TPs Hit"


class SentimentBias(str, Enum):
    """Bias reported by the news-sentiment collaborator."""

    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    NEUTRAL = "NEUTRAL"


class NewsBias(BaseModel):
    """Fundamental bias for a currency pair."""

    bias: SentimentBias = SentimentBias.NEUTRAL
    strength: float = Field(default=0.0, ge=0, le=100)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Signal(BaseModel):
    """Trading signal with take-profit ladder and lifecycle state."""

    id: str | None = None  # Assigned by the repository on create
    user_id: str | None = None
    symbol: str
    direction: Direction
    entry: float = 0.0
    sl: float = 0.0
    tp1: float = 0.0
    tp2: float = 0.0
    tp3: float = 0.0
    confidence: float = 0.0
    reasoning: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)

    tracked: bool = False
    tp1_hit: bool = False
    tp2_hit: bool = False
    tp3_hit: bool = False
    tp1_hit_at: datetime | None = None
    tp2_hit_at: datetime | None = None
    tp3_hit_at: datetime | None = None
    breakeven_set: bool = False

    closed: bool = False
    closed_at: datetime | None = None
    closed_price: float | None = None
    closed_reason: CloseReason | None = None

    @property
    def is_active(self) -> bool:
        """Signal is monitored only while tracked and not closed."""
        return self.tracked and not self.closed

    @property
    def is_winner(self) -> bool:
        """Closed with all targets, or at least TP1 banked before closing."""
        return self.closed and (
            self.closed_reason == CloseReason.ALL_TPS or self.tp1_hit
        )

    def levels_ordered(self) -> bool:
        """Check the sl/entry/tp ladder is monotonic for the direction."""
        if self.direction == Direction.BUY:
            return self.sl < self.entry < self.tp1 < self.tp2 < self.tp3
        if self.direction == Direction.SELL:
            return self.sl > self.entry > self.tp1 > self.tp2 > self.tp3
        return self.entry == self.sl == self.tp1 == self.tp2 == self.tp3 == 0


class TrackerStats(BaseModel):
    """Win/loss summary over tracked signals."""

    total: int = 0
    active: int = 0
    closed: int = 0
    winning: int = 0
    losing: int = 0
    win_rate: float = 0.0  # Percent of closed signals, 1 decimal

    @classmethod
    def from_signals(cls, signals: list[Signal]) -> "TrackerStats":
        """Summarise a collection of signals."""
        stats = cls()
        for signal in signals:
            stats.total += 1
            if not signal.closed:
                stats.active += 1
                continue
            stats.closed += 1
            if signal.is_winner:
                stats.winning += 1
            else:
                stats.losing += 1

        if stats.closed:
            stats.win_rate = round(stats.winning / stats.closed * 100, 1)
        return stats
