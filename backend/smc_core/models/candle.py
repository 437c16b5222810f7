"""Candle (OHLC bar) and price tick data models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Candle(BaseModel):
    """OHLC candle."""

    model_config = ConfigDict(frozen=True)

    time: datetime
    open: float
    high: float
    low: float
    close: float

    @property
    def is_bullish(self) -> bool:
        """Check if this is a bullish (green) candle."""
        return self.close > self.open

    @property
    def is_bearish(self) -> bool:
        """Check if this is a bearish (red) candle."""
        return self.close < self.open


class CandleBuffer(BaseModel):
    """Bounded window of recent candles for one instrument.

    The last candle is the live bar: a candle with the same timestamp
    replaces it instead of being appended.
    """

    symbol: str
    candles: list[Candle] = Field(default_factory=list)
    max_size: int = 200

    def add(self, candle: Candle) -> None:
        """Add a candle to the buffer, maintaining max size."""
        if self.candles and candle.time <= self.candles[-1].time:
            # Update the live bar (same timestamp); older candles are ignored
            if candle.time == self.candles[-1].time:
                self.candles[-1] = candle
            return

        self.candles.append(candle)
        if len(self.candles) > self.max_size:
            self.candles = self.candles[-self.max_size :]

    def __len__(self) -> int:
        return len(self.candles)


class Tick(BaseModel):
    """Live price tick for one instrument."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    price: float
    time: datetime
