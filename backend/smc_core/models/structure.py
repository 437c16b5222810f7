"""Market structure and zone models produced by the detectors.

These are derived per analysis pass and never persisted.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Bias(str, Enum):
    """Directional bias of a structure event or zone."""

    BULLISH = "BULLISH"
    BEARISH = "BEARISH"


class Trend(str, Enum):
    """Market structure trend classification."""

    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    RANGING = "RANGING"


class SwingKind(str, Enum):
    HIGH = "high"
    LOW = "low"


class SwingPoint(BaseModel):
    """Local price extremum at a position in the analysed window."""

    model_config = ConfigDict(frozen=True)

    price: float
    kind: SwingKind
    index: int


class StructureResult(BaseModel):
    """Trend classification with the swing sequences it was derived from."""

    trend: Trend = Trend.RANGING
    strength: float = 0.0
    highs: list[float] = Field(default_factory=list)
    lows: list[float] = Field(default_factory=list)


class BreakOfStructure(BaseModel):
    """Latest close beyond a prior swing extreme."""

    direction: Bias
    broken_level: float
    strength: float = 0.8


class ChangeOfCharacter(BaseModel):
    """Single-step reversal in the swing sequence."""

    direction: Bias
    strength: float = 0.7


class OrderBlock(BaseModel):
    """Reversal-then-continuation candle range."""

    direction: Bias
    high: float
    low: float
    time: datetime


class FairValueGap(BaseModel):
    """Price range left untouched between the wicks of two candles."""

    direction: Bias
    high: float
    low: float
    time: datetime


class LiquiditySide(str, Enum):
    BUY = "buy"  # Clustered lows (sell stops below)
    SELL = "sell"  # Clustered highs (buy stops above)


class LiquidityLevel(BaseModel):
    """Price level with several closely clustered highs or lows."""

    side: LiquiditySide
    price: float
    strength: float


class LiquidityZones(BaseModel):
    """Buy-side and sell-side liquidity found in one pass."""

    buy: list[LiquidityLevel] = Field(default_factory=list)
    sell: list[LiquidityLevel] = Field(default_factory=list)


class LevelKind(str, Enum):
    SUPPORT = "support"
    RESISTANCE = "resistance"


class SupportResistanceLevel(BaseModel):
    """Clustered swing level with the number of swings that touched it."""

    kind: LevelKind
    price: float
    touches: int = 1


class MarketAnalysis(BaseModel):
    """Snapshot of every enabled detector's output for one candle window.

    Disabled detectors leave their field at the empty default.
    """

    structure: StructureResult | None = None
    order_blocks: list[OrderBlock] = Field(default_factory=list)
    fvgs: list[FairValueGap] = Field(default_factory=list)
    bos: BreakOfStructure | None = None
    choch: ChangeOfCharacter | None = None
    liquidity: LiquidityZones | None = None
