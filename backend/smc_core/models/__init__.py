"""Data models (pure, no I/O)."""

from smc_core.models.candle import Candle, CandleBuffer, Tick
from smc_core.models.config import AnalysisConfig, ScoringConfig
from smc_core.models.signal import (
    CloseReason,
    Direction,
    NewsBias,
    SentimentBias,
    Signal,
    TrackerStats,
)
from smc_core.models.structure import (
    Bias,
    BreakOfStructure,
    ChangeOfCharacter,
    FairValueGap,
    LevelKind,
    LiquidityLevel,
    LiquiditySide,
    LiquidityZones,
    MarketAnalysis,
    OrderBlock,
    StructureResult,
    SupportResistanceLevel,
    SwingKind,
    SwingPoint,
    Trend,
)

__all__ = [
    "Candle",
    "CandleBuffer",
    "Tick",
    "AnalysisConfig",
    "ScoringConfig",
    "CloseReason",
    "Direction",
    "NewsBias",
    "SentimentBias",
    "Signal",
    "TrackerStats",
    "Bias",
    "BreakOfStructure",
    "ChangeOfCharacter",
    "FairValueGap",
    "LevelKind",
    "LiquidityLevel",
    "LiquiditySide",
    "LiquidityZones",
    "MarketAnalysis",
    "OrderBlock",
    "StructureResult",
    "SupportResistanceLevel",
    "SwingKind",
    "SwingPoint",
    "Trend",
]
