"""Analysis configuration models."""

from __future__ import annotations

from pydantic import BaseModel


class AnalysisConfig(BaseModel):
    """Which SMC detectors feed the scorer.

    Passed explicitly to SignalScorer; every detector is enabled by default.
    """

    order_blocks: bool = True
    fvg: bool = True
    bos: bool = True
    choch: bool = True
    liquidity: bool = True
    market_structure: bool = True


class ScoringConfig(BaseModel):
    """Windows and multipliers used by the scorer."""

    min_candles: int = 50
    structure_lookback: int = 50
    atr_period: int = 14  # Structural points used by the ATR proxy
    default_atr: float = 10.0

    sl_atr_mult: float = 1.5
    tp1_atr_mult: float = 1.0
    tp2_atr_mult: float = 2.0
    tp3_atr_mult: float = 3.0
