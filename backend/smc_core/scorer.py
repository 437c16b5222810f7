"""Smart Money Concepts signal scorer.

Combines market structure, zones, and an optional news bias into a
weighted bullish/bearish score and derives entry/SL/TP levels from a
swing-based volatility proxy.

This module is pure business logic with no I/O dependencies.
"""

import logging
from typing import Sequence

from smc_core.analysis import (
    analyze_structure,
    detect_bos,
    detect_choch,
    detect_fvg,
    detect_liquidity,
    detect_order_blocks,
)
from smc_core.models import (
    AnalysisConfig,
    Bias,
    Candle,
    Direction,
    MarketAnalysis,
    NewsBias,
    ScoringConfig,
    SentimentBias,
    Signal,
    StructureResult,
    Trend,
)

logger = logging.getLogger(__name__)

INSUFFICIENT_DATA_REASON = "Insufficient data for analysis"

# Factor weights (points before strength multipliers)
TREND_WEIGHT = 30.0
ORDER_BLOCK_WEIGHT = 20.0
FVG_WEIGHT = 15.0
BOS_WEIGHT = 20.0
CHOCH_WEIGHT = 15.0
NEWS_WEIGHT = 0.1


class SignalScorer:
    """
    Generate directional signals from SMC analysis of a candle window.

    Scoring:
    - Trend: 30 x structure strength
    - Latest order block: 20 when price respects it
    - Latest FVG: 15 when price has traded into it
    - BOS: 20 x BOS strength
    - CHoCH: 15 x CHoCH strength
    - News bias: strength x 0.1

    Levels (ATR proxy from swing structure):
    - SL = entry -/+ 1.5 x ATR
    - TP1/TP2/TP3 = entry +/- 1/2/3 x ATR
    """

    def __init__(
        self,
        config: AnalysisConfig | None = None,
        scoring: ScoringConfig | None = None,
    ):
        self.config = config or AnalysisConfig()
        self.scoring = scoring or ScoringConfig()

    def analyze(self, candles: Sequence[Candle]) -> MarketAnalysis:
        """Run every enabled detector over the candle window."""
        analysis = MarketAnalysis()

        if self.config.market_structure:
            analysis.structure = analyze_structure(
                candles, lookback=self.scoring.structure_lookback
            )
        if self.config.order_blocks:
            analysis.order_blocks = detect_order_blocks(candles)
        if self.config.fvg:
            analysis.fvgs = detect_fvg(candles)
        if self.config.bos:
            analysis.bos = detect_bos(candles)
        if self.config.choch:
            analysis.choch = detect_choch(candles)
        if self.config.liquidity:
            analysis.liquidity = detect_liquidity(candles)

        return analysis

    def score(
        self,
        symbol: str,
        candles: Sequence[Candle],
        news_bias: NewsBias | None = None,
    ) -> Signal:
        """
        Score the candle window and build a signal.

        Args:
            symbol: Instrument identifier
            candles: Ordered candle window (oldest first)
            news_bias: Optional fundamental bias for the pair

        Returns:
            Signal (NEUTRAL with zero confidence when data is insufficient)
        """
        if len(candles) < self.scoring.min_candles:
            return Signal(
                symbol=symbol,
                direction=Direction.NEUTRAL,
                confidence=0.0,
                reasoning=[INSUFFICIENT_DATA_REASON],
            )

        analysis = self.analyze(candles)
        last_close = candles[-1].close

        bullish, bearish, reasons = self._score_factors(analysis, last_close, news_bias)

        direction = Direction.NEUTRAL
        confidence = 0.0
        total = bullish + bearish
        if total > 0:
            if bullish > bearish:
                direction = Direction.BUY
                confidence = bullish / total * 100
            elif bearish > bullish:
                direction = Direction.SELL
                confidence = bearish / total * 100

        signal = Signal(
            symbol=symbol,
            direction=direction,
            confidence=min(100.0, confidence),
            reasoning=reasons,
        )

        if direction != Direction.NEUTRAL:
            atr_value = self.estimate_atr(analysis.structure)
            sl, tp1, tp2, tp3 = self.calculate_levels(direction, last_close, atr_value)
            signal.entry = last_close
            signal.sl = sl
            signal.tp1 = tp1
            signal.tp2 = tp2
            signal.tp3 = tp3
            logger.info(
                f"{direction.value} signal: {symbol} @ {last_close} "
                f"SL={sl:.5f} TP1={tp1:.5f} confidence={signal.confidence:.1f}"
            )
        else:
            logger.debug(f"NEUTRAL: {symbol} bullish={bullish:.1f} bearish={bearish:.1f}")

        return signal

    def _score_factors(
        self,
        analysis: MarketAnalysis,
        last_close: float,
        news_bias: NewsBias | None,
    ) -> tuple[float, float, list[str]]:
        """Accumulate bullish/bearish points and the reasons that contributed."""
        bullish = 0.0
        bearish = 0.0
        reasons: list[str] = []

        structure = analysis.structure
        if structure is not None:
            if structure.trend == Trend.BULLISH:
                bullish += TREND_WEIGHT * structure.strength
                reasons.append(
                    f"Bullish market structure detected with {len(structure.highs)} higher highs"
                )
            elif structure.trend == Trend.BEARISH:
                bearish += TREND_WEIGHT * structure.strength
                reasons.append(
                    f"Bearish market structure detected with {len(structure.lows)} lower lows"
                )

        if analysis.order_blocks:
            block = analysis.order_blocks[-1]
            if block.direction == Bias.BULLISH and last_close > block.low:
                bullish += ORDER_BLOCK_WEIGHT
                reasons.append(f"Price bouncing from bullish order block at {block.low:.2f}")
            elif block.direction == Bias.BEARISH and last_close < block.high:
                bearish += ORDER_BLOCK_WEIGHT
                reasons.append(f"Price rejecting from bearish order block at {block.high:.2f}")

        if analysis.fvgs:
            gap = analysis.fvgs[-1]
            if gap.direction == Bias.BULLISH and last_close >= gap.low:
                bullish += FVG_WEIGHT
                reasons.append("Bullish FVG filled, expecting continuation")
            elif gap.direction == Bias.BEARISH and last_close <= gap.high:
                bearish += FVG_WEIGHT
                reasons.append("Bearish FVG filled, expecting continuation")

        bos = analysis.bos
        if bos is not None:
            if bos.direction == Bias.BULLISH:
                bullish += BOS_WEIGHT * bos.strength
                reasons.append(f"Bullish break of structure at {bos.broken_level:.2f}")
            else:
                bearish += BOS_WEIGHT * bos.strength
                reasons.append(f"Bearish break of structure at {bos.broken_level:.2f}")

        choch = analysis.choch
        if choch is not None:
            if choch.direction == Bias.BULLISH:
                bullish += CHOCH_WEIGHT * choch.strength
                reasons.append("Change of character detected - potential bullish reversal")
            else:
                bearish += CHOCH_WEIGHT * choch.strength
                reasons.append("Change of character detected - potential bearish reversal")

        if news_bias is not None:
            if news_bias.bias == SentimentBias.BULLISH:
                bullish += news_bias.strength * NEWS_WEIGHT
                reasons.append(
                    f"Fundamental analysis shows {news_bias.strength:.0f}% bullish bias"
                )
            elif news_bias.bias == SentimentBias.BEARISH:
                bearish += news_bias.strength * NEWS_WEIGHT
                reasons.append(
                    f"Fundamental analysis shows {news_bias.strength:.0f}% bearish bias"
                )

        return bullish, bearish, reasons

    def estimate_atr(self, structure: StructureResult | None) -> float:
        """
        Half the distance between the mean recent swing high and swing low.

        Falls back to the default when there is no structure data, or when
        the means are inverted and would break the SL/TP ordering.
        """
        if structure is None or not structure.highs or not structure.lows:
            return self.scoring.default_atr

        period = self.scoring.atr_period
        highs = structure.highs[-period:]
        lows = structure.lows[-period:]
        avg_high = sum(highs) / len(highs)
        avg_low = sum(lows) / len(lows)
        atr_value = (avg_high - avg_low) / 2

        if atr_value <= 0:
            return self.scoring.default_atr
        return atr_value

    def calculate_levels(
        self,
        direction: Direction,
        entry: float,
        atr_value: float,
    ) -> tuple[float, float, float, float]:
        """
        Calculate stop loss and the three take-profit levels.

        Returns:
            Tuple of (sl, tp1, tp2, tp3); all zero for NEUTRAL
        """
        s = self.scoring
        if direction == Direction.BUY:
            return (
                entry - atr_value * s.sl_atr_mult,
                entry + atr_value * s.tp1_atr_mult,
                entry + atr_value * s.tp2_atr_mult,
                entry + atr_value * s.tp3_atr_mult,
            )
        if direction == Direction.SELL:
            return (
                entry + atr_value * s.sl_atr_mult,
                entry - atr_value * s.tp1_atr_mult,
                entry - atr_value * s.tp2_atr_mult,
                entry - atr_value * s.tp3_atr_mult,
            )
        return 0.0, 0.0, 0.0, 0.0
