"""Tests for SignalScorer."""

import pytest

from smc_core.models import (
    AnalysisConfig,
    Direction,
    NewsBias,
    ScoringConfig,
    SentimentBias,
    StructureResult,
)
from smc_core.scorer import INSUFFICIENT_DATA_REASON, SignalScorer

from conftest import candles_from_pivots

ALL_OFF = AnalysisConfig(
    order_blocks=False,
    fvg=False,
    bos=False,
    choch=False,
    liquidity=False,
    market_structure=False,
)


class TestSignalScorer:
    @pytest.fixture
    def scorer(self):
        return SignalScorer()

    def test_insufficient_data_is_neutral(self, scorer):
        candles = candles_from_pivots([100, 110, 100, 110, 100, 110, 100, 110, 100])  # 41 bars

        signal = scorer.score("XAUUSD", candles)

        assert signal.direction == Direction.NEUTRAL
        assert signal.confidence == 0
        assert signal.reasoning == [INSUFFICIENT_DATA_REASON]
        assert signal.entry == signal.sl == signal.tp1 == signal.tp2 == signal.tp3 == 0
        assert signal.tracked is False

    def test_bullish_window(self, scorer, bullish_candles):
        signal = scorer.score("XAUUSD", bullish_candles)

        assert signal.direction == Direction.BUY
        assert signal.confidence == pytest.approx(100)
        assert signal.reasoning == [
            "Bullish market structure detected with 4 higher highs",
            "Bullish FVG filled, expecting continuation",
            "Bullish break of structure at 116.50",
        ]
        assert signal.entry == pytest.approx(120)
        assert signal.sl == pytest.approx(113.25)
        assert signal.tp1 == pytest.approx(124.5)
        assert signal.tp2 == pytest.approx(129)
        assert signal.tp3 == pytest.approx(133.5)
        assert signal.levels_ordered()

    def test_bearish_window(self, scorer, bearish_candles):
        signal = scorer.score("EURUSD", bearish_candles)

        assert signal.direction == Direction.SELL
        assert signal.confidence == pytest.approx(100)
        assert signal.reasoning[0] == "Bearish market structure detected with 4 lower lows"
        assert "Bearish break of structure at 183.50" in signal.reasoning
        assert signal.entry == pytest.approx(180)
        assert signal.sl == pytest.approx(186.75)
        assert signal.tp3 == pytest.approx(166.5)
        assert signal.levels_ordered()

    def test_opposing_news_reduces_confidence(self, scorer, bullish_candles):
        news = NewsBias(bias=SentimentBias.BEARISH, strength=100)

        signal = scorer.score("XAUUSD", bullish_candles, news_bias=news)

        assert signal.direction == Direction.BUY
        assert signal.confidence == pytest.approx(52 / 62 * 100)
        assert signal.reasoning[-1] == "Fundamental analysis shows 100% bearish bias"

    def test_all_detectors_disabled(self, bullish_candles):
        signal = SignalScorer(config=ALL_OFF).score("XAUUSD", bullish_candles)

        assert signal.direction == Direction.NEUTRAL
        assert signal.confidence == 0
        assert signal.reasoning == []
        assert signal.levels_ordered()

    def test_news_only_uses_default_atr(self, bullish_candles):
        news = NewsBias(bias=SentimentBias.BULLISH, strength=80)

        signal = SignalScorer(config=ALL_OFF).score("XAUUSD", bullish_candles, news_bias=news)

        assert signal.direction == Direction.BUY
        assert signal.confidence == pytest.approx(100)
        assert signal.reasoning == ["Fundamental analysis shows 80% bullish bias"]
        assert signal.sl == pytest.approx(105)
        assert signal.tp1 == pytest.approx(130)
        assert signal.tp2 == pytest.approx(140)
        assert signal.tp3 == pytest.approx(150)

    def test_analyze_respects_toggles(self, bullish_candles):
        config = AnalysisConfig(liquidity=False, choch=False)

        analysis = SignalScorer(config=config).analyze(bullish_candles)

        assert analysis.liquidity is None
        assert analysis.choch is None
        assert analysis.structure is not None
        assert analysis.bos is not None
        assert analysis.fvgs


class TestLevels:
    def test_estimate_atr_defaults(self):
        scorer = SignalScorer()

        assert scorer.estimate_atr(None) == 10
        assert scorer.estimate_atr(StructureResult(highs=[110])) == 10

    def test_inverted_structure_falls_back(self):
        scorer = SignalScorer(scoring=ScoringConfig(default_atr=7))

        assert scorer.estimate_atr(StructureResult(highs=[100], lows=[105])) == 7

    def test_buy_and_sell_levels(self):
        scorer = SignalScorer()

        assert scorer.calculate_levels(Direction.BUY, 100, 2) == (97, 102, 104, 106)
        assert scorer.calculate_levels(Direction.SELL, 100, 2) == (103, 98, 96, 94)
        assert scorer.calculate_levels(Direction.NEUTRAL, 100, 2) == (0, 0, 0, 0)
