"""Tests for analysis.yaml loading."""

import textwrap

from smc_app.analysis_config import AnalysisFile, load_analysis_config


class TestLoadAnalysisConfig:
    def test_missing_file_uses_defaults(self, tmp_path):
        config = load_analysis_config(tmp_path / "missing.yaml")

        assert config == AnalysisFile()
        assert config.detectors.order_blocks is True
        assert config.scoring.sl_atr_mult == 1.5

    def test_partial_override(self, tmp_path):
        path = tmp_path / "analysis.yaml"
        path.write_text(textwrap.dedent("""\
            detectors:
              fvg: false
              liquidity: false
            scoring:
              sl_atr_mult: 2.0
        """))

        config = load_analysis_config(path)

        assert config.detectors.fvg is False
        assert config.detectors.liquidity is False
        assert config.detectors.bos is True
        assert config.scoring.sl_atr_mult == 2.0
        assert config.scoring.tp1_atr_mult == 1.0

    def test_empty_file(self, tmp_path):
        path = tmp_path / "analysis.yaml"
        path.write_text("")

        assert load_analysis_config(str(path)) == AnalysisFile()
