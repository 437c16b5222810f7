"""Analysis configuration loaded from analysis.yaml.

Supports:
- Per-detector toggles (order blocks, FVG, BOS, CHoCH, liquidity, structure)
- Optional scoring overrides (ATR proxy window, SL/TP multipliers)
- Backward compatible: no YAML file = every detector enabled, default scoring
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel

from smc_core.models import AnalysisConfig, ScoringConfig

logger = logging.getLogger(__name__)


class AnalysisFile(BaseModel):
    """Top-level analysis.yaml configuration."""

    detectors: AnalysisConfig = AnalysisConfig()
    scoring: ScoringConfig = ScoringConfig()


_DEFAULT_PATH = Path(__file__).parent.parent / "analysis.yaml"


def load_analysis_config(path: Path | str | None = None) -> AnalysisFile:
    """Load analysis config from YAML file.

    Falls back to defaults if the file doesn't exist.
    """
    config_path = Path(path) if path else _DEFAULT_PATH

    if not config_path.exists():
        logger.info(
            "No analysis.yaml found at %s, using defaults (all detectors enabled)",
            config_path,
        )
        return AnalysisFile()

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    config = AnalysisFile(**raw)
    enabled = [name for name, on in config.detectors.model_dump().items() if on]
    logger.info(
        "Loaded analysis config: %d detectors enabled (%s)",
        len(enabled),
        ", ".join(enabled) or "none",
    )
    return config
