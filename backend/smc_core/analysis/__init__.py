"""SMC detectors (pure, synchronous, no I/O)."""

from smc_core.analysis.structure import analyze_structure, detect_bos, detect_choch
from smc_core.analysis.swings import find_swings, swing_highs, swing_lows
from smc_core.analysis.zones import (
    detect_fvg,
    detect_liquidity,
    detect_order_blocks,
    detect_support_resistance,
)

__all__ = [
    "analyze_structure",
    "detect_bos",
    "detect_choch",
    "find_swings",
    "swing_highs",
    "swing_lows",
    "detect_fvg",
    "detect_liquidity",
    "detect_order_blocks",
    "detect_support_resistance",
]
