"""Analysis modes and their decision thresholds.

Each mode bundles the posterior probability a winner must reach with the
minimum traffic per arm and the minimum number of days the test must run
before the strict decision rules apply.
"""

from __future__ import annotations

import enum
from typing import NamedTuple


class AnalysisMode(str, enum.Enum):
    fast = "fast"
    standard = "standard"
    careful = "careful"


class ModeParams(NamedTuple):
    threshold: float
    min_n: int
    min_days: float


MODE_PARAMS: dict[AnalysisMode, ModeParams] = {
    AnalysisMode.fast: ModeParams(threshold=0.90, min_n=500, min_days=3),
    AnalysisMode.standard: ModeParams(threshold=0.95, min_n=1500, min_days=7),
    AnalysisMode.careful: ModeParams(threshold=0.975, min_n=3000, min_days=10),
}


def resolve_mode(mode: AnalysisMode | str) -> tuple[AnalysisMode, ModeParams]:
    """Look up the parameters for *mode*, accepting the enum or its label."""
    try:
        mode = AnalysisMode(mode)
    except ValueError:
        valid = ", ".join(m.value for m in AnalysisMode)
        raise ValueError(f"Unknown analysis mode {mode!r}; expected one of {valid}") from None
    return mode, MODE_PARAMS[mode]
