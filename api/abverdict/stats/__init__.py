"""ABVerdict Bayesian statistics engine.

Public API:
- AnalysisMode / MODE_PARAMS: named decision configurations
- VariantObservation: aggregated counts for one arm
- gamma_variates / beta_variates / sample_posteriors: posterior sampling
- summarize_samples: win probability, lift and 95% interval for one metric
- analyze: dual-metric (add-to-cart + purchases) analysis and decision
"""

from abverdict.stats.analyzer import analyze, decide, joint_probability
from abverdict.stats.modes import MODE_PARAMS, AnalysisMode, ModeParams, resolve_mode
from abverdict.stats.results import (
    AnalysisResult,
    Decision,
    JointSummary,
    MetricSummary,
    VariantObservation,
)
from abverdict.stats.sampler import (
    PosteriorSamples,
    SamplingError,
    beta_variates,
    gamma_variates,
    sample_posteriors,
)
from abverdict.stats.summary import summarize_samples

__all__ = [
    "analyze",
    "decide",
    "joint_probability",
    "AnalysisMode",
    "ModeParams",
    "MODE_PARAMS",
    "resolve_mode",
    "AnalysisResult",
    "Decision",
    "JointSummary",
    "MetricSummary",
    "VariantObservation",
    "PosteriorSamples",
    "SamplingError",
    "beta_variates",
    "gamma_variates",
    "sample_posteriors",
    "summarize_samples",
]
