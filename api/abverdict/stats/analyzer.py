"""Dual-metric Bayesian analysis of a two-arm product page test.

``analyze`` samples add-to-cart and purchase posteriors for control and
variant, summarizes each metric, and applies a mode-dependent decision
policy.  Purchases are the primary metric; add-to-cart and the joint
"wins on either metric" rate are used as supporting or early signals.
"""

from __future__ import annotations

import logging

import numpy as np

from abverdict.stats.modes import AnalysisMode, resolve_mode
from abverdict.stats.results import (
    AnalysisResult,
    Decision,
    JointSummary,
    MetricSummary,
    VariantObservation,
)
from abverdict.stats.sampler import DEFAULT_MAX_ROUNDS, PosteriorSamples, sample_posteriors
from abverdict.stats.summary import summarize_samples

logger = logging.getLogger(__name__)

DEFAULT_SAMPLES = 10_000

# Floor for the relaxed threshold used before the sample-size and duration
# gates are met.
EARLY_THRESHOLD_FLOOR = 0.80
EARLY_THRESHOLD_MARGIN = 0.05


def joint_probability(atc: PosteriorSamples, purchases: PosteriorSamples) -> float:
    """Share of draw indices where the variant wins on purchases or add-to-cart.

    The two metrics are sampled independently, so pairing them by index is
    a co-occurrence count rather than a draw from a true joint posterior.
    """
    if atc.control.size != purchases.control.size:
        raise ValueError("both metrics must be sampled with the same sample count")
    wins = (purchases.variant > purchases.control) | (atc.variant > atc.control)
    return int(np.count_nonzero(wins)) / wins.size


def decide(
    atc: MetricSummary,
    purchases: MetricSummary,
    prob_joint: float,
    threshold: float,
    have_min_n: bool,
    have_min_days: bool,
    business_mde: float = 0.0,
) -> Decision:
    """Apply the decision policy; the first matching rule wins."""
    if have_min_n and have_min_days:
        if purchases.prob_b >= threshold and purchases.expected_rel_lift >= business_mde:
            return Decision.variant_wins_on_purchases
        if purchases.prob_a >= threshold:
            return Decision.control_wins_on_purchases
        if atc.prob_b >= threshold and atc.expected_rel_lift >= business_mde:
            return Decision.variant_likely_on_atc_but_purchases_inconclusive
        return Decision.no_clear_winner

    lower_threshold = max(EARLY_THRESHOLD_FLOOR, threshold - EARLY_THRESHOLD_MARGIN)
    if purchases.prob_b >= lower_threshold and atc.prob_b >= threshold:
        return Decision.variant_probable_based_on_purchases_and_strong_atc
    if prob_joint >= threshold:
        return Decision.variant_probable_by_joint_metric
    return Decision.no_clear_winner


def analyze(
    control: VariantObservation,
    variant: VariantObservation,
    mode: AnalysisMode | str = AnalysisMode.standard,
    days_running: float = 0,
    samples: int = DEFAULT_SAMPLES,
    business_mde: float = 0.0,
    rng: np.random.Generator | int | None = None,
    max_rounds: int = DEFAULT_MAX_ROUNDS,
) -> AnalysisResult:
    """Compare control and variant on add-to-cart and purchase rates.

    Parameters
    ----------
    control, variant : VariantObservation
        Aggregated counts per arm.  Zero visits is allowed and yields a
        uniform posterior for that arm.
    mode : AnalysisMode | str
        ``fast``, ``standard`` or ``careful``; selects the probability
        threshold and the minimum visits/days gates.
    days_running : float
        Elapsed test duration in days.
    samples : int
        Monte Carlo draws per arm and metric.
    business_mde : float
        Minimum expected relative lift for a variant win, e.g. 0.05.
    rng : np.random.Generator | int | None
        Generator or seed.  ``None`` draws fresh OS entropy.
    max_rounds : int
        Rejection-round cap passed to the Gamma sampler.

    Returns
    -------
    AnalysisResult
    """
    mode, params = resolve_mode(mode)
    if samples < 1:
        raise ValueError("samples must be at least 1")
    if days_running < 0:
        raise ValueError("days_running must be non-negative")

    rng = np.random.default_rng(rng)

    atc_samples = sample_posteriors(
        control.atc_successes, control.visits,
        variant.atc_successes, variant.visits,
        samples, rng, max_rounds,
    )
    purchase_samples = sample_posteriors(
        control.purchase_successes, control.visits,
        variant.purchase_successes, variant.visits,
        samples, rng, max_rounds,
    )

    atc = summarize_samples(atc_samples.control, atc_samples.variant)
    purchases = summarize_samples(purchase_samples.control, purchase_samples.variant)
    prob_joint = joint_probability(atc_samples, purchase_samples)

    have_min_n = control.visits >= params.min_n and variant.visits >= params.min_n
    have_min_days = days_running >= params.min_days

    decision = decide(
        atc,
        purchases,
        prob_joint,
        params.threshold,
        have_min_n,
        have_min_days,
        business_mde,
    )
    logger.debug(
        "mode=%s decision=%s purchases.prob_b=%.4f atc.prob_b=%.4f joint=%.4f "
        "have_min_n=%s have_min_days=%s",
        mode.value, decision.value, purchases.prob_b, atc.prob_b, prob_joint,
        have_min_n, have_min_days,
    )

    return AnalysisResult(
        mode=mode,
        days_running=days_running,
        control=control,
        variant=variant,
        atc=atc,
        purchases=purchases,
        joint=JointSummary(prob_joint=prob_joint),
        decision=decision,
        have_min_n=have_min_n,
        have_min_days=have_min_days,
    )
