"""Reduce paired posterior samples of one metric to a MetricSummary."""

from __future__ import annotations

import math

import numpy as np

from abverdict.stats.results import MetricSummary


def summarize_samples(control: np.ndarray, variant: np.ndarray) -> MetricSummary:
    """Win probabilities, expected lifts and a 95% interval from paired draws.

    Draw ``i`` of the control is compared with draw ``i`` of the variant.
    Ties count as a win for neither arm.  Relative lift divides by the
    control draw; a draw where the control rate is exactly zero contributes
    zero to the mean but still counts in the denominator, which biases the
    estimate downward in that degenerate case.

    Parameters
    ----------
    control, variant : np.ndarray
        Equal-length, non-empty 1-D sample arrays.

    Returns
    -------
    MetricSummary
    """
    control = np.asarray(control, dtype=float)
    variant = np.asarray(variant, dtype=float)
    if control.shape != variant.shape or control.ndim != 1:
        raise ValueError("control and variant samples must be 1-D arrays of equal length")
    n = control.size
    if n == 0:
        raise ValueError("at least one sample is required")

    abs_lift = variant - control
    rel_lift = np.divide(
        abs_lift, control, out=np.zeros_like(abs_lift), where=control != 0
    )

    sorted_lift = np.sort(abs_lift)
    ci_low = float(sorted_lift[math.floor(0.025 * n)])
    ci_high = float(sorted_lift[math.floor(0.975 * n)])

    return MetricSummary(
        prob_b=int(np.count_nonzero(variant > control)) / n,
        prob_a=int(np.count_nonzero(control > variant)) / n,
        expected_abs_lift=float(np.mean(abs_lift)),
        expected_rel_lift=float(np.mean(rel_lift)),
        ci95=(ci_low, ci_high),
    )
