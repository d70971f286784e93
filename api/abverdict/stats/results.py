"""Input and output containers for the dual-metric analysis."""

from __future__ import annotations

import enum
import numbers
from dataclasses import dataclass
from typing import Any

from abverdict.stats.modes import AnalysisMode


class Decision(str, enum.Enum):
    variant_wins_on_purchases = "variant_wins_on_purchases"
    control_wins_on_purchases = "control_wins_on_purchases"
    variant_likely_on_atc_but_purchases_inconclusive = (
        "variant_likely_on_atc_but_purchases_inconclusive"
    )
    variant_probable_based_on_purchases_and_strong_atc = (
        "variant_probable_based_on_purchases_and_strong_atc"
    )
    variant_probable_by_joint_metric = "variant_probable_by_joint_metric"
    no_clear_winner = "no_clear_winner"


@dataclass(frozen=True)
class VariantObservation:
    """Aggregated counts for one arm of a test.

    ``visits`` are impressions of the product page; the two success counts
    are add-to-cart and purchase events attributed to those impressions.
    Construction fails on non-integer or negative counts, or successes above
    visits.
    """

    visits: int
    atc_successes: int = 0
    purchase_successes: int = 0

    def __post_init__(self) -> None:
        for name in ("visits", "atc_successes", "purchase_successes"):
            value = getattr(self, name)
            if not isinstance(value, numbers.Integral) or isinstance(value, bool):
                raise ValueError(f"{name} must be an integer")
            if value < 0:
                raise ValueError(f"{name} must be non-negative")
        if self.atc_successes > self.visits:
            raise ValueError("atc_successes cannot exceed visits")
        if self.purchase_successes > self.visits:
            raise ValueError("purchase_successes cannot exceed visits")

    def to_dict(self) -> dict[str, int]:
        return {
            "visits": self.visits,
            "atc_successes": self.atc_successes,
            "purchase_successes": self.purchase_successes,
        }


@dataclass(frozen=True)
class MetricSummary:
    """Posterior comparison of one binary metric.

    prob_b and prob_a count strict wins only, so they need not sum to 1.
    ci95 is the nearest-rank 2.5th/97.5th percentile pair of the
    absolute lift (variant - control).
    """

    prob_b: float
    prob_a: float
    expected_abs_lift: float
    expected_rel_lift: float
    ci95: tuple[float, float]

    def to_dict(self) -> dict[str, Any]:
        return {
            "prob_b": self.prob_b,
            "prob_a": self.prob_a,
            "expected_abs_lift": self.expected_abs_lift,
            "expected_rel_lift": self.expected_rel_lift,
            "ci95": list(self.ci95),
        }


@dataclass(frozen=True)
class JointSummary:
    # share of draws where the variant wins on purchases or on add-to-cart
    prob_joint: float


@dataclass(frozen=True)
class AnalysisResult:
    mode: AnalysisMode
    days_running: float
    control: VariantObservation
    variant: VariantObservation
    atc: MetricSummary
    purchases: MetricSummary
    joint: JointSummary
    decision: Decision
    have_min_n: bool
    have_min_days: bool

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation; metric blocks also carry visit totals."""
        totals = {
            "control_visits": self.control.visits,
            "variant_visits": self.variant.visits,
        }
        return {
            "mode": self.mode.value,
            "days_running": self.days_running,
            "control": self.control.to_dict(),
            "variant": self.variant.to_dict(),
            "atc": {**self.atc.to_dict(), "totals": dict(totals)},
            "purchases": {**self.purchases.to_dict(), "totals": dict(totals)},
            "joint": {"prob_joint": self.joint.prob_joint},
            "decision": self.decision.value,
            "have_min_n": self.have_min_n,
            "have_min_days": self.have_min_days,
        }
