"""Automatic winner evaluation for a running test.

Turns a snapshot of raw tracking events into per-arm counts, runs the
dual-metric analysis with the configured winner policy, and reports
whether a winner can be declared.  Nothing is persisted here; the caller
owns the test record and applies the outcome (marking the test completed,
promoting the variant template).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

import numpy as np

from abverdict.core.config import settings
from abverdict.stats.analyzer import analyze
from abverdict.stats.modes import AnalysisMode
from abverdict.stats.results import AnalysisResult, Decision, VariantObservation

logger = logging.getLogger(__name__)

CONTROL_LABEL = "A"
VARIANT_LABEL = "B"

_COUNTED_EVENTS = {
    "impression": "visits",
    "add_to_cart": "atc_successes",
    "purchase": "purchase_successes",
}


@dataclass(frozen=True)
class WinnerEvaluation:
    status: str  # "skipped" | "no_winner" | "winner_declared"
    reason: str | None = None
    winner: str | None = None
    decision: Decision | None = None
    promote_variant: bool = False
    analysis: AnalysisResult | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "reason": self.reason,
            "winner": self.winner,
            "decision": self.decision.value if self.decision else None,
            "promote_variant": self.promote_variant,
            "analysis": self.analysis.to_dict() if self.analysis else None,
        }


def aggregate_events(
    events: Iterable[Mapping[str, Any]],
) -> tuple[VariantObservation, VariantObservation]:
    """Count impressions, add-to-carts and purchases per arm.

    Events carry ``variant`` ("A" for control, "B" for variant) and
    ``event_type``.  Unknown arms and event types are ignored.  Success
    counts are clamped to visits, since a raw log can hold conversions
    whose impression was never recorded.
    """
    counts = {
        label: dict.fromkeys(_COUNTED_EVENTS.values(), 0)
        for label in (CONTROL_LABEL, VARIANT_LABEL)
    }
    for ev in events:
        arm = counts.get(ev.get("variant"))
        field = _COUNTED_EVENTS.get(ev.get("event_type"))
        if arm is None or field is None:
            continue
        arm[field] += 1

    observations = []
    for label in (CONTROL_LABEL, VARIANT_LABEL):
        c = counts[label]
        visits = c["visits"]
        if c["atc_successes"] > visits or c["purchase_successes"] > visits:
            logger.warning(
                "Arm %s has more conversions than impressions (%s); clamping to visits",
                label, c,
            )
        observations.append(
            VariantObservation(
                visits=visits,
                atc_successes=min(c["atc_successes"], visits),
                purchase_successes=min(c["purchase_successes"], visits),
            )
        )
    return observations[0], observations[1]


def days_running(created_at: datetime | None, now: datetime | None = None) -> int:
    """Whole days elapsed since *created_at*; naive datetimes are UTC."""
    if created_at is None:
        return 0
    if now is None:
        now = datetime.now(timezone.utc)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    elapsed = (now - created_at).total_seconds() / 86400
    return max(0, math.floor(elapsed))


def winner_for_decision(decision: Decision) -> str | None:
    """Map a decision to the winning arm label, or None when undecided."""
    if decision is Decision.no_clear_winner:
        return None
    return VARIANT_LABEL if "variant" in decision.value else CONTROL_LABEL


def evaluate_winner(
    status: str,
    created_at: datetime | None,
    events: Iterable[Mapping[str, Any]],
    now: datetime | None = None,
    mode: AnalysisMode | str | None = None,
    business_mde: float | None = None,
    samples: int | None = None,
    rng: np.random.Generator | int | None = None,
    test_id: str | None = None,
) -> WinnerEvaluation:
    """Decide whether a test has a winner right now.

    Only ``active`` tests are analyzed, and both arms need at least one
    impression.  Mode and MDE default to the configured winner policy.
    """
    if status != "active":
        logger.info("Test %s not active (status=%s); skipping", test_id, status)
        return WinnerEvaluation(status="skipped", reason="test_not_active")

    control, variant = aggregate_events(events)
    if control.visits < 1 or variant.visits < 1:
        logger.info(
            "Insufficient data for test %s: %d vs %d visits",
            test_id, control.visits, variant.visits,
        )
        return WinnerEvaluation(status="skipped", reason="insufficient_data")

    analysis = analyze(
        control,
        variant,
        mode=mode if mode is not None else settings.WINNER_MODE,
        days_running=days_running(created_at, now),
        samples=samples if samples is not None else settings.DEFAULT_SAMPLES,
        business_mde=business_mde if business_mde is not None else settings.WINNER_BUSINESS_MDE,
        rng=rng,
        max_rounds=settings.GAMMA_MAX_ROUNDS,
    )

    winner = winner_for_decision(analysis.decision)
    if winner is None:
        logger.info("No clear winner yet for test %s", test_id)
        return WinnerEvaluation(
            status="no_winner", decision=analysis.decision, analysis=analysis
        )

    logger.info(
        "Winner declared for test %s: variant %s (%s, purchase win probability %.1f%%, "
        "expected lift %.1f%%)",
        test_id,
        winner,
        analysis.decision.value,
        analysis.purchases.prob_b * 100,
        analysis.purchases.expected_rel_lift * 100,
    )
    return WinnerEvaluation(
        status="winner_declared",
        winner=winner,
        decision=analysis.decision,
        promote_variant=winner == VARIANT_LABEL,
        analysis=analysis,
    )
