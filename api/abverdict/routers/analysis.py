"""Analysis router — exposes the dual-metric Bayesian analysis via the API.

Both endpoints are stateless: callers post the counts (or the raw event
snapshot) and receive the decision.  The analysis is CPU-bound, so the
handlers are plain ``def`` functions and FastAPI runs them in its
threadpool.
"""

import logging
from datetime import datetime

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field, model_validator

from abverdict.core.config import settings
from abverdict.services.winner import evaluate_winner
from abverdict.stats.analyzer import analyze
from abverdict.stats.modes import MODE_PARAMS, AnalysisMode
from abverdict.stats.results import VariantObservation
from abverdict.stats.sampler import SamplingError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["analysis"])


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class ObservationIn(BaseModel):
    visits: int = Field(ge=0)
    atc_successes: int = Field(default=0, ge=0)
    purchase_successes: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def successes_within_visits(self) -> "ObservationIn":
        if self.atc_successes > self.visits:
            raise ValueError("atc_successes cannot exceed visits")
        if self.purchase_successes > self.visits:
            raise ValueError("purchase_successes cannot exceed visits")
        return self

    def to_observation(self) -> VariantObservation:
        return VariantObservation(
            visits=self.visits,
            atc_successes=self.atc_successes,
            purchase_successes=self.purchase_successes,
        )


class AnalysisRequest(BaseModel):
    control: ObservationIn
    variant: ObservationIn
    mode: AnalysisMode | None = None
    days_running: float = Field(default=0, ge=0)
    samples: int | None = Field(default=None, ge=1)
    business_mde: float | None = None
    seed: int | None = None


class TotalsOut(BaseModel):
    control_visits: int
    variant_visits: int


class MetricOut(BaseModel):
    prob_b: float
    prob_a: float
    expected_abs_lift: float
    expected_rel_lift: float
    ci95: tuple[float, float]
    totals: TotalsOut


class JointOut(BaseModel):
    prob_joint: float


class AnalysisOut(BaseModel):
    mode: AnalysisMode
    days_running: float
    control: ObservationIn
    variant: ObservationIn
    atc: MetricOut
    purchases: MetricOut
    joint: JointOut
    decision: str
    have_min_n: bool
    have_min_days: bool


class EventIn(BaseModel):
    # "A" = control, "B" = variant; other labels are ignored
    variant: str | None = None
    event_type: str


class WinnerRequest(BaseModel):
    test_id: str
    status: str
    created_at: datetime | None = None
    events: list[EventIn] = []
    mode: AnalysisMode | None = None
    business_mde: float | None = None
    seed: int | None = None


class WinnerOut(BaseModel):
    test_id: str
    status: str
    reason: str | None = None
    winner: str | None = None
    decision: str | None = None
    promote_variant: bool = False
    analysis: AnalysisOut | None = None


class ModeOut(BaseModel):
    threshold: float
    min_n: int
    min_days: float


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/analysis/modes", response_model=dict[AnalysisMode, ModeOut])
async def list_modes() -> dict[AnalysisMode, ModeOut]:
    """Threshold and minimum-traffic gates for each analysis mode."""
    return {mode: ModeOut(**params._asdict()) for mode, params in MODE_PARAMS.items()}


@router.post("/analysis", response_model=AnalysisOut)
def run_analysis(body: AnalysisRequest) -> AnalysisOut:
    """Run the dual-metric analysis on aggregated counts."""
    samples = body.samples if body.samples is not None else settings.DEFAULT_SAMPLES
    if samples > settings.MAX_SAMPLES:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"samples may not exceed {settings.MAX_SAMPLES}",
        )

    try:
        result = analyze(
            body.control.to_observation(),
            body.variant.to_observation(),
            mode=body.mode or settings.DEFAULT_MODE,
            days_running=body.days_running,
            samples=samples,
            business_mde=(
                body.business_mde
                if body.business_mde is not None
                else settings.DEFAULT_BUSINESS_MDE
            ),
            rng=body.seed,
            max_rounds=settings.GAMMA_MAX_ROUNDS,
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    except SamplingError as exc:
        logger.exception("Posterior sampling failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc

    return AnalysisOut(**result.to_dict())


@router.post("/analysis/winner", response_model=WinnerOut)
def analyze_winner(body: WinnerRequest) -> WinnerOut:
    """Evaluate a test from its raw event snapshot and report any winner.

    Returns ``skipped`` for inactive tests or arms without impressions,
    ``no_winner`` while the evidence is inconclusive, and
    ``winner_declared`` with the winning arm otherwise.
    """
    try:
        evaluation = evaluate_winner(
            status=body.status,
            created_at=body.created_at,
            events=[ev.model_dump() for ev in body.events],
            mode=body.mode,
            business_mde=body.business_mde,
            rng=body.seed,
            test_id=body.test_id,
        )
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    except SamplingError as exc:
        logger.exception("Winner evaluation failed for test %s", body.test_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
        ) from exc

    return WinnerOut(test_id=body.test_id, **evaluation.to_dict())
