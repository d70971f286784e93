"""HTTP tests for the analysis router, using FastAPI's TestClient."""

import pytest
from fastapi.testclient import TestClient

from abverdict.core.config import settings
from abverdict.main import app

PREFIX = settings.API_V1_PREFIX


@pytest.fixture(scope="module")
def client():
    with TestClient(app) as c:
        yield c


def _body(**overrides):
    body = {
        "control": {"visits": 1500, "atc_successes": 150, "purchase_successes": 75},
        "variant": {"visits": 1500, "atc_successes": 180, "purchase_successes": 90},
        "mode": "standard",
        "days_running": 7,
        "samples": 5000,
        "seed": 42,
    }
    body.update(overrides)
    return body


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}


class TestModesEndpoint:
    def test_lists_modes(self, client):
        resp = client.get(f"{PREFIX}/analysis/modes")
        assert resp.status_code == 200
        data = resp.json()
        assert data["fast"] == {"threshold": 0.90, "min_n": 500, "min_days": 3}
        assert data["standard"] == {"threshold": 0.95, "min_n": 1500, "min_days": 7}
        assert data["careful"] == {"threshold": 0.975, "min_n": 3000, "min_days": 10}


class TestAnalysisEndpoint:
    def test_returns_result(self, client):
        resp = client.post(f"{PREFIX}/analysis", json=_body())
        assert resp.status_code == 200
        data = resp.json()
        assert data["have_min_n"] is True
        assert data["have_min_days"] is True
        assert data["purchases"]["expected_rel_lift"] > 0
        assert data["purchases"]["totals"] == {"control_visits": 1500, "variant_visits": 1500}
        assert data["decision"] in {
            "variant_wins_on_purchases",
            "variant_likely_on_atc_but_purchases_inconclusive",
            "no_clear_winner",
        }

    def test_seed_is_reproducible(self, client):
        first = client.post(f"{PREFIX}/analysis", json=_body(seed=7)).json()
        second = client.post(f"{PREFIX}/analysis", json=_body(seed=7)).json()
        assert first == second

    def test_defaults_applied(self, client):
        body = _body(samples=None)
        del body["mode"]
        resp = client.post(f"{PREFIX}/analysis", json=body)
        assert resp.status_code == 200
        assert resp.json()["mode"] == settings.DEFAULT_MODE.value

    def test_successes_above_visits_rejected(self, client):
        body = _body(control={"visits": 10, "atc_successes": 11, "purchase_successes": 0})
        resp = client.post(f"{PREFIX}/analysis", json=body)
        assert resp.status_code == 422

    def test_negative_visits_rejected(self, client):
        body = _body(variant={"visits": -1})
        resp = client.post(f"{PREFIX}/analysis", json=body)
        assert resp.status_code == 422

    def test_unknown_mode_rejected(self, client):
        resp = client.post(f"{PREFIX}/analysis", json=_body(mode="reckless"))
        assert resp.status_code == 422

    def test_sample_bounds(self, client):
        assert client.post(f"{PREFIX}/analysis", json=_body(samples=0)).status_code == 422
        too_many = _body(samples=settings.MAX_SAMPLES + 1)
        assert client.post(f"{PREFIX}/analysis", json=too_many).status_code == 422

    def test_invalid_seed_rejected(self, client):
        resp = client.post(f"{PREFIX}/analysis", json=_body(seed=-1))
        assert resp.status_code == 422
        assert "non-negative" in resp.json()["detail"]


class TestWinnerEndpoint:
    def test_inactive_skipped(self, client):
        resp = client.post(
            f"{PREFIX}/analysis/winner",
            json={"test_id": "t-1", "status": "paused", "events": []},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "skipped"
        assert data["reason"] == "test_not_active"
        assert data["test_id"] == "t-1"

    def test_no_impressions_skipped(self, client):
        resp = client.post(
            f"{PREFIX}/analysis/winner",
            json={
                "test_id": "t-2",
                "status": "active",
                "events": [{"variant": "A", "event_type": "impression"}],
            },
        )
        assert resp.json()["reason"] == "insufficient_data"

    def test_no_winner_includes_analysis(self, client):
        events = (
            [{"variant": "A", "event_type": "impression"}] * 30
            + [{"variant": "B", "event_type": "impression"}] * 30
            + [{"variant": "A", "event_type": "purchase"}] * 2
            + [{"variant": "B", "event_type": "purchase"}] * 2
        )
        resp = client.post(
            f"{PREFIX}/analysis/winner",
            json={
                "test_id": "t-3",
                "status": "active",
                "created_at": "2026-01-01T00:00:00Z",
                "events": events,
                "seed": 3,
            },
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "no_winner"
        assert data["winner"] is None
        assert data["analysis"]["control"]["visits"] == 30

    def test_unknown_variant_labels_ignored(self, client):
        events = (
            [{"variant": "A", "event_type": "impression"}] * 30
            + [{"variant": "B", "event_type": "impression"}] * 30
            + [
                {"variant": "control", "event_type": "impression"},
                {"variant": None, "event_type": "purchase"},
                {"event_type": "add_to_cart"},
            ]
        )
        resp = client.post(
            f"{PREFIX}/analysis/winner",
            json={"test_id": "t-4", "status": "active", "events": events, "seed": 5},
        )
        assert resp.status_code == 200
        analysis = resp.json()["analysis"]
        assert analysis["control"] == {"visits": 30, "atc_successes": 0, "purchase_successes": 0}
        assert analysis["variant"]["visits"] == 30

    def test_event_type_required(self, client):
        resp = client.post(
            f"{PREFIX}/analysis/winner",
            json={"test_id": "t-5", "status": "active", "events": [{"variant": "A"}]},
        )
        assert resp.status_code == 422


class TestSamplingFailure:
    """An exhausted rejection sampler surfaces as a 500."""

    @pytest.fixture(autouse=True)
    def no_rejection_rounds(self, monkeypatch):
        monkeypatch.setattr(settings, "GAMMA_MAX_ROUNDS", 0)

    def test_analysis_returns_500(self, client):
        resp = client.post(f"{PREFIX}/analysis", json=_body())
        assert resp.status_code == 500

    def test_winner_returns_500(self, client):
        events = [{"variant": "A", "event_type": "impression"}] * 10 + [
            {"variant": "B", "event_type": "impression"}
        ] * 10
        resp = client.post(
            f"{PREFIX}/analysis/winner",
            json={"test_id": "t-6", "status": "active", "events": events},
        )
        assert resp.status_code == 500
