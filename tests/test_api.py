"""
Tests for the HTTP endpoints.

The orchestrator dependency is overridden with one backed by FakeLLM, so no
provider is contacted. TestClient runs background tasks before returning,
which lets these tests observe the prefill scheduled by generate-scenario.
"""

import pytest
from fastapi.testclient import TestClient

from conftest import make_scenario, outcome_payload, scenario_payload

import main
from game.router import get_orchestrator
from llm.base_llm import ProviderError, UnconfiguredLLM
from orchestrator.pipeline import ScenarioOrchestrator


@pytest.fixture
def client(orchestrator):
    main.app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    with TestClient(main.app) as c:
        yield c
    main.app.dependency_overrides[get_orchestrator] = lambda: main.orchestrator


class TestHealthEndpoint:

    def test_health_reports_configured_provider(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "apiConfigured": True, "provider": "Fake"}

    def test_health_without_credentials(self, cache):
        main.app.dependency_overrides[get_orchestrator] = lambda: ScenarioOrchestrator(UnconfiguredLLM(), cache)
        try:
            response = TestClient(main.app).get("/api/health")
        finally:
            main.app.dependency_overrides[get_orchestrator] = lambda: main.orchestrator
        assert response.json()["apiConfigured"] is False


class TestGenerateScenario:

    def test_empty_cache_generates_then_prefills(self, client, fake_llm, cache):
        fake_llm.replies = [scenario_payload(leader="Tomyris", era="530 BCE, Central Asia")]

        response = client.post("/api/generate-scenario", json={"era": "ancient", "previousLeaders": [], "language": "en"})

        assert response.status_code == 200
        data = response.json()
        assert data["leader"] == "Tomyris"
        assert "BCE" in data["era"]
        assert sum(1 for c in data["choices"] if c["isHistorical"]) == 1
        assert set(data) == {"era", "leader", "title", "context", "dilemma", "choices", "historicalFact"}
        # one synchronous call, one background prefill
        assert len(fake_llm.calls) == 2
        assert "the ancient world" in fake_llm.calls[0]["user"]
        assert cache.size("ancient::en") == 1
        assert cache.in_flight("ancient::en") == 0

    def test_defaults_for_empty_body(self, client, fake_llm, cache):
        response = client.post("/api/generate-scenario", json={})
        assert response.status_code == 200
        assert cache.size("all::en") == 1

    def test_served_from_cache(self, client, fake_llm, cache):
        cache.put("medieval::zh", make_scenario("Pooled"))

        response = client.post("/api/generate-scenario", json={"era": "medieval", "language": "zh"})

        assert response.json()["leader"] == "Pooled"
        # only the refill call
        assert len(fake_llm.calls) == 1
        assert cache.size("medieval::zh") == 1

    def test_excluded_event_key_is_not_served(self, client, fake_llm, cache):
        pooled = make_scenario("Pooled")
        cache.put("all::en", pooled)
        fake_llm.replies = [scenario_payload(leader="Fresh")]

        response = client.post("/api/generate-scenario", json={"previousEventKeys": [pooled.event_key]})

        assert response.json()["leader"] == "Fresh"

    def test_custom_request_does_not_prefill(self, client, fake_llm, cache):
        response = client.post(
            "/api/generate-scenario",
            json={"era": "ancient", "customEra": "Heian Japan", "customContext": ""},
        )
        assert response.status_code == 200
        assert len(fake_llm.calls) == 1
        assert "Heian Japan" in fake_llm.calls[0]["user"]
        assert cache.stats() == {}

    def test_null_fields_fall_back_to_defaults(self, client, fake_llm, cache):
        response = client.post(
            "/api/generate-scenario",
            json={
                "era": None,
                "previousLeaders": None,
                "previousEventKeys": None,
                "previousEventSummaries": None,
                "language": None,
                "customEra": None,
                "customContext": None,
            },
        )

        assert response.status_code == 200
        assert "any time period from ancient history" in fake_llm.calls[0]["user"]
        assert cache.size("all::en") == 1

    def test_malformed_body_fails_with_uniform_body(self, client, fake_llm):
        response = client.post("/api/generate-scenario", json={"era": 42, "previousLeaders": "Zenobia"})

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Failed to generate scenario"
        assert "previousLeaders" in data["details"]
        assert fake_llm.calls == []

    def test_provider_failure_returns_500(self, client, fake_llm, cache):
        fake_llm.replies = [ProviderError("Fake", 429, "quota exceeded")]

        response = client.post("/api/generate-scenario", json={"era": "modern"})

        assert response.status_code == 500
        assert response.json() == {
            "error": "Failed to generate scenario",
            "details": "Fake API error (429): quota exceeded",
        }
        assert len(fake_llm.calls) == 1

    def test_unparseable_reply_returns_500(self, client, fake_llm):
        fake_llm.replies = ["The model refused."]
        response = client.post("/api/generate-scenario", json={})
        assert response.status_code == 500
        assert response.json()["error"] == "Failed to generate scenario"
        assert response.json()["details"]

    def test_background_failure_does_not_affect_response(self, client, fake_llm, cache):
        fake_llm.replies = [scenario_payload(leader="Served"), ProviderError("Fake", 500, "boom")]

        response = client.post("/api/generate-scenario", json={"era": "renaissance"})

        assert response.status_code == 200
        assert response.json()["leader"] == "Served"
        assert cache.size("renaissance::en") == 0
        assert cache.in_flight("renaissance::en") == 0


class TestGenerateOutcome:

    def _body(self, **overrides):
        body = {
            "scenario": scenario_payload(),
            "playerChoice": "Retreat",
            "isHistoricalChoice": False,
            "language": "en",
        }
        body.update(overrides)
        return body

    def test_non_historical_choice(self, client, fake_llm):
        fake_llm.replies = [outcome_payload(matched=False)]

        response = client.post("/api/generate-outcome", json=self._body())

        assert response.status_code == 200
        data = response.json()
        assert data["matchedHistory"] is False
        assert data["alternateHistory"]
        assert 'THE PLAYER CHOSE: "Retreat"' in fake_llm.calls[0]["user"]

    def test_failure_shape(self, client, fake_llm):
        fake_llm.replies = ["not json"]
        response = client.post("/api/generate-outcome", json=self._body())
        assert response.status_code == 500
        assert response.json()["error"] == "Failed to generate outcome"

    def test_missing_scenario_fails_with_uniform_body(self, client, fake_llm):
        response = client.post("/api/generate-outcome", json={"playerChoice": "Retreat"})

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Failed to generate outcome"
        assert "scenario" in data["details"]
        assert fake_llm.calls == []

    def test_null_language_uses_default(self, client, fake_llm):
        fake_llm.replies = [outcome_payload()]
        response = client.post("/api/generate-outcome", json=self._body(language=None, isHistoricalChoice=None))
        assert response.status_code == 200
        assert response.json()["matchedHistory"] is False

    def test_outcome_does_not_touch_cache(self, client, fake_llm, cache):
        fake_llm.replies = [outcome_payload()]
        client.post("/api/generate-outcome", json=self._body())
        assert cache.stats() == {}
        assert len(fake_llm.calls) == 1
