"""
Pytest fixtures shared by the Crossroads backend test suite.
"""

import json
from typing import Any, Dict, List, Optional

import pytest

from game.schemas import Scenario
from llm.base_llm import BaseLLM, GenerationOptions
from memory.scenario_cache import ScenarioCache
from orchestrator.pipeline import ScenarioOrchestrator


def scenario_payload(leader: str = "Hannibal Barca", era: str = "216 BCE, Apulia",
                     dilemma: str = "March on Rome or wait?", n_choices: int = 4,
                     historical_index: int = 1) -> Dict[str, Any]:
    return {
        "era": era,
        "leader": leader,
        "title": "Carthaginian general",
        "context": "After Cannae, the Roman field army lies destroyed.",
        "dilemma": dilemma,
        "choices": [
            {"text": f"Option {i + 1}", "isHistorical": i == historical_index}
            for i in range(n_choices)
        ],
        "historicalFact": "He did not march on Rome.",
    }


def outcome_payload(matched: bool = False) -> Dict[str, Any]:
    return {
        "matchedHistory": matched,
        "whatActuallyHappened": "He waited for reinforcements that never came.",
        "alternateHistory": "Had he chosen to retreat, Carthage would have lost its Italian allies.",
        "funFact": "His army included war elephants.",
        "lessonsLearned": "Momentum is perishable.",
    }


def make_scenario(leader: str = "Hannibal Barca", **kwargs) -> Scenario:
    return Scenario.model_validate(scenario_payload(leader=leader, **kwargs))


class FakeLLM(BaseLLM):
    """Replays queued replies (strings, dicts, or exceptions) and records every call."""

    name = "Fake"
    model = "fake-model"

    def __init__(self, replies: Optional[List[Any]] = None, default: Any = None):
        self.replies = list(replies or [])
        self.default = default
        self.calls: List[Dict[str, Any]] = []
        self.active = 0
        self.max_active = 0
        self.gate = None

    async def generate(self, system_prompt: str, user_prompt: str,
                       options: GenerationOptions = GenerationOptions()) -> str:
        self.calls.append({"system": system_prompt, "user": user_prompt, "options": options})
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.gate is not None:
                await self.gate.wait()
            reply = self.replies.pop(0) if self.replies else self.default
            if isinstance(reply, Exception):
                raise reply
            if isinstance(reply, dict):
                return json.dumps(reply)
            return reply
        finally:
            self.active -= 1


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM(default=scenario_payload(leader="Prefilled Leader"))


@pytest.fixture
def cache() -> ScenarioCache:
    return ScenarioCache(capacity=6)


@pytest.fixture
def orchestrator(fake_llm, cache) -> ScenarioOrchestrator:
    return ScenarioOrchestrator(fake_llm, cache)
