import logging
import time

from game.schemas import Outcome, OutcomeRequest, Scenario, ScenarioRequest, validate_payload
from llm.base_llm import BaseLLM, GenerationOptions
from llm.response_parser import parse_ai_response
from memory.scenario_cache import ScenarioCache
from prompts.prompt_builder import (
    build_outcome_prompts,
    build_scenario_prompts,
    normalize_language,
    resolve_era,
)

log = logging.getLogger("crossroads.pipeline")


class ScenarioOrchestrator:
    def __init__(self, llm: BaseLLM, cache: ScenarioCache,
                 options: GenerationOptions = GenerationOptions(), choice_count: int = 4):
        self.llm = llm
        self.cache = cache
        self.options = options
        self.choice_count = choice_count

    @staticmethod
    def cache_key(era: str, language: str) -> str:
        return ScenarioCache.make_key(resolve_era(era), normalize_language(language))

    @staticmethod
    def should_prefill(req: ScenarioRequest) -> bool:
        return not req.is_custom

    # ── Scenario ──────────────────────────────────────────────────────────────
    async def get_scenario(self, req: ScenarioRequest) -> Scenario:
        """
        Serve from the cache when the request is cache-eligible and a pooled
        scenario survives the player's exclusions; otherwise generate one now.
        Custom era/context requests never touch the cache.
        """
        if not req.is_custom:
            key = self.cache_key(req.era, req.language)
            cached = self.cache.take(key, req.previous_leaders, req.previous_event_keys or None)
            if cached is not None:
                return cached

        return await self.generate_scenario(req)

    async def generate_scenario(self, req: ScenarioRequest) -> Scenario:
        system_prompt, user_prompt = build_scenario_prompts(req, self.choice_count)
        t = time.perf_counter()
        raw = await self.llm.generate(system_prompt, user_prompt, self.options)
        scenario = validate_payload(Scenario, parse_ai_response(raw))
        log.info(f"[generate_scenario] {scenario.leader!r} ({scenario.era}) in {time.perf_counter() - t:.2f}s")
        return scenario

    # ── Outcome ───────────────────────────────────────────────────────────────
    async def generate_outcome(self, req: OutcomeRequest) -> Outcome:
        system_prompt, user_prompt = build_outcome_prompts(req)
        t = time.perf_counter()
        raw = await self.llm.generate(system_prompt, user_prompt, self.options)
        outcome = validate_payload(Outcome, parse_ai_response(raw))
        if outcome.matched_history != req.is_historical_choice:
            log.warning(
                f"[generate_outcome] Model reported matchedHistory={outcome.matched_history}, "
                f"overriding with {req.is_historical_choice}"
            )
            outcome = outcome.model_copy(update={"matched_history": req.is_historical_choice})
        log.info(f"[generate_outcome] {req.scenario.leader!r} in {time.perf_counter() - t:.2f}s")
        return outcome

    # ── Prefill ───────────────────────────────────────────────────────────────
    async def prefill(self, era: str, language: str) -> None:
        """
        Top up the pool for (era, language) by one scenario. Runs detached from
        any request, so failures are logged and dropped here.
        """
        key = self.cache_key(era, language)
        if not self.cache.needs_prefill(key):
            log.debug(
                f"[prefill] Skipping {key}  size={self.cache.size(key)}  in_flight={self.cache.in_flight(key)}"
            )
            return

        with self.cache.prefill_slot(key):
            log.info(f"[prefill] Generating spare scenario for {key}")
            try:
                scenario = await self.generate_scenario(
                    ScenarioRequest(era=resolve_era(era), language=normalize_language(language))
                )
            except Exception as e:
                log.warning(f"[prefill] Failed for {key}: {e}")
                return
            self.cache.put(key, scenario)
