import logging
from typing import List, NamedTuple

from game.schemas import OutcomeRequest, ScenarioRequest

log = logging.getLogger("crossroads.prompts")


class PromptPair(NamedTuple):
    system: str
    user: str


ERA_PROMPTS = {
    "all": "any time period from ancient history to the 20th century",
    "ancient": "the ancient world (3000 BCE - 500 CE), such as Egypt, Greece, Rome, Persia, or China",
    "medieval": (
        "the medieval period (500 CE - 1400 CE), including the Byzantine Empire, "
        "Islamic Golden Age, Crusades, or feudal Europe/Asia"
    ),
    "renaissance": (
        "the Renaissance and Early Modern period (1400 - 1700), including the Age of "
        "Exploration, Reformation, and Scientific Revolution"
    ),
    "modern": "the Modern era (1700 - 1900), including revolutions, colonialism, and nation-building",
    "contemporary": (
        "the 20th century (1900 - 2000), including world wars, cold war, civil rights "
        "movements, and decolonization"
    ),
}

SUPPORTED_LANGUAGES = ("en", "zh")

SCENARIO_SYSTEM = (
    "You are a brilliant historian specializing in lesser-known but pivotal moments in history. "
    "You always respond with valid JSON only, no markdown formatting or extra text."
)

OUTCOME_SYSTEM = (
    "You are a brilliant historian specializing in counterfactual history. "
    "You always respond with valid JSON only, no markdown formatting or extra text."
)

SUPPORTED_CHOICE_COUNTS = (2, 4)

CHOICE_HINTS = {
    2: (
        "first option - a clear course of action",
        "second option - the alternative course of action",
    ),
    4: (
        "first option - a clear course of action",
        "second option - another plausible course of action",
        "third option - another plausible course of action",
        "fourth option - another plausible course of action",
    ),
}

CHOICE_WORDS = {2: ("TWO", "Both", "both"), 4: ("FOUR", "All four", "all 4")}

SCENARIO_SCHEMA_TEMPLATE = """{{
    "era": "specific year and location",
    "leader": "full name of the historical figure",
    "title": "their title/position at the time",
    "context": "1-2 paragraphs of vivid, accurate historical context setting up the dilemma (make it dramatic and engaging)",
    "dilemma": "a single compelling question presenting the choice",
    "choices": [
{choices}
    ],
    "historicalFact": "what actually happened and why it mattered in 2-3 sentences"
}}"""


def scenario_schema(choice_count: int = 4) -> str:
    choices = ",\n".join(
        "        {\n"
        f'            "text": "{hint}",\n'
        '            "isHistorical": true or false\n'
        "        }"
        for hint in CHOICE_HINTS[choice_count]
    )
    return SCENARIO_SCHEMA_TEMPLATE.format(choices=choices)

ENGLISH_INSTRUCTION = "Write every string value in English."

CHINESE_INSTRUCTION = (
    "LANGUAGE: Write every string value (era, leader, title, context, dilemma, choice text, "
    "historical fact and all narrative fields) in Simplified Chinese. Keep all JSON keys and "
    "boolean values exactly as shown in English."
)


# ─── Normalisation ────────────────────────────────────────────────────────────
def resolve_era(era: str) -> str:
    """Map an incoming era code onto a known one; anything unrecognised means 'all'."""
    code = (era or "").strip().lower()
    return code if code in ERA_PROMPTS else "all"


def normalize_language(language: str) -> str:
    code = (language or "").strip().lower()
    return code if code in SUPPORTED_LANGUAGES else "en"


def describe_era(era: str, custom_era: str = "") -> str:
    if custom_era and custom_era.strip():
        return custom_era.strip()
    return ERA_PROMPTS[resolve_era(era)]


def language_instruction(language: str) -> str:
    return CHINESE_INSTRUCTION if normalize_language(language) == "zh" else ENGLISH_INSTRUCTION


def _exclusions(previous_leaders: List[str], previous_event_summaries: List[str]) -> str:
    lines = []
    leaders = [name.strip() for name in previous_leaders if name and name.strip()]
    if leaders:
        lines.append(f"Do NOT use any of these leaders who have already appeared: {', '.join(leaders)}.")
    events = [summary.strip() for summary in previous_event_summaries if summary and summary.strip()]
    if events:
        bullet_list = "\n".join(f"- {summary}" for summary in events)
        lines.append(f"Do NOT reuse any of these events, which the player has already seen:\n{bullet_list}")
    return "\n".join(lines)


# ─── Scenario ─────────────────────────────────────────────────────────────────
def build_scenario_prompts(req: ScenarioRequest, choice_count: int = 4) -> PromptPair:
    if choice_count not in SUPPORTED_CHOICE_COUNTS:
        raise ValueError(f"choice_count must be one of {SUPPORTED_CHOICE_COUNTS}, got {choice_count}")
    count_word, count_title, count_lower = CHOICE_WORDS[choice_count]
    time_period = describe_era(req.era, req.custom_era)
    exclusions = _exclusions(req.previous_leaders, req.previous_event_summaries)

    custom_context = ""
    if req.custom_context.strip():
        custom_context = (
            "\nAdditional historical context requested by the player (build the scenario around it):\n"
            f"{req.custom_context.strip()}\n"
        )

    user_prompt = f"""You are a historical expert creating an educational game. Generate a historically accurate and dramatic scenario about a real historical leader facing a critical decision.

IMPORTANT REQUIREMENTS:
- Choose OBSCURE or lesser-known historical figures and events - AVOID famous stories like Caesar crossing the Rubicon, Washington crossing the Delaware, Churchill during WWII, etc.
- Pick moments that are historically significant but not commonly taught in schools
- The correct choice should NOT be obvious - {count_lower} options should seem equally reasonable

Time Period: {time_period}
{custom_context}{exclusions}

Create a scenario with:
1. A real but lesser-known historical leader who faced a genuine difficult choice
2. Accurate historical context leading up to the decision (1-2 paragraphs, not too complicated)
3. {count_word} distinct choices they could have made - {count_lower} should seem plausible
4. The scenario should be dramatic, engaging, and teach something surprising about history

Respond in this exact JSON format:
{scenario_schema(choice_count)}

Only ONE choice should have isHistorical: true. {count_title} choices should seem equally reasonable given the circumstances - make it genuinely difficult to guess which one is correct!

{language_instruction(req.language)}"""

    log.debug(
        f"[scenario] era={resolve_era(req.era)!r} custom_era={bool(req.custom_era.strip())} "
        f"excluded_leaders={len(req.previous_leaders)} excluded_events={len(req.previous_event_summaries)}"
    )
    return PromptPair(SCENARIO_SYSTEM, user_prompt)


# ─── Outcome ──────────────────────────────────────────────────────────────────
def build_outcome_prompts(req: OutcomeRequest) -> PromptPair:
    s = req.scenario
    matched = "true" if req.is_historical_choice else "false"
    verdict = "IS" if req.is_historical_choice else "is NOT"
    alternative = "other choice" if req.is_historical_choice else "player's choice"

    user_prompt = f"""You are a historical expert. A player is playing a history game where they made a choice as {s.leader}.

SCENARIO:
Era: {s.era}
Leader: {s.leader} ({s.title})
Context: {s.context}
Dilemma: {s.dilemma}

THE PLAYER CHOSE: "{req.player_choice}"

This {verdict} what {s.leader} actually chose historically.

Historical fact: {s.historical_fact}

Generate a response in this exact JSON format:
{{
    "matchedHistory": {matched},
    "whatActuallyHappened": "2-3 paragraphs describing what {s.leader} actually did and the real historical consequences - make it vivid and interesting",
    "alternateHistory": "2-3 paragraphs of plausible alternate history - what likely would have happened if the {alternative} had been made. Be specific about potential consequences, consider butterfly effects, and make it thought-provoking",
    "funFact": "one fascinating lesser-known fact about this historical moment or person",
    "lessonsLearned": "what this moment teaches us about leadership, decision-making, or human nature"
}}

Make both outcomes engaging and educational. The alternate history should be plausible based on the actual historical circumstances.

{language_instruction(req.language)}"""

    return PromptPair(OUTCOME_SYSTEM, user_prompt)
