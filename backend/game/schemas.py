from typing import Any, List, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from llm.base_llm import LLMError

M = TypeVar("M", bound=BaseModel)


class InvalidPayloadError(LLMError):
    """The AI reply was valid JSON but not the shape the game expects."""


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ─── Game data ────────────────────────────────────────────────────────────────
class Choice(CamelModel):
    model_config = ConfigDict(frozen=True)

    text: str
    is_historical: bool


class Scenario(CamelModel):
    model_config = ConfigDict(frozen=True)

    era: str
    leader: str
    title: str
    context: str
    dilemma: str
    choices: Tuple[Choice, ...]
    historical_fact: str

    @field_validator("choices")
    @classmethod
    def _one_historical_choice(cls, choices: Tuple[Choice, ...]) -> Tuple[Choice, ...]:
        if len(choices) not in (2, 4):
            raise ValueError(f"expected 2 or 4 choices, got {len(choices)}")
        historical = sum(1 for c in choices if c.is_historical)
        if historical != 1:
            raise ValueError(f"exactly one choice must be historical, got {historical}")
        return choices

    @property
    def event_key(self) -> str:
        return f"{self.leader}||{self.era}||{self.dilemma}"


class Outcome(CamelModel):
    matched_history: bool
    what_actually_happened: str
    alternate_history: str
    fun_fact: str
    lessons_learned: str


# ─── Requests / responses ─────────────────────────────────────────────────────
class ScenarioRequest(CamelModel):
    era: str = "all"
    previous_leaders: List[str] = []
    previous_event_keys: List[str] = []
    previous_event_summaries: List[str] = []
    language: str = "en"
    custom_era: str = ""
    custom_context: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def _null_means_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value

    @property
    def is_custom(self) -> bool:
        return bool(self.custom_era.strip() or self.custom_context.strip())


class OutcomeRequest(CamelModel):
    scenario: Scenario
    player_choice: str
    is_historical_choice: bool = False
    language: str = "en"

    @field_validator("is_historical_choice", "language", mode="before")
    @classmethod
    def _null_means_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].default
        return value


class HealthResponse(CamelModel):
    status: str = "ok"
    api_configured: bool
    provider: str


def validate_payload(model: Type[M], data: Any) -> M:
    """Turn a parsed AI reply into ``model``, raising InvalidPayloadError on mismatch."""
    if not isinstance(data, dict):
        raise InvalidPayloadError(f"Expected a JSON object for {model.__name__}, got {type(data).__name__}")
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise InvalidPayloadError(f"AI response is not a valid {model.__name__}: {e}") from e
