from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class GenerationOptions:
    temperature: float = 0.9
    max_tokens: int = 2000


# ─── Errors ───────────────────────────────────────────────────────────────────
class LLMError(Exception):
    """Base class for everything that can go wrong between a prompt and a parsed payload."""


class ProviderError(LLMError):
    """The provider answered with a non-success status, or could not be reached at all."""

    def __init__(self, provider: str, status_code: Optional[int], body: str):
        self.provider = provider
        self.status_code = status_code
        self.body = body
        if status_code is None:
            super().__init__(f"{provider} request failed: {body}")
        else:
            super().__init__(f"{provider} API error ({status_code}): {body}")


class MalformedResponseError(LLMError):
    """The provider answered 2xx but the text field is missing from the body."""


class ProviderNotConfiguredError(LLMError):
    pass


# ─── Interface ────────────────────────────────────────────────────────────────
class BaseLLM(ABC):
    """Unified interface every LLM backend must implement."""

    name: str = "None"
    model: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        return True

    @abstractmethod
    async def generate(self, system_prompt: str, user_prompt: str,
                       options: GenerationOptions = GenerationOptions()) -> str:
        """Send one system/user prompt pair and return the raw text of the reply."""
        ...


class UnconfiguredLLM(BaseLLM):
    """Stand-in used when no provider credential is present at startup."""

    @property
    def is_configured(self) -> bool:
        return False

    async def generate(self, system_prompt: str, user_prompt: str,
                       options: GenerationOptions = GenerationOptions()) -> str:
        raise ProviderNotConfiguredError(
            "No AI provider configured. Set GOOGLE_API_KEY, OPENAI_API_KEY or GROQ_API_KEY."
        )
