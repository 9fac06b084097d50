import logging
from typing import Callable, Dict, Optional, Tuple

from config.settings import Settings
from llm.base_llm import BaseLLM, UnconfiguredLLM

log = logging.getLogger("crossroads.llm")


def _gemini(settings: Settings, api_key: str) -> BaseLLM:
    from llm.gemini_client import GeminiClient, DEFAULT_MODEL
    return GeminiClient(api_key, model=settings.llm_model or DEFAULT_MODEL, timeout=settings.timeout_seconds)


def _openai(settings: Settings, api_key: str) -> BaseLLM:
    from llm.openai_client import OpenAIClient, DEFAULT_MODEL
    return OpenAIClient(api_key, model=settings.llm_model or DEFAULT_MODEL, timeout=settings.timeout_seconds)


def _groq(settings: Settings, api_key: str) -> BaseLLM:
    from llm.groq_client import GroqClient, DEFAULT_MODEL
    return GroqClient(api_key, model=settings.llm_model or DEFAULT_MODEL, timeout=settings.timeout_seconds)


# Auto-detection order when LLM_PROVIDER is not set
PROVIDERS: Dict[str, Tuple[str, Callable[[Settings, str], BaseLLM]]] = {
    "gemini": ("google_api_key", _gemini),
    "openai": ("openai_api_key", _openai),
    "groq": ("groq_api_key", _groq),
}


def _select(settings: Settings) -> Optional[str]:
    if settings.llm_provider:
        if settings.llm_provider not in PROVIDERS:
            log.warning(f"⚠️   Unknown LLM_PROVIDER={settings.llm_provider!r}. Expected one of {list(PROVIDERS)}.")
            return None
        key_attr, _ = PROVIDERS[settings.llm_provider]
        if not getattr(settings, key_attr):
            log.warning(f"⚠️   LLM_PROVIDER={settings.llm_provider} but {key_attr.upper()} is missing.")
            return None
        return settings.llm_provider

    for provider, (key_attr, _) in PROVIDERS.items():
        if getattr(settings, key_attr):
            return provider
    return None


def build_llm(settings: Settings) -> BaseLLM:
    """Pick the active provider once at startup. Missing credentials are not fatal."""
    provider = _select(settings)
    if provider is None:
        log.warning("⚠️   No AI API key configured! Add GOOGLE_API_KEY, OPENAI_API_KEY or GROQ_API_KEY to .env")
        return UnconfiguredLLM()

    key_attr, factory = PROVIDERS[provider]
    llm = factory(settings, getattr(settings, key_attr))
    log.info(f"✅  Using {llm.name}  model={llm.model}")
    return llm
