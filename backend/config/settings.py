import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional

log = logging.getLogger("crossroads.config")

DEFAULT_STATIC_DIR = str(Path(__file__).resolve().parents[2] / "public")


@dataclass(frozen=True)
class Settings:
    """Runtime configuration read once at startup."""

    google_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    groq_api_key: Optional[str] = None
    llm_provider: Optional[str] = None
    llm_model: Optional[str] = None
    temperature: float = 0.9
    max_tokens: int = 2000
    timeout_seconds: float = 120.0
    cache_capacity: int = 6
    scenario_choices: int = 4
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])
    static_dir: str = DEFAULT_STATIC_DIR
    port: int = 3000
    log_level: str = "INFO"

    @property
    def api_configured(self) -> bool:
        return bool(self.google_api_key or self.openai_api_key or self.groq_api_key)


# ─── Parsing helpers ──────────────────────────────────────────────────────────
def _get_str(env: Mapping[str, str], name: str) -> Optional[str]:
    value = env.get(name, "").strip()
    return value or None


def _get_number(env: Mapping[str, str], name: str, default, cast):
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        log.warning(f"⚠️   {name}={raw!r} is not a valid number, using {default}")
        return default
    if value < 0:
        log.warning(f"⚠️   {name}={raw!r} must not be negative, using {default}")
        return default
    return value


def _get_choice_count(env: Mapping[str, str]) -> int:
    value = _get_number(env, "SCENARIO_CHOICES", 4, int)
    if value not in (2, 4):
        log.warning(f"⚠️   SCENARIO_CHOICES={value} is not supported (use 2 or 4), using 4")
        return 4
    return value


def parse_origins(raw: str) -> List[str]:
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or ["*"]


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    env = os.environ if environ is None else environ
    provider = _get_str(env, "LLM_PROVIDER")
    return Settings(
        google_api_key=_get_str(env, "GOOGLE_API_KEY"),
        openai_api_key=_get_str(env, "OPENAI_API_KEY"),
        groq_api_key=_get_str(env, "GROQ_API_KEY"),
        llm_provider=provider.lower() if provider else None,
        llm_model=_get_str(env, "LLM_MODEL"),
        temperature=_get_number(env, "LLM_TEMPERATURE", 0.9, float),
        max_tokens=_get_number(env, "LLM_MAX_TOKENS", 2000, int),
        timeout_seconds=_get_number(env, "LLM_TIMEOUT_SECONDS", 120.0, float),
        cache_capacity=_get_number(env, "SCENARIO_CACHE_CAPACITY", 6, int),
        scenario_choices=_get_choice_count(env),
        cors_allow_origins=parse_origins(env.get("CORS_ALLOW_ORIGINS", "")),
        static_dir=_get_str(env, "STATIC_DIR") or DEFAULT_STATIC_DIR,
        port=_get_number(env, "PORT", 3000, int),
        log_level=(_get_str(env, "LOG_LEVEL") or "INFO").upper(),
    )
