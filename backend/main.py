from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from dotenv import load_dotenv
import os
import logging

# ──────────────────────────────────────────────────────────────────────────────
# .env + settings
# ──────────────────────────────────────────────────────────────────────────────
load_dotenv()

from config.settings import load_settings

settings = load_settings()

# ──────────────────────────────────────────────────────────────────────────────
# Logging
# ──────────────────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s  [%(levelname)-8s]  %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger("crossroads")
log.info("Environment variables loaded from .env")

from llm.base_llm import GenerationOptions
from llm.factory import build_llm
from memory.scenario_cache import ScenarioCache
from orchestrator.pipeline import ScenarioOrchestrator
from game.router import router as game_router, get_orchestrator, validation_error_handler


# ──────────────────────────────────────────────────────────────────────────────
# Startup checks
# ──────────────────────────────────────────────────────────────────────────────
def run_startup_checks():
    for name in ("GOOGLE_API_KEY", "OPENAI_API_KEY", "GROQ_API_KEY"):
        key = os.environ.get(name, "")
        if key and len(key) < 10:
            log.warning(f"⚠️   {name} looks too short to be a real key.")
        elif key:
            log.info(f"✅  {name} detected (starts with: {key[:8]}…)")

    if not settings.api_configured:
        log.warning("⚠️   No AI provider configured. The server will start, but generation requests will fail.")

    if os.path.isdir(settings.static_dir):
        log.info(f"✅  Serving frontend from {settings.static_dir}")
    else:
        log.warning(f"⚠️   Static directory {settings.static_dir} not found. Frontend will not be served.")

run_startup_checks()


# ──────────────────────────────────────────────────────────────────────────────
# Shared services (one per process)
# ──────────────────────────────────────────────────────────────────────────────
llm = build_llm(settings)
scenario_cache = ScenarioCache(capacity=settings.cache_capacity)
orchestrator = ScenarioOrchestrator(
    llm,
    scenario_cache,
    GenerationOptions(temperature=settings.temperature, max_tokens=settings.max_tokens),
    choice_count=settings.scenario_choices,
)
log.info(f"✅  Scenario cache ready (capacity {settings.cache_capacity} per era/language)")


# ──────────────────────────────────────────────────────────────────────────────
# App
# ──────────────────────────────────────────────────────────────────────────────
app = FastAPI(title="Crossroads of History API", description="Historical decision game backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.dependency_overrides[get_orchestrator] = lambda: orchestrator
app.add_exception_handler(RequestValidationError, validation_error_handler)
app.include_router(game_router)

# Mounted last so /api routes take precedence
if os.path.isdir(settings.static_dir):
    app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")


if __name__ == "__main__":
    import uvicorn

    log.info(f"🏛️  Crossroads of History server running on http://localhost:{settings.port}")
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
