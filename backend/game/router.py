import logging
import time

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from game.schemas import HealthResponse, Outcome, OutcomeRequest, Scenario, ScenarioRequest
from orchestrator.pipeline import ScenarioOrchestrator

log = logging.getLogger("crossroads.api")
router = APIRouter(prefix="/api", tags=["game"])


# ─── Dependency injected from main.py ─────────────────────────────────────────
def get_orchestrator() -> ScenarioOrchestrator:
    raise NotImplementedError("Override via app.dependency_overrides")


def _failure(message: str, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": message, "details": str(exc)})


FAILURE_MESSAGES = {
    "/api/generate-scenario": "Failed to generate scenario",
    "/api/generate-outcome": "Failed to generate outcome",
}


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies on the game endpoints fail like any other generation error."""
    message = FAILURE_MESSAGES.get(request.url.path)
    if message is None:
        return await request_validation_exception_handler(request, exc)
    details = "; ".join(
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
    )
    log.warning(f"← [{request.url.path}] invalid request body: {details}")
    return JSONResponse(status_code=500, content={"error": message, "details": details})


# ─── Routes ───────────────────────────────────────────────────────────────────
@router.post("/generate-scenario", response_model=Scenario)
async def generate_scenario(
    req: ScenarioRequest,
    background_tasks: BackgroundTasks,
    orchestrator: ScenarioOrchestrator = Depends(get_orchestrator),
):
    t_start = time.perf_counter()
    log.info(
        f"→ [generate_scenario] era={req.era!r} language={req.language!r} "
        f"custom={req.is_custom} previous_leaders={len(req.previous_leaders)}"
    )
    try:
        scenario = await orchestrator.get_scenario(req)
    except Exception as e:
        log.exception(f"← [generate_scenario] FAILED in {time.perf_counter() - t_start:.2f}s")
        return _failure("Failed to generate scenario", e)

    if orchestrator.should_prefill(req):
        background_tasks.add_task(orchestrator.prefill, req.era, req.language)

    log.info(f"← [generate_scenario] {scenario.leader!r} in {time.perf_counter() - t_start:.2f}s")
    return scenario


@router.post("/generate-outcome", response_model=Outcome)
async def generate_outcome(
    req: OutcomeRequest,
    orchestrator: ScenarioOrchestrator = Depends(get_orchestrator),
):
    t_start = time.perf_counter()
    log.info(
        f"→ [generate_outcome] leader={req.scenario.leader!r} "
        f"historical_choice={req.is_historical_choice} language={req.language!r}"
    )
    try:
        outcome = await orchestrator.generate_outcome(req)
    except Exception as e:
        log.exception(f"← [generate_outcome] FAILED in {time.perf_counter() - t_start:.2f}s")
        return _failure("Failed to generate outcome", e)

    log.info(f"← [generate_outcome] matched={outcome.matched_history} in {time.perf_counter() - t_start:.2f}s")
    return outcome


@router.get("/health", response_model=HealthResponse)
def health_check(orchestrator: ScenarioOrchestrator = Depends(get_orchestrator)):
    return HealthResponse(api_configured=orchestrator.llm.is_configured, provider=orchestrator.llm.name)
