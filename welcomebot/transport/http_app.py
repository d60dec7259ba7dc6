# welcomebot/transport/http_app.py
"""
HTTP transport for the turn orchestrator.

POST /api/messages takes one activity, runs one turn and returns the turn's
outbound activities in the response body (request/response delivery).
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException, Request, Depends
from fastapi.responses import JSONResponse

from welcomebot.config import settings
from welcomebot.core.engine.errors import TurnError
from welcomebot.core.engine.ports import Storage
from welcomebot.core.engine.state import UserState
from welcomebot.core.engine.use_cases import TurnOrchestrator
from welcomebot.core.handlers.welcome_user_bot import WelcomeUserBot
from welcomebot.infra.logging_config import setup_logging, get_logger
from welcomebot.infra.metrics import get_metrics_collector
from welcomebot.transport.adapters import ActivityAdapter, CollectingSender
from welcomebot.transport.middleware import (
    RequestIDMiddleware,
    RequestLoggingMiddleware,
    ErrorHandlingMiddleware,
)
from welcomebot.transport.schemas import ActivityIn, TurnOut

setup_logging(
    level=settings.log_level,
    use_json=settings.is_production
)

logger = get_logger(__name__)


# ============================================================================
# DEPENDENCIES
# ============================================================================

def get_orchestrator(request: Request) -> TurnOrchestrator:
    return request.app.state.orchestrator


# ============================================================================
# LIFESPAN
# ============================================================================

async def _build_storage() -> Storage:
    if settings.storage_backend == "postgres":
        from welcomebot.infra.db_async import init_pool
        from welcomebot.infra.pg_state_store_async import AsyncPostgresStorage

        await init_pool()
        logger.info("Storage backend: postgres")
        return AsyncPostgresStorage()

    from welcomebot.infra.memory_storage import MemoryStorage

    logger.info("Storage backend: memory")
    return MemoryStorage()


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """Application lifecycle: startup and shutdown"""
    logger.info(f"Starting application: env={settings.app_env}")

    if settings.is_production:
        missing = settings.validate_required_for_production()
        if missing:
            logger.critical(f"Missing required production settings: {missing}")
            raise RuntimeError(f"Missing production config: {missing}")

    storage = await _build_storage()
    user_state = UserState(
        storage,
        namespace=settings.state_namespace,
        skip_unchanged_commits=settings.state_skip_unchanged_commits,
    )
    bot = WelcomeUserBot(user_state, language=settings.bot_language)
    fastapi_app.state.storage = storage
    fastapi_app.state.orchestrator = TurnOrchestrator(bot=bot, user_state=user_state)

    logger.info("Application startup complete")

    yield

    logger.info("Shutting down application")
    if settings.storage_backend == "postgres":
        from welcomebot.infra.db_async import close_pool
        await close_pool()
    logger.info("Application shutdown complete")


# ============================================================================
# CREATE APP
# ============================================================================

app = FastAPI(
    title="Welcome Bot",
    description="Turn-based conversational endpoint",
    version="1.0.0",
    lifespan=lifespan,
    docs_url=None if settings.is_production else "/docs",
    redoc_url=None if settings.is_production else "/redoc",
    openapi_url=None if settings.is_production else "/openapi.json",
)

# Added last runs first: RequestID -> Logging -> ErrorHandling -> route
app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(RequestLoggingMiddleware, enabled=settings.enable_request_logging)
app.add_middleware(RequestIDMiddleware)


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    if exc.status_code >= 500:
        logger.error(f"Server error: {exc.detail}")

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=exc.headers,
    )


@app.exception_handler(TurnError)
async def turn_error_handler(request: Request, exc: TurnError):
    """
    Failed turn: no state was committed after a handler failure.
    503 tells the channel the turn can be redelivered; 400 and 500 do not.
    """
    if exc.stage == "context":
        status_code = 400
    elif exc.retryable:
        status_code = 503
    else:
        status_code = 500

    detail = exc.detail if not settings.is_production or status_code == 400 else "Turn failed"
    return JSONResponse(
        status_code=status_code,
        content={
            "error": detail,
            "stage": exc.stage,
            "retryable": exc.retryable,
            "request_id": getattr(request.state, "request_id", None),
        },
    )


# ============================================================================
# ENDPOINTS
# ============================================================================

@app.get("/health")
def health():
    return {"status": "healthy"}


@app.get("/metrics")
def metrics():
    if not settings.enable_metrics:
        raise HTTPException(status_code=404, detail="Not found")
    return get_metrics_collector().get_metrics()


@app.post("/api/messages")
async def messages(payload: ActivityIn, orchestrator: TurnOrchestrator = Depends(get_orchestrator)):
    adapter = ActivityAdapter()
    activity = adapter.adapt(payload)

    sender = CollectingSender()
    await orchestrator.on_turn(activity, sender=sender)

    out = TurnOut(activities=[adapter.to_out(a) for a in sender.activities])
    return out.model_dump(by_alias=True, exclude_none=True)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "welcomebot.transport.http_app:app",
        host="0.0.0.0",
        port=3978,
        reload=not settings.is_production,
        log_level=settings.log_level.lower(),
        access_log=not settings.is_production,  # request logging middleware covers prod
        server_header=False,
        date_header=False,
    )
