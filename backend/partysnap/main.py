from __future__ import annotations
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from partysnap.config import settings
from partysnap.logging_setup import configure_logging
from partysnap.routes.system import router as system_router
from partysnap.routes.events import router as events_router
from partysnap.routes.challenges import router as challenges_router
from partysnap.routes.participants import router as participants_router
from partysnap.routes.submissions import router as submissions_router
from partysnap.routes.admin import router as admin_router
from partysnap.services.errors import GameError
import structlog

configure_logging()
log = structlog.get_logger()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    log.info("startup", env=settings.environment, version=settings.app_version, git_sha=settings.git_sha)
    if settings.access_code_bypass_prefix:
        log.warning("access_code_bypass_enabled", prefix=settings.access_code_bypass_prefix)
    yield
    # Shutdown
    log.info("shutdown")

app = FastAPI(
    title=f"{settings.app_display_name} API",
    version=settings.app_version,
    lifespan=lifespan,
    description=f"{settings.app_display_name} API for party photo challenges",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.environment == "dev" else settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(system_router)
app.include_router(events_router)
app.include_router(challenges_router)
app.include_router(participants_router)
app.include_router(submissions_router)
app.include_router(admin_router)

@app.exception_handler(GameError)
async def game_error_handler(request: Request, exc: GameError):
    log.warning("request_failed", error=type(exc).__name__, detail=exc.message, path=request.url.path)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "error": type(exc).__name__})

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = rid
    structlog.contextvars.bind_contextvars(request_id=rid)
    response: Response = await call_next(request)
    response.headers["X-Request-ID"] = rid
    structlog.contextvars.clear_contextvars()
    return response
