from __future__ import annotations
import uuid
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from app.config import settings
from app.logging_setup import configure_logging
from app.routes.system import router as system_router
from app.routes.wallet import router as wallet_router
from app.routes.contests import router as contests_router
from app.routes.admin import router as admin_router
from app.routes.matches import router as matches_router
from app.routes.notifications import router as notifications_router
from app.services.live_ticker import LiveScoreTicker
import structlog

configure_logging()
log = structlog.get_logger()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    log.info("startup", env=settings.environment, version=settings.app_version, git_sha=settings.git_sha)
    app.state.live_ticker = None
    if settings.live_sim_enabled:
        app.state.live_ticker = LiveScoreTicker()
        app.state.live_ticker.start()
    yield
    # Shutdown
    if app.state.live_ticker is not None:
        await app.state.live_ticker.stop()
    log.info("shutdown")

app = FastAPI(
    title=f"{settings.app_display_name} API",
    version=settings.app_version,
    lifespan=lifespan,
    description=f"{settings.app_display_name} API for wallets, contest entries and match settlement"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.environment == "dev" else settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(system_router)
app.include_router(wallet_router)
app.include_router(contests_router)
app.include_router(matches_router)
app.include_router(notifications_router)
app.include_router(admin_router)

@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = rid
    structlog.contextvars.bind_contextvars(request_id=rid)
    response: Response = await call_next(request)
    response.headers["X-Request-ID"] = rid
    structlog.contextvars.clear_contextvars()
    return response
