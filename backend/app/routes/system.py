from __future__ import annotations
from fastapi import APIRouter, Request
from datetime import datetime, timezone
from app.config import settings
from app.services.scoring import POINTS_TABLE_V1

router = APIRouter()

@router.get("/health")
async def health(request: Request):
    ticker = getattr(request.app.state, "live_ticker", None)
    return {
        "status": "ok",
        "env": settings.environment,
        "time": datetime.now(timezone.utc).isoformat(),
        "live_sim": bool(ticker and ticker.running),
        "request_id": request.headers.get("x-request-id") or request.state.request_id,
    }

@router.get("/version")
async def version():
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "git_sha": settings.git_sha,
        "scoring": POINTS_TABLE_V1.version,
    }
