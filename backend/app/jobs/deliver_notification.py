from __future__ import annotations
import asyncio
import uuid
from typing import Any
import structlog
from sqlalchemy.exc import IntegrityError
from app.db import SessionLocal
from app.models.notification import Notification

log = structlog.get_logger()

async def _run(user_id: str, kind: str, payload: dict[str, Any]) -> bool:
    dedupe_key = payload.get("dedupe_key") or f"{kind}:{user_id}:{uuid.uuid4().hex}"
    async with SessionLocal() as session:
        session.add(Notification(
            user_id=uuid.UUID(user_id),
            kind=kind,
            title=str(payload.get("title") or kind.replace("_", " ").title())[:120],
            message=str(payload.get("message") or "")[:255],
            reference_id=payload.get("reference_id"),
            payload=payload,
            dedupe_key=dedupe_key,
        ))
        try:
            await session.commit()
        except IntegrityError:
            # already delivered (settlement/refund re-runs reuse the same dedupe key)
            await session.rollback()
            log.info("notification_duplicate", user_id=user_id, kind=kind, dedupe_key=dedupe_key)
            return False
    log.info("notification_delivered", user_id=user_id, kind=kind, dedupe_key=dedupe_key)
    return True

def deliver_notification(user_id: str, kind: str, payload: dict[str, Any]):
    # RQ entry point (sync); run the async coroutine
    asyncio.run(_run(user_id, kind, payload))
