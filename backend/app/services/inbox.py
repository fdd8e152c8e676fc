from __future__ import annotations
import math
from uuid import UUID
import structlog
from sqlalchemy import select, func, update, delete
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.notification import Notification
from app.services.errors import NotFound

log = structlog.get_logger()


async def list_notifications(
    session: AsyncSession,
    user_id: UUID,
    page: int = 1,
    size: int = 20,
    unread_only: bool = False,
) -> dict:
    page = max(1, int(page or 1))
    size = max(1, min(100, int(size or 20)))
    cond = [Notification.user_id == user_id]
    if unread_only:
        cond.append(Notification.is_read.is_(False))

    total = await session.scalar(select(func.count()).select_from(Notification).where(*cond)) or 0
    rows = (await session.execute(
        select(Notification)
        .where(*cond)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset((page - 1) * size)
        .limit(size)
    )).scalars().all()
    return {
        "rows": rows,
        "unread_count": await unread_count(session, user_id),
        "pagination": {
            "page": page,
            "size": size,
            "total": int(total),
            "total_pages": max(1, math.ceil(int(total) / size)),
        },
    }


async def unread_count(session: AsyncSession, user_id: UUID) -> int:
    return int(await session.scalar(
        select(func.count()).select_from(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
    ) or 0)


async def mark_read(session: AsyncSession, user_id: UUID, notification_id: UUID) -> Notification:
    # scoped to the owner: someone else's id is indistinguishable from a missing one
    n = await session.scalar(
        select(Notification).where(Notification.id == notification_id, Notification.user_id == user_id)
    )
    if n is None:
        raise NotFound("Notification not found")
    if not n.is_read:
        n.is_read = True
        await session.commit()
        await session.refresh(n)
    return n


async def mark_all_read(session: AsyncSession, user_id: UUID) -> int:
    res = await session.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    log.info("notifications_marked_read", user_id=str(user_id), count=res.rowcount)
    return int(res.rowcount or 0)


async def delete_notification(session: AsyncSession, user_id: UUID, notification_id: UUID) -> None:
    res = await session.execute(
        delete(Notification).where(Notification.id == notification_id, Notification.user_id == user_id)
    )
    if res.rowcount == 0:
        await session.rollback()
        raise NotFound("Notification not found")
    await session.commit()
