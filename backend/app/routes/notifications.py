from __future__ import annotations
from uuid import UUID
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_session
from app.auth_deps import get_current_user
from app.schemas.notification import NotificationPage, NotificationPublic, UnreadCount, MarkedRead
from app.services.errors import ServiceError, http_error
from app.services.inbox import delete_notification, list_notifications, mark_all_read, mark_read, unread_count

router = APIRouter(prefix="/notifications", tags=["notifications"])

@router.get("", response_model=NotificationPage)
async def my_notifications(
    page: int = Query(1),
    size: int = Query(20),
    unread: bool = Query(False),
    session: AsyncSession = Depends(get_session),
    user=Depends(get_current_user),
):
    data = await list_notifications(session, user.id, page=page, size=size, unread_only=unread)
    return {
        "rows": [NotificationPublic.model_validate(n) for n in data["rows"]],
        "unread_count": data["unread_count"],
        "pagination": data["pagination"],
    }

@router.get("/unread-count", response_model=UnreadCount)
async def my_unread_count(session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    return {"unread_count": await unread_count(session, user.id)}

@router.patch("/read-all", response_model=MarkedRead)
async def read_all(session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    return {"updated": await mark_all_read(session, user.id)}

@router.patch("/{notification_id}/read", response_model=NotificationPublic)
async def read_one(notification_id: UUID, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    try:
        n = await mark_read(session, user.id, notification_id)
    except ServiceError as e:
        raise http_error(e)
    return NotificationPublic.model_validate(n)

@router.delete("/{notification_id}", status_code=204)
async def remove(notification_id: UUID, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    try:
        await delete_notification(session, user.id, notification_id)
    except ServiceError as e:
        raise http_error(e)
    return Response(status_code=204)
