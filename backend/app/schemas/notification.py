from __future__ import annotations
from pydantic import BaseModel, ConfigDict
from typing import Any
from uuid import UUID
from datetime import datetime
from app.schemas.wallet import Pagination

class NotificationPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    kind: str
    title: str
    message: str
    reference_id: str | None = None
    payload: dict[str, Any] = {}
    is_read: bool
    created_at: datetime

class NotificationPage(BaseModel):
    rows: list[NotificationPublic]
    unread_count: int
    pagination: Pagination

class UnreadCount(BaseModel):
    unread_count: int

class MarkedRead(BaseModel):
    updated: int
