from __future__ import annotations
from typing import Any, Protocol
from uuid import UUID
import structlog
from redis import Redis
from rq import Queue
from app.config import settings

log = structlog.get_logger()

NOTIFICATION_KINDS = ("contest_joined", "match_completed", "prize_credited", "contest_refunded", "system")


class Notifier(Protocol):
    def dispatch(self, user_id: UUID, kind: str, payload: dict[str, Any]) -> None: ...


class QueueNotifier:
    """Hands notifications to the rq worker; delivery happens in app.jobs.deliver_notification."""

    def __init__(self, redis_url: str | None = None, queue_name: str | None = None):
        self.redis_url = redis_url or settings.redis_url
        self.queue_name = queue_name or settings.notification_queue
        self._queue: Queue | None = None

    def queue(self) -> Queue:
        if self._queue is None:
            self._queue = Queue(self.queue_name, connection=Redis.from_url(self.redis_url, socket_connect_timeout=2))
        return self._queue

    def dispatch(self, user_id: UUID, kind: str, payload: dict[str, Any]) -> None:
        from app.jobs.deliver_notification import deliver_notification
        self.queue().enqueue(deliver_notification, str(user_id), kind, payload)


def notify_safely(notifier: Notifier | None, user_id: UUID, kind: str, payload: dict[str, Any]) -> bool:
    """Fire-and-forget: a failing notifier is logged, never raised to the caller."""
    if notifier is None:
        return False
    if kind not in NOTIFICATION_KINDS:
        raise ValueError(f"unknown notification kind {kind!r}")
    try:
        notifier.dispatch(user_id, kind, payload)
    except Exception:
        log.warning("notification_dispatch_failed", user_id=str(user_id), kind=kind, exc_info=True)
        return False
    return True


_notifier: QueueNotifier | None = None

def get_notifier() -> Notifier:
    global _notifier
    if _notifier is None:
        _notifier = QueueNotifier()
    return _notifier
