from __future__ import annotations
import uuid
import pytest
from sqlalchemy import select
from app.db import SessionLocal
from app.jobs.deliver_notification import _run
from app.models.notification import Notification
from app.services.notifications import QueueNotifier, notify_safely
from conftest import RecordingNotifier


@pytest.mark.asyncio
async def test_delivery_is_deduplicated(make_user):
    uid = await make_user()
    payload = {
        "title": "Prize credited",
        "message": "You won 1000 coins",
        "reference_id": "m-1",
        "dedupe_key": f"prize_credited:{uid}:m-1",
    }
    assert await _run(str(uid), "prize_credited", payload) is True
    assert await _run(str(uid), "prize_credited", payload) is False
    async with SessionLocal() as s:
        rows = (await s.execute(select(Notification).where(Notification.user_id == uid))).scalars().all()
    assert len(rows) == 1
    assert rows[0].kind == "prize_credited" and not rows[0].is_read


def test_notify_safely_swallows_dispatch_errors():
    assert notify_safely(RecordingNotifier(fail=True), uuid.uuid4(), "system", {}) is False
    assert notify_safely(None, uuid.uuid4(), "system", {}) is False
    rec = RecordingNotifier()
    assert notify_safely(rec, uuid.uuid4(), "match_completed", {"title": "x"}) is True
    assert len(rec.sent) == 1


def test_unknown_kind_is_a_programming_error():
    with pytest.raises(ValueError):
        notify_safely(RecordingNotifier(), uuid.uuid4(), "sms_blast", {})


def test_queue_notifier_enqueues_delivery_job(monkeypatch):
    enqueued = []

    class FakeQueue:
        def enqueue(self, fn, *args):
            enqueued.append((fn.__name__, args))

    n = QueueNotifier(redis_url="redis://localhost:6379/15", queue_name="test")
    monkeypatch.setattr(n, "queue", lambda: FakeQueue())
    uid = uuid.uuid4()
    n.dispatch(uid, "system", {"title": "hello"})
    assert enqueued == [("deliver_notification", (str(uid), "system", {"title": "hello"}))]
