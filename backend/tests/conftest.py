from __future__ import annotations
import os
import tempfile
import uuid
from datetime import datetime, timedelta, timezone

# must be set before app.config is imported anywhere
_DB_DIR = tempfile.mkdtemp(prefix="fantasy-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ.setdefault("LIVE_SIM_ENABLED", "0")

import pytest
import pytest_asyncio
from app.db import Base, engine, SessionLocal
from app.models.user import User
from app.models.wallet import WalletTransaction  # noqa: F401
from app.models.match import Match  # noqa: F401
from app.models.contest_entry import ContestEntry  # noqa: F401
from app.models.scorecard import Scorecard, PlayerPerformance  # noqa: F401
from app.models.notification import Notification  # noqa: F401
from app.security import make_access_token
from app.services.matches import create_match
from app.services.scorecards import upsert_performances


class RecordingNotifier:
    def __init__(self, fail: bool = False):
        self.sent: list[tuple[uuid.UUID, str, dict]] = []
        self.fail = fail

    def dispatch(self, user_id, kind, payload):
        if self.fail:
            raise ConnectionError("redis down")
        self.sent.append((user_id, kind, payload))

    def kinds_for(self, user_id) -> list[str]:
        return [k for (u, k, _) in self.sent if u == user_id]


@pytest_asyncio.fixture
async def db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()


@pytest_asyncio.fixture
async def make_user(db):
    async def _make(role: str = "user", display_name: str | None = None) -> uuid.UUID:
        async with SessionLocal() as s:
            u = User(
                email=f"user-{uuid.uuid4().hex[:10]}@ex.com",
                display_name=display_name or f"user_{uuid.uuid4().hex[:6]}",
                role=role,
            )
            s.add(u)
            await s.commit()
            return u.id
    return _make


@pytest_asyncio.fixture
async def make_match(db):
    async def _make(team_a: str = "MI", team_b: str = "CSK") -> uuid.UUID:
        async with SessionLocal() as s:
            m = await create_match(
                s,
                league="IPL",
                team_a_name=f"{team_a} Team",
                team_a_short_name=team_a,
                team_b_name=f"{team_b} Team",
                team_b_short_name=team_b,
                start_time=datetime.now(timezone.utc) + timedelta(days=1),
                season="2026",
            )
            return m.id
    return _make


@pytest.fixture
def notifier():
    return RecordingNotifier()


def auth_headers(user_id: uuid.UUID) -> dict:
    return {"Authorization": f"Bearer {make_access_token(str(user_id))}"}


def roster_ids(prefix: str = "p", n: int = 11) -> list[str]:
    return [f"{prefix}{i}" for i in range(1, n + 1)]


async def seed_performances(match_id: uuid.UUID, rows: list[dict]) -> int:
    async with SessionLocal() as s:
        return await upsert_performances(s, match_id, rows)
