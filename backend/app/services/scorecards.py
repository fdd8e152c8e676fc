from __future__ import annotations
from typing import Any, Iterable, Mapping
from uuid import UUID
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.scorecard import Scorecard, PlayerPerformance
from app.services.errors import InvalidState
from app.services.matches import get_match
from app.services.scoring import PerformanceStats

log = structlog.get_logger()

CLOSED_STATUSES = ("completed", "abandoned")
PERFORMANCE_FIELDS = ("runs", "wickets", "fours", "sixes", "maidens", "catches", "stumpings", "run_outs")


async def load_performances(session: AsyncSession, match_id: UUID) -> dict[str, PerformanceStats]:
    rows = (await session.execute(
        select(PlayerPerformance).where(PlayerPerformance.match_id == match_id)
    )).scalars().all()
    return {r.player_id: PerformanceStats.from_row(r) for r in rows}


async def get_scorecard(session: AsyncSession, match_id: UUID) -> tuple[Scorecard | None, list[PlayerPerformance]]:
    card = await session.scalar(select(Scorecard).where(Scorecard.match_id == match_id))
    rows = (await session.execute(
        select(PlayerPerformance)
        .where(PlayerPerformance.match_id == match_id)
        .order_by(PlayerPerformance.team_short_name, PlayerPerformance.player_name)
    )).scalars().all()
    return card, list(rows)


async def upsert_performances(
    session: AsyncSession,
    match_id: UUID,
    rows: Iterable[Mapping[str, Any]],
    *,
    innings: list[dict] | None = None,
    result_text: str | None = None,
) -> int:
    """
    Write path for score ingestion. Each row carries the player's aggregate
    totals (not deltas) and replaces the stored values for that player_id.
    Every update recomputes contest points; returns how many entries changed.
    Completed and abandoned matches are closed to score updates.
    """
    from app.services.contests import refresh_points

    m = await get_match(session, match_id)
    if m.status in CLOSED_STATUSES:
        raise InvalidState(f"Scorecard is final for a {m.status} match")
    existing = {
        p.player_id: p for p in (await session.execute(
            select(PlayerPerformance).where(PlayerPerformance.match_id == match_id)
        )).scalars().all()
    }
    written = 0
    for row in rows:
        player_id = str(row["player_id"]).strip()
        if not player_id:
            continue
        perf = existing.get(player_id)
        if perf is None:
            perf = PlayerPerformance(match_id=match_id, player_id=player_id)
            session.add(perf)
            existing[player_id] = perf
        perf.player_name = str(row.get("player_name") or perf.player_name or player_id)
        perf.team_short_name = str(row.get("team_short_name") or perf.team_short_name or "")
        for f in PERFORMANCE_FIELDS:
            if f in row and row[f] is not None:
                setattr(perf, f, max(0, int(row[f])))
            elif getattr(perf, f) is None:
                setattr(perf, f, 0)
        written += 1

    if innings is not None or result_text is not None:
        card = await session.scalar(select(Scorecard).where(Scorecard.match_id == match_id))
        if card is None:
            card = Scorecard(match_id=match_id, innings=[])
            session.add(card)
        if innings is not None:
            card.innings = list(innings)
        if result_text is not None:
            card.result_text = result_text

    await session.commit()
    updated = await refresh_points(session, match_id)
    log.info("scorecard_updated", match_id=str(match_id), players=written, entries_updated=updated)
    return updated
