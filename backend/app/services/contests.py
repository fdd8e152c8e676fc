from __future__ import annotations
from uuid import UUID
import structlog
from sqlalchemy import select, func, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.config import settings
from app.models.contest_entry import ContestEntry
from app.models.match import Match
from app.models.user import User
from app.services.errors import NotFound, ServiceError
from app.services.matches import ensure_editable, get_match, match_summary
from app.services.notifications import Notifier, notify_safely
from app.services.ranking import place
from app.services.scorecards import load_performances
from app.services.scoring import RosterSelection, score
from app.services.wallet import apply_contest_join_debit

log = structlog.get_logger()


def roster_of(e: ContestEntry) -> RosterSelection:
    return RosterSelection.of(e.player_ids or [], e.captain_id, e.vice_captain_id)


async def _find_entry(session: AsyncSession, match_id: UUID, user_id: UUID) -> ContestEntry | None:
    return await session.scalar(
        select(ContestEntry).where(ContestEntry.match_id == match_id, ContestEntry.user_id == user_id)
    )


async def submit_entry(
    session: AsyncSession,
    *,
    match_id: UUID,
    user_id: UUID,
    team_id: str,
    team_name: str,
    roster: RosterSelection,
    notifier: Notifier | None = None,
) -> tuple[bool, ContestEntry]:
    """
    Upsert the user's roster for a match and commit.
    First submission charges the join fee in the same transaction; if the debit
    fails nothing is written. Resubmissions update in place without a new fee.
    """
    try:
        m = await get_match(session, match_id)
        ensure_editable(m)
        label = m.label
        points = score(roster, await load_performances(session, match_id))

        entry = await _find_entry(session, match_id, user_id)
        created = False
        if entry is None:
            # fee is keyed per (user, match): a racer or a re-join after delete pays nothing
            await apply_contest_join_debit(session, user_id, match_id)
            entry = ContestEntry(match_id=match_id, user_id=user_id)
            try:
                async with session.begin_nested():
                    entry.team_id = team_id.strip()
                    entry.team_name = team_name.strip()
                    entry.player_ids = list(roster.player_ids)
                    entry.captain_id = roster.captain_id
                    entry.vice_captain_id = roster.vice_captain_id
                    entry.points = points
                    session.add(entry)
                    await session.flush()
                created = True
            except IntegrityError:
                entry = await _find_entry(session, match_id, user_id)
                if entry is None:
                    raise

        if not created:
            entry.team_id = team_id.strip()
            entry.team_name = team_name.strip()
            entry.player_ids = list(roster.player_ids)
            entry.captain_id = roster.captain_id
            entry.vice_captain_id = roster.vice_captain_id
            entry.points = points

        await session.commit()
        await session.refresh(entry)
    except ServiceError:
        await session.rollback()
        raise

    log.info("contest_entry_saved", match_id=str(match_id), user_id=str(user_id), created=created, points=points)
    if created:
        notify_safely(notifier, user_id, "contest_joined", {
            "title": "Contest joined",
            "message": f"Your team {entry.team_name} is in for {label}.",
            "reference_id": str(match_id),
            "dedupe_key": f"contest_joined:{user_id}:{match_id}",
        })
    return created, entry


async def delete_entry(session: AsyncSession, match_id: UUID, user_id: UUID) -> None:
    """Withdraw an entry while the match is editable. The join fee is not refunded."""
    m = await get_match(session, match_id)
    ensure_editable(m)
    res = await session.execute(
        delete(ContestEntry).where(ContestEntry.match_id == match_id, ContestEntry.user_id == user_id)
    )
    if res.rowcount == 0:
        await session.rollback()
        raise NotFound("Contest entry not found")
    await session.commit()
    log.info("contest_entry_deleted", match_id=str(match_id), user_id=str(user_id))


async def refresh_points(session: AsyncSession, match_id: UUID) -> int:
    """
    Recompute points for every entry of the match from the current scorecard
    and commit. Only changed rows are written. Returns the number updated.
    """
    await get_match(session, match_id)
    performances = await load_performances(session, match_id)
    entries = (await session.execute(
        select(ContestEntry).where(ContestEntry.match_id == match_id)
    )).scalars().all()

    updated = 0
    for e in entries:
        pts = score(roster_of(e), performances)
        if e.points != pts:
            e.points = pts
            updated += 1
    await session.commit()
    return updated


async def list_my_entries(session: AsyncSession, user_id: UUID) -> list[dict]:
    rows = (await session.execute(
        select(ContestEntry, Match)
        .join(Match, Match.id == ContestEntry.match_id)
        .where(ContestEntry.user_id == user_id)
        .order_by(ContestEntry.updated_at.desc())
    )).all()
    return [
        {
            "entry_id": e.id,
            "match_id": e.match_id,
            "team_id": e.team_id,
            "team_name": e.team_name,
            "player_ids": list(e.player_ids or []),
            "captain_id": e.captain_id,
            "vice_captain_id": e.vice_captain_id,
            "points": e.points,
            "updated_at": e.updated_at,
            "match": match_summary(m),
        } for (e, m) in rows
    ]


async def get_leaderboard(session: AsyncSession, match_id: UUID, user_id: UUID | None = None) -> dict:
    m = await get_match(session, match_id)
    rows = (await session.execute(
        select(ContestEntry, User.display_name, User.email)
        .join(User, User.id == ContestEntry.user_id)
        .where(ContestEntry.match_id == match_id)
    )).all()

    def _name(r) -> str:
        return r.display_name or r.email or "User"

    placements = place(
        rows,
        points_of=lambda r: r.ContestEntry.points,
        tiebreak=lambda r: (_name(r).lower(), str(r.ContestEntry.user_id)),
    )
    completed = m.status == "completed"
    leaders = [
        {
            "user_id": p.item.ContestEntry.user_id,
            "entry_id": p.item.ContestEntry.id,
            "name": _name(p.item),
            "team_name": p.item.ContestEntry.team_name,
            "rank": p.rank,
            "points": p.points,
            "prize": p.prize if completed else 0,
        } for p in placements
    ]
    my_entry = next((row for row in leaders if user_id is not None and row["user_id"] == user_id), None)
    return {
        "match": match_summary(m),
        "participants": len(leaders),
        "leaders": leaders[:settings.leaderboard_size],
        "my_entry": my_entry,
    }


async def list_contests(session: AsyncSession, status: str = "upcoming", limit: int = 30) -> list[dict]:
    matches = (await session.execute(
        select(Match).where(Match.status == status).order_by(Match.start_time.desc()).limit(limit)
    )).scalars().all()
    if not matches:
        return []
    counts = dict((await session.execute(
        select(ContestEntry.match_id, func.count())
        .where(ContestEntry.match_id.in_([m.id for m in matches]))
        .group_by(ContestEntry.match_id)
    )).all())
    fee = settings.contest_join_fee
    return [
        {
            **match_summary(m),
            "entry_fee": fee,
            "participants_count": int(counts.get(m.id, 0)),
            "prize_pool": int(counts.get(m.id, 0)) * fee,
        } for m in matches
    ]
