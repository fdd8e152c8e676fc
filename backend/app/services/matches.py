from __future__ import annotations
from datetime import datetime, timezone as dt_tz
from uuid import UUID
import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.match import Match
from app.models.contest_entry import ContestEntry
from app.models.wallet import WalletTransaction
from app.services.errors import InvalidState, NotFound, ServiceError
from app.services.notifications import Notifier, notify_safely
from app.services.wallet import apply_contest_refund

log = structlog.get_logger()

# upcoming -> locked -> completed ; upcoming|locked -> abandoned
MATCH_STATUSES = ("upcoming", "locked", "completed", "abandoned")
MATCH_RESULTS = ("team_a", "team_b", "draw", "no_result")
OPEN_STATUSES = ("upcoming", "locked")


def match_summary(m: Match) -> dict:
    return {
        "id": m.id,
        "match_label": m.label,
        "league": m.league,
        "starts_at": m.start_time,
        "status": m.status,
        "is_editable": m.is_editable,
        "team_a": {"name": m.team_a_name, "short_name": m.team_a_short_name},
        "team_b": {"name": m.team_b_name, "short_name": m.team_b_short_name},
    }


def match_detail(m: Match) -> dict:
    return {
        **match_summary(m),
        "season": m.season,
        "venue": m.venue,
        "result": m.result,
        "winner_team_short_name": m.winner_team_short_name,
        "summary": m.summary,
        "completed_at": m.completed_at,
    }


async def create_match(
    session: AsyncSession,
    *,
    league: str,
    team_a_name: str,
    team_a_short_name: str,
    team_b_name: str,
    team_b_short_name: str,
    start_time: datetime,
    season: str | None = None,
    venue: str | None = None,
) -> Match:
    m = Match(
        league=league.strip(),
        season=season,
        team_a_name=team_a_name.strip(),
        team_a_short_name=team_a_short_name.strip().upper(),
        team_b_name=team_b_name.strip(),
        team_b_short_name=team_b_short_name.strip().upper(),
        venue=venue,
        start_time=start_time,
        status="upcoming",
        is_editable=True,
    )
    session.add(m)
    await session.commit()
    await session.refresh(m)
    log.info("match_created", match_id=str(m.id), label=m.label)
    return m


async def get_match(session: AsyncSession, match_id: UUID) -> Match:
    m = await session.get(Match, match_id)
    if not m:
        raise NotFound("Match not found")
    return m


async def list_matches(session: AsyncSession, statuses: list[str] | None = None, limit: int = 50) -> list[Match]:
    q = select(Match).order_by(Match.start_time.desc()).limit(max(1, min(200, limit)))
    if statuses:
        q = q.where(Match.status.in_(statuses))
    return list((await session.execute(q)).scalars().all())


def ensure_editable(m: Match) -> None:
    if m.status != "upcoming" or not m.is_editable:
        raise InvalidState(f"Contest entries are closed for this match ({m.status})")


async def _transition(session: AsyncSession, match_id: UUID, from_states: tuple[str, ...], **values) -> bool:
    """Conditional status change; False when another request moved the match first."""
    res = await session.execute(
        update(Match)
        .where(Match.id == match_id, Match.status.in_(from_states))
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return res.rowcount == 1


async def lock_match(session: AsyncSession, match_id: UUID) -> Match:
    m = await get_match(session, match_id)
    if m.status == "locked":
        raise InvalidState("Match is already locked")
    if m.status != "upcoming":
        raise InvalidState(f"Cannot lock a {m.status} match")
    moved = await _transition(session, match_id, ("upcoming",), status="locked", is_editable=False)
    await session.commit()
    await session.refresh(m)
    if not moved:
        raise InvalidState(f"Cannot lock a {m.status} match")
    log.info("match_locked", match_id=str(match_id))
    return m


async def mark_completed(
    session: AsyncSession,
    m: Match,
    *,
    result: str | None = None,
    winner_team_short_name: str | None = None,
    summary: str | None = None,
) -> bool:
    """
    upcoming|locked -> completed. Returns False when the match was already
    completed (a settlement re-run); the recorded result is left untouched then.
    """
    if result is not None and result not in MATCH_RESULTS:
        raise ValueError(f"unknown match result {result!r}")
    moved = await _transition(
        session, m.id, OPEN_STATUSES,
        status="completed",
        is_editable=False,
        result=result,
        winner_team_short_name=winner_team_short_name,
        summary=summary,
        completed_at=datetime.now(dt_tz.utc),
    )
    await session.commit()
    await session.refresh(m)
    if not moved and m.status != "completed":
        raise InvalidState(f"Cannot complete a {m.status} match")
    if moved:
        log.info("match_completed", match_id=str(m.id), result=result)
    return moved


async def abandon_match(session: AsyncSession, match_id: UUID, notifier: Notifier | None = None) -> dict:
    """
    upcoming|locked -> abandoned, then refund every paid join fee once.
    Calling it again on an abandoned match retries refunds that failed.
    """
    m = await get_match(session, match_id)
    if m.status == "completed":
        raise InvalidState("Cannot abandon a completed match")
    if m.status != "abandoned":
        moved = await _transition(session, match_id, OPEN_STATUSES, status="abandoned", is_editable=False)
        await session.commit()
        await session.refresh(m)
        if not moved and m.status != "abandoned":
            raise InvalidState(f"Cannot abandon a {m.status} match")
    label = m.label

    # fee actually charged per user, from the ledger
    paid = (await session.execute(
        select(ContestEntry.user_id, WalletTransaction.amount)
        .join(WalletTransaction, WalletTransaction.user_id == ContestEntry.user_id)
        .where(
            ContestEntry.match_id == match_id,
            WalletTransaction.source == "contest_join",
            WalletTransaction.reference_id == str(match_id),
        )
    )).all()
    refunds = [(uid, int(amount)) for (uid, amount) in paid]

    refunded = already = failed = 0
    for user_id, amount in refunds:
        try:
            res = await apply_contest_refund(session, user_id, match_id, amount)
            await session.commit()
        except (SQLAlchemyError, ServiceError):
            await session.rollback()
            failed += 1
            log.exception("refund_failed", match_id=str(match_id), user_id=str(user_id))
            continue
        if res.created:
            refunded += 1
            notify_safely(notifier, user_id, "contest_refunded", {
                "title": "Contest refunded",
                "message": f"{label} was abandoned. Your {amount} coin entry fee is back in your wallet.",
                "reference_id": str(match_id),
                "amount": amount,
                "dedupe_key": f"contest_refunded:{user_id}:{match_id}",
            })
        else:
            already += 1

    log.info("match_abandoned", match_id=str(match_id), refunded=refunded, already_refunded=already, failed=failed)
    return {
        "match_id": match_id,
        "status": "abandoned",
        "refunded_count": refunded,
        "already_refunded_count": already,
        "failed_count": failed,
    }
