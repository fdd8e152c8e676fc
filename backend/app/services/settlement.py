from __future__ import annotations
from dataclasses import dataclass, field, asdict
from uuid import UUID
import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.contest_entry import ContestEntry
from app.services.contests import refresh_points
from app.services.errors import InvalidState, ServiceError
from app.services.matches import get_match, mark_completed
from app.services.notifications import Notifier, notify_safely
from app.services.ranking import place
from app.services.wallet import apply_contest_win_credit

log = structlog.get_logger()

PAYOUT_STATUSES = ("credited", "already_credited", "failed", "no_prize")


@dataclass
class Payout:
    user_id: UUID
    rank: int
    points: float
    prize: int
    credited: bool = False
    status: str = "no_prize"


@dataclass
class SettlementReport:
    settled: bool
    match_id: UUID
    participants: int = 0
    credited_count: int = 0
    already_credited_count: int = 0
    failed_count: int = 0
    total_prize_distributed: int = 0
    total_prize_pool: int = 0
    payouts: list[Payout] = field(default_factory=list)

    def as_dict(self) -> dict:
        return asdict(self)


async def complete_and_settle(
    session: AsyncSession,
    match_id: UUID,
    *,
    result: str | None = None,
    winner_team_short_name: str | None = None,
    summary: str | None = None,
    notifier: Notifier | None = None,
) -> SettlementReport:
    """
    Mark the match completed and credit prizes by final rank.

    Every payout is its own committed transaction keyed by
    contest_win:{user}:{match}, so a re-run (or a retry after a partial
    failure) only credits what is still missing. A failing payout is rolled
    back, logged and counted; the rest of the batch continues.
    """
    m = await get_match(session, match_id)
    if m.status == "abandoned":
        raise InvalidState("Cannot complete an abandoned match")

    moved = await mark_completed(session, m, result=result, winner_team_short_name=winner_team_short_name, summary=summary)
    label = m.label
    # a re-run ranks on the points frozen by the first run
    if moved:
        await refresh_points(session, match_id)

    # plain tuples: rows expire on every rollback below
    entries = [
        (e.user_id, e.points) for e in (await session.execute(
            select(ContestEntry).where(ContestEntry.match_id == match_id)
        )).scalars().all()
    ]
    placements = place(entries, points_of=lambda e: e[1], tiebreak=lambda e: str(e[0]))

    report = SettlementReport(settled=True, match_id=match_id, participants=len(placements))
    credited_users: list[tuple[UUID, int, int]] = []

    for p in placements:
        user_id, points = p.item
        payout = Payout(user_id=user_id, rank=p.rank, points=points, prize=p.prize)
        report.payouts.append(payout)
        if p.prize <= 0:
            continue
        report.total_prize_pool += p.prize
        try:
            res = await apply_contest_win_credit(session, user_id, match_id, p.prize)
            await session.commit()
        except (SQLAlchemyError, ServiceError):
            await session.rollback()
            payout.status = "failed"
            report.failed_count += 1
            log.exception("settlement_payout_failed", match_id=str(match_id), user_id=str(user_id), prize=p.prize)
            continue
        if res.created:
            payout.credited = True
            payout.status = "credited"
            report.credited_count += 1
            report.total_prize_distributed += p.prize
            credited_users.append((user_id, p.rank, p.prize))
        else:
            payout.status = "already_credited"
            report.already_credited_count += 1

    for payout in report.payouts:
        notify_safely(notifier, payout.user_id, "match_completed", {
            "title": "Match completed",
            "message": f"{label} is complete. You finished #{payout.rank} with {payout.points} points.",
            "reference_id": str(match_id),
            "rank": payout.rank,
            "points": payout.points,
            "dedupe_key": f"match_completed:{payout.user_id}:{match_id}",
        })
    for user_id, rank, prize in credited_users:
        notify_safely(notifier, user_id, "prize_credited", {
            "title": "Prize credited",
            "message": f"You won {prize} coins for finishing #{rank} in {label}.",
            "reference_id": str(match_id),
            "amount": prize,
            "dedupe_key": f"prize_credited:{user_id}:{match_id}",
        })

    log.info(
        "match_settled",
        match_id=str(match_id),
        participants=report.participants,
        credited=report.credited_count,
        already_credited=report.already_credited_count,
        failed=report.failed_count,
        distributed=report.total_prize_distributed,
    )
    return report
