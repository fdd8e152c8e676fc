from __future__ import annotations
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_session
from app.auth_deps import require_admin
from app.schemas.contest import Leaderboard
from app.schemas.match import MatchCreate, MatchComplete, MatchDetail, MatchStatus, SettlementReportPublic, AbandonReport
from app.schemas.scorecard import ScorecardUpdate, ScorecardUpdateResult
from app.schemas.wallet import LedgerAudit
from app.services.contests import get_leaderboard
from app.services.errors import ServiceError, http_error
from app.services.matches import abandon_match, create_match, get_match, list_matches, lock_match, match_detail
from app.services.notifications import Notifier, get_notifier
from app.services.scorecards import upsert_performances
from app.services.settlement import complete_and_settle
from app.services.wallet import verify_balance

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])

@router.get("/matches", response_model=list[MatchDetail])
async def admin_list_matches(
    status: list[MatchStatus] | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    session: AsyncSession = Depends(get_session),
):
    return [match_detail(m) for m in await list_matches(session, statuses=status, limit=limit)]

@router.post("/matches", response_model=MatchDetail, status_code=201)
async def admin_create_match(payload: MatchCreate, session: AsyncSession = Depends(get_session)):
    m = await create_match(session, **payload.model_dump())
    return match_detail(m)

@router.patch("/matches/{match_id}/lock", response_model=MatchDetail)
async def admin_lock_match(match_id: UUID, session: AsyncSession = Depends(get_session)):
    try:
        m = await lock_match(session, match_id)
    except ServiceError as e:
        raise http_error(e)
    return match_detail(m)

@router.patch("/matches/{match_id}/complete", response_model=SettlementReportPublic)
async def admin_complete_match(
    match_id: UUID,
    payload: MatchComplete | None = None,
    session: AsyncSession = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
):
    payload = payload or MatchComplete()
    try:
        report = await complete_and_settle(
            session,
            match_id,
            result=payload.result,
            winner_team_short_name=payload.winner_team_short_name,
            summary=payload.summary,
            notifier=notifier,
        )
    except ServiceError as e:
        raise http_error(e)
    return report.as_dict()

@router.patch("/matches/{match_id}/abandon", response_model=AbandonReport)
async def admin_abandon_match(
    match_id: UUID,
    session: AsyncSession = Depends(get_session),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        return await abandon_match(session, match_id, notifier=notifier)
    except ServiceError as e:
        raise http_error(e)

@router.put("/matches/{match_id}/scorecard", response_model=ScorecardUpdateResult)
async def admin_update_scorecard(match_id: UUID, payload: ScorecardUpdate, session: AsyncSession = Depends(get_session)):
    try:
        updated = await upsert_performances(
            session,
            match_id,
            [p.model_dump() for p in payload.performances],
            innings=[i.model_dump() for i in payload.innings] if payload.innings is not None else None,
            result_text=payload.result_text,
        )
    except ServiceError as e:
        raise http_error(e)
    return {"match_id": str(match_id), "players": len(payload.performances), "entries_updated": updated}

@router.get("/matches/{match_id}/leaderboard", response_model=Leaderboard)
async def admin_leaderboard(match_id: UUID, session: AsyncSession = Depends(get_session)):
    try:
        return await get_leaderboard(session, match_id)
    except ServiceError as e:
        raise http_error(e)

@router.get("/matches/{match_id}", response_model=MatchDetail)
async def admin_get_match(match_id: UUID, session: AsyncSession = Depends(get_session)):
    try:
        return match_detail(await get_match(session, match_id))
    except ServiceError as e:
        raise http_error(e)

@router.get("/users/{user_id}/ledger-audit", response_model=LedgerAudit)
async def admin_ledger_audit(user_id: UUID, session: AsyncSession = Depends(get_session)):
    try:
        return await verify_balance(session, user_id)
    except ServiceError as e:
        raise http_error(e)
