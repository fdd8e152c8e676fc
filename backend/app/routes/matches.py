from __future__ import annotations
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_session
from app.schemas.match import MatchDetail, MatchStatus
from app.schemas.scorecard import ScorecardPublic
from app.services.errors import ServiceError, http_error
from app.services.matches import get_match, list_matches, match_detail, match_summary
from app.services.scorecards import get_scorecard

router = APIRouter(prefix="/matches", tags=["matches"])

@router.get("", response_model=list[MatchDetail])
async def matches(
    status: list[MatchStatus] | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    session: AsyncSession = Depends(get_session),
):
    return [match_detail(m) for m in await list_matches(session, statuses=status, limit=limit)]

@router.get("/completed", response_model=list[MatchDetail])
async def completed_matches(limit: int = Query(20, ge=1, le=200), session: AsyncSession = Depends(get_session)):
    return [match_detail(m) for m in await list_matches(session, statuses=["completed"], limit=limit)]

@router.get("/{match_id}/scorecard", response_model=ScorecardPublic)
async def match_scorecard(match_id: UUID, session: AsyncSession = Depends(get_session)):
    try:
        m = await get_match(session, match_id)
    except ServiceError as e:
        raise http_error(e)
    card, rows = await get_scorecard(session, match_id)
    return {
        "match": match_summary(m),
        "innings": card.innings if card else [],
        "result_text": card.result_text if card else None,
        "performances": [
            {
                "player_id": p.player_id,
                "player_name": p.player_name,
                "team_short_name": p.team_short_name,
                "runs": p.runs,
                "wickets": p.wickets,
                "fours": p.fours,
                "sixes": p.sixes,
                "maidens": p.maidens,
                "catches": p.catches,
                "stumpings": p.stumpings,
                "run_outs": p.run_outs,
            } for p in rows
        ],
    }
