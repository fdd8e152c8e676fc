from __future__ import annotations
from uuid import UUID
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import get_session
from app.auth_deps import get_current_user
from app.schemas.contest import EntrySubmit, EntrySaved, MyEntry, ContestListing, Leaderboard
from app.schemas.match import MatchStatus
from app.services.contests import (
    delete_entry,
    get_leaderboard,
    list_contests,
    list_my_entries,
    submit_entry,
)
from app.services.errors import ServiceError, http_error
from app.services.notifications import Notifier, get_notifier
from app.services.scoring import RosterSelection

router = APIRouter(prefix="/contests", tags=["contests"])

@router.get("", response_model=list[ContestListing])
async def contests(status: MatchStatus = Query("upcoming"), session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    return await list_contests(session, status=status)

@router.get("/my-entries", response_model=list[MyEntry])
async def my_entries(session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    return await list_my_entries(session, user.id)

@router.get("/{match_id}/leaderboard", response_model=Leaderboard)
async def leaderboard(match_id: UUID, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    try:
        return await get_leaderboard(session, match_id, user_id=user.id)
    except ServiceError as e:
        raise http_error(e)

@router.post("/{match_id}/entry", response_model=EntrySaved)
async def join_contest(
    match_id: UUID,
    payload: EntrySubmit,
    response: Response,
    session: AsyncSession = Depends(get_session),
    user=Depends(get_current_user),
    notifier: Notifier = Depends(get_notifier),
):
    user_id = user.id
    try:
        created, e = await submit_entry(
            session,
            match_id=match_id,
            user_id=user_id,
            team_id=payload.team_id,
            team_name=payload.team_name,
            roster=RosterSelection.of(payload.player_ids, payload.captain_id, payload.vice_captain_id),
            notifier=notifier,
        )
    except ServiceError as err:
        raise http_error(err)
    response.status_code = 201 if created else 200
    return {
        "created": created,
        "message": "Contest joined" if created else "Team updated",
        "entry": {
            "entry_id": e.id,
            "match_id": e.match_id,
            "team_id": e.team_id,
            "team_name": e.team_name,
            "player_ids": list(e.player_ids or []),
            "captain_id": e.captain_id,
            "vice_captain_id": e.vice_captain_id,
            "points": e.points,
            "updated_at": e.updated_at,
        },
    }

@router.delete("/{match_id}/entry", status_code=204)
async def leave_contest(match_id: UUID, session: AsyncSession = Depends(get_session), user=Depends(get_current_user)):
    try:
        await delete_entry(session, match_id, user.id)
    except ServiceError as e:
        raise http_error(e)
    return Response(status_code=204)
