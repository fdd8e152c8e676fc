from __future__ import annotations
from pydantic import BaseModel, Field, model_validator
from typing import List
from uuid import UUID
from datetime import datetime
from app.config import settings
from app.schemas.match import MatchSummary

class EntrySubmit(BaseModel):
    team_id: str = Field(min_length=1, max_length=64)
    team_name: str = Field(min_length=1, max_length=80)
    player_ids: List[str]
    captain_id: str = Field(min_length=1, max_length=64)
    vice_captain_id: str = Field(min_length=1, max_length=64)

    @model_validator(mode="after")
    def valid_roster(self):
        ids = [p.strip() for p in self.player_ids]
        if any(not p for p in ids):
            raise ValueError("player_ids must not contain blanks")
        if len(set(ids)) != len(ids):
            raise ValueError("player_ids must be unique")
        if len(ids) != settings.roster_size:
            raise ValueError(f"a team needs exactly {settings.roster_size} players")
        if self.captain_id not in ids or self.vice_captain_id not in ids:
            raise ValueError("captain and vice-captain must be in the team")
        if self.captain_id == self.vice_captain_id:
            raise ValueError("captain and vice-captain must be different players")
        self.player_ids = ids
        return self

class EntryPublic(BaseModel):
    entry_id: UUID
    match_id: UUID
    team_id: str
    team_name: str
    player_ids: List[str]
    captain_id: str
    vice_captain_id: str
    points: float
    updated_at: datetime | None = None

class EntrySaved(BaseModel):
    created: bool
    message: str
    entry: EntryPublic

class MyEntry(EntryPublic):
    match: MatchSummary

class ContestListing(MatchSummary):
    entry_fee: int
    participants_count: int
    prize_pool: int

class LeaderboardRow(BaseModel):
    user_id: UUID
    entry_id: UUID
    name: str
    team_name: str
    rank: int
    points: float
    prize: int

class Leaderboard(BaseModel):
    match: MatchSummary
    participants: int
    leaders: List[LeaderboardRow]
    my_entry: LeaderboardRow | None = None
