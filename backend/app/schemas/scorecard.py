from __future__ import annotations
from pydantic import BaseModel, Field, field_validator
from typing import List
from app.schemas.match import MatchSummary

class PerformanceIn(BaseModel):
    """Aggregate totals for one player; each update replaces the stored row."""
    player_id: str = Field(min_length=1, max_length=64)
    player_name: str | None = Field(default=None, max_length=120)
    team_short_name: str | None = Field(default=None, max_length=8)
    runs: int = Field(ge=0, default=0)
    wickets: int = Field(ge=0, le=10, default=0)
    fours: int = Field(ge=0, default=0)
    sixes: int = Field(ge=0, default=0)
    maidens: int = Field(ge=0, default=0)
    catches: int = Field(ge=0, default=0)
    stumpings: int = Field(ge=0, default=0)
    run_outs: int = Field(ge=0, default=0)

class InningsIn(BaseModel):
    team_short_name: str = Field(min_length=1, max_length=8)
    runs: int = Field(ge=0, default=0)
    wickets: int = Field(ge=0, le=10, default=0)
    overs: str = "0.0"

class ScorecardUpdate(BaseModel):
    performances: List[PerformanceIn]
    innings: List[InningsIn] | None = None
    result_text: str | None = None

    @field_validator("performances")
    @classmethod
    def unique_players(cls, v: list[PerformanceIn]):
        ids = [p.player_id for p in v]
        if len(ids) != len(set(ids)):
            raise ValueError("duplicate player_id in performances")
        return v

class ScorecardUpdateResult(BaseModel):
    match_id: str
    players: int
    entries_updated: int

class InningsPublic(BaseModel):
    team_short_name: str
    runs: int = 0
    wickets: int = 0
    overs: str = "0.0"

class ScorecardPublic(BaseModel):
    match: MatchSummary
    innings: List[InningsPublic]
    result_text: str | None = None
    performances: List[PerformanceIn]
