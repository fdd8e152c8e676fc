from __future__ import annotations
from pydantic import BaseModel, Field, model_validator
from typing import Literal
from uuid import UUID
from datetime import datetime

MatchStatus = Literal["upcoming", "locked", "completed", "abandoned"]
MatchResult = Literal["team_a", "team_b", "draw", "no_result"]

class TeamInfo(BaseModel):
    name: str
    short_name: str

class MatchSummary(BaseModel):
    id: UUID
    match_label: str
    league: str
    starts_at: datetime
    status: MatchStatus
    is_editable: bool
    team_a: TeamInfo
    team_b: TeamInfo

class MatchDetail(MatchSummary):
    season: str | None = None
    venue: str | None = None
    result: MatchResult | None = None
    winner_team_short_name: str | None = None
    summary: str | None = None
    completed_at: datetime | None = None

class MatchCreate(BaseModel):
    league: str = Field(min_length=2, max_length=120)
    season: str | None = Field(default=None, max_length=32)
    team_a_name: str = Field(min_length=2, max_length=80)
    team_a_short_name: str = Field(min_length=2, max_length=8)
    team_b_name: str = Field(min_length=2, max_length=80)
    team_b_short_name: str = Field(min_length=2, max_length=8)
    venue: str | None = Field(default=None, max_length=120)
    start_time: datetime

    @model_validator(mode="after")
    def distinct_teams(self):
        if self.team_a_short_name.strip().upper() == self.team_b_short_name.strip().upper():
            raise ValueError("team_a and team_b must be different teams")
        return self

class MatchComplete(BaseModel):
    result: MatchResult | None = None
    winner_team_short_name: str | None = Field(default=None, max_length=8)
    summary: str | None = None

class PayoutPublic(BaseModel):
    user_id: UUID
    rank: int
    points: float
    prize: int
    credited: bool
    status: Literal["credited", "already_credited", "failed", "no_prize"]

class SettlementReportPublic(BaseModel):
    settled: bool
    match_id: UUID
    participants: int
    credited_count: int
    already_credited_count: int
    failed_count: int
    total_prize_distributed: int
    total_prize_pool: int
    payouts: list[PayoutPublic]

class AbandonReport(BaseModel):
    match_id: UUID
    status: Literal["abandoned"]
    refunded_count: int
    already_refunded_count: int
    failed_count: int
