"""
Fantasy points for a contest roster.

Pure functions only: callers load the roster and the match's performance rows
and pass them in. Rosters join performances on the catalog player id.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Iterable, Mapping


class ScoringEvent(str, Enum):
    RUN = "run"
    FOUR = "four"
    SIX = "six"
    WICKET = "wicket"
    MAIDEN = "maiden"
    CATCH = "catch"
    STUMPING = "stumping"
    RUN_OUT = "run_out"


@dataclass(frozen=True)
class PointsTable:
    version: str
    points: Mapping[ScoringEvent, int]
    captain_multiplier: Decimal = Decimal("2")
    vice_captain_multiplier: Decimal = Decimal("1.5")

    def __post_init__(self):
        missing = [e.value for e in ScoringEvent if e not in self.points]
        if missing:
            raise ValueError(f"points table {self.version} missing events: {', '.join(missing)}")


POINTS_TABLE_V1 = PointsTable(
    version="v1",
    points={
        ScoringEvent.RUN: 1,
        ScoringEvent.FOUR: 1,
        ScoringEvent.SIX: 2,
        ScoringEvent.WICKET: 25,
        ScoringEvent.MAIDEN: 12,
        ScoringEvent.CATCH: 8,
        ScoringEvent.STUMPING: 12,
        ScoringEvent.RUN_OUT: 6,
    },
)


@dataclass(frozen=True)
class PerformanceStats:
    runs: int = 0
    wickets: int = 0
    fours: int = 0
    sixes: int = 0
    maidens: int = 0
    catches: int = 0
    stumpings: int = 0
    run_outs: int = 0

    def event_counts(self) -> dict[ScoringEvent, int]:
        return {
            ScoringEvent.RUN: self.runs,
            ScoringEvent.FOUR: self.fours,
            ScoringEvent.SIX: self.sixes,
            ScoringEvent.WICKET: self.wickets,
            ScoringEvent.MAIDEN: self.maidens,
            ScoringEvent.CATCH: self.catches,
            ScoringEvent.STUMPING: self.stumpings,
            ScoringEvent.RUN_OUT: self.run_outs,
        }

    @classmethod
    def from_row(cls, row) -> "PerformanceStats":
        return cls(
            runs=int(row.runs or 0),
            wickets=int(row.wickets or 0),
            fours=int(row.fours or 0),
            sixes=int(row.sixes or 0),
            maidens=int(row.maidens or 0),
            catches=int(row.catches or 0),
            stumpings=int(row.stumpings or 0),
            run_outs=int(row.run_outs or 0),
        )


@dataclass(frozen=True)
class RosterSelection:
    player_ids: tuple[str, ...] = field(default_factory=tuple)
    captain_id: str | None = None
    vice_captain_id: str | None = None

    @classmethod
    def of(cls, player_ids: Iterable[str], captain_id: str | None, vice_captain_id: str | None) -> "RosterSelection":
        return cls(tuple(str(p) for p in player_ids), captain_id or None, vice_captain_id or None)


def base_points(stats: PerformanceStats, table: PointsTable = POINTS_TABLE_V1) -> int:
    return sum(count * table.points[event] for event, count in stats.event_counts().items())


def multiplier_for(player_id: str, roster: RosterSelection, table: PointsTable = POINTS_TABLE_V1) -> Decimal:
    # captain wins if a roster names the same player for both armbands
    if roster.captain_id and player_id == roster.captain_id:
        return table.captain_multiplier
    if roster.vice_captain_id and player_id == roster.vice_captain_id:
        return table.vice_captain_multiplier
    return Decimal(1)


def round_points(value: Decimal) -> float:
    return float(max(Decimal(0), value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def score(
    roster: RosterSelection,
    performances: Mapping[str, PerformanceStats],
    table: PointsTable = POINTS_TABLE_V1,
) -> float:
    """Total points for a roster; players missing from `performances` score 0."""
    total = Decimal(0)
    for player_id in roster.player_ids:
        stats = performances.get(player_id)
        if stats is None:
            continue
        total += Decimal(base_points(stats, table)) * multiplier_for(player_id, roster, table)
    return round_points(total)
