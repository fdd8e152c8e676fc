from __future__ import annotations
from decimal import Decimal
import pytest
from app.services.scoring import (
    POINTS_TABLE_V1,
    PerformanceStats,
    PointsTable,
    RosterSelection,
    ScoringEvent,
    base_points,
    round_points,
    score,
)


def _roster(captain="a", vice="b"):
    return RosterSelection.of(["a", "b", "c"], captain, vice)


def test_base_points_uses_table_v1():
    stats = PerformanceStats(runs=45, fours=4, sixes=2, wickets=1, maidens=1, catches=1, stumpings=0, run_outs=1)
    # 45 + 4 + 4 + 25 + 12 + 8 + 6
    assert base_points(stats) == 104


def test_captain_is_exactly_double_and_vice_one_and_a_half():
    perf = {"a": PerformanceStats(runs=30), "b": PerformanceStats(runs=30), "c": PerformanceStats(runs=30)}
    assert score(_roster(), perf) == 60 + 45 + 30


def test_captain_precedence_when_both_armbands_name_same_player():
    perf = {"a": PerformanceStats(runs=10)}
    assert score(RosterSelection.of(["a"], "a", "a"), perf) == 20.0


def test_unknown_players_score_zero():
    perf = {"zz": PerformanceStats(runs=99)}
    assert score(_roster(), perf) == 0.0


def test_vice_captain_half_points_round_half_up():
    perf = {"b": PerformanceStats(runs=1)}
    assert score(_roster(), perf) == 1.5
    assert round_points(Decimal("10.25")) == 10.3
    assert round_points(Decimal("-3")) == 0.0


def test_score_is_deterministic():
    perf = {"a": PerformanceStats(runs=17, sixes=1), "c": PerformanceStats(wickets=2, maidens=1)}
    results = {score(_roster(), perf) for _ in range(5)}
    assert results == {score(_roster(), dict(reversed(list(perf.items()))))}


def test_points_table_must_cover_every_event():
    with pytest.raises(ValueError):
        PointsTable(version="broken", points={ScoringEvent.RUN: 1})
    assert POINTS_TABLE_V1.points[ScoringEvent.WICKET] == 25
