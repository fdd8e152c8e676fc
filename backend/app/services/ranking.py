from __future__ import annotations
from dataclasses import dataclass
from itertools import groupby
from typing import Any, Callable, Iterable

# rank -> coins; ranks 4..10 pay BAND_PRIZE, everything after pays nothing
PRIZE_TABLE = {1: 1000, 2: 500, 3: 300}
BAND_PRIZE = 100
LAST_PAID_RANK = 10


def prize_for_rank(rank: int) -> int:
    if rank < 1 or rank > LAST_PAID_RANK:
        return 0
    return PRIZE_TABLE.get(rank, BAND_PRIZE)


def pooled_prize(rank_start: int, rank_end: int) -> int:
    """Sum of table prizes across [rank_start, rank_end]."""
    return sum(prize_for_rank(r) for r in range(rank_start, rank_end + 1))


def split_even(total: int, n: int) -> int:
    """total / n rounded half-up, in integer arithmetic."""
    if n <= 0:
        return 0
    return (2 * total + n) // (2 * n)


@dataclass(frozen=True)
class Placement:
    item: Any
    points: float
    rank: int       # shared rank of the tie group
    rank_end: int   # last table rank the tie group spans
    prize: int      # per-entry share of the pooled prize


def place(
    items: Iterable[Any],
    points_of: Callable[[Any], float],
    tiebreak: Callable[[Any], Any] | None = None,
) -> list[Placement]:
    """
    Rank items by points, highest first. Equal points share a rank and split
    the pooled prize of the ranks they occupy; the next group starts at
    rank_start + group_size. `tiebreak` only orders rows inside a group.
    """
    ordered = sorted(items, key=lambda it: (-points_of(it), tiebreak(it) if tiebreak else 0))
    placements: list[Placement] = []
    rank_start = 1
    for pts, group in groupby(ordered, key=points_of):
        members = list(group)
        rank_end = rank_start + len(members) - 1
        share = split_even(pooled_prize(rank_start, rank_end), len(members))
        placements.extend(Placement(item=m, points=pts, rank=rank_start, rank_end=rank_end, prize=share) for m in members)
        rank_start = rank_end + 1
    return placements
