from __future__ import annotations
import asyncio
import uuid
import pytest
from sqlalchemy import select, func
from app.db import SessionLocal
from app.models.contest_entry import ContestEntry
from app.services.contests import delete_entry, get_leaderboard, list_contests, list_my_entries, refresh_points, submit_entry
from app.services.errors import InsufficientBalance, InvalidState, NotFound
from app.services.matches import lock_match
from app.services.scoring import RosterSelection
from app.services.wallet import apply_welcome_bonus, get_balance_summary
from conftest import roster_ids, seed_performances


async def _fund(user_id):
    async with SessionLocal() as s:
        await apply_welcome_bonus(s, user_id)
        await s.commit()


async def _submit(match_id, user_id, roster=None, notifier=None, team_name="Strikers"):
    async with SessionLocal() as s:
        return await submit_entry(
            s,
            match_id=match_id,
            user_id=user_id,
            team_id="t1",
            team_name=team_name,
            roster=roster or RosterSelection.of(roster_ids(), "p1", "p2"),
            notifier=notifier,
        )


async def _balance(user_id) -> int:
    async with SessionLocal() as s:
        return (await get_balance_summary(s, user_id))["balance"]


@pytest.mark.asyncio
async def test_first_submit_charges_fee_resubmit_does_not(make_user, make_match, notifier):
    uid, mid = await make_user(), await make_match()
    await _fund(uid)

    created, entry = await _submit(mid, uid, notifier=notifier)
    assert created and entry.points == 0.0
    assert await _balance(uid) == 450

    created2, entry2 = await _submit(mid, uid, roster=RosterSelection.of(roster_ids(), "p3", "p4"), notifier=notifier)
    assert not created2
    assert entry2.id == entry.id and entry2.captain_id == "p3"
    assert await _balance(uid) == 450
    assert notifier.kinds_for(uid) == ["contest_joined"]


@pytest.mark.asyncio
async def test_submit_without_balance_persists_nothing(make_user, make_match):
    uid, mid = await make_user(), await make_match()
    with pytest.raises(InsufficientBalance):
        await _submit(mid, uid)
    async with SessionLocal() as s:
        assert await s.scalar(select(func.count()).select_from(ContestEntry)) == 0


@pytest.mark.asyncio
async def test_concurrent_first_submissions_charge_once(make_user, make_match):
    uid, mid = await make_user(), await make_match()
    await _fund(uid)
    results = await asyncio.gather(_submit(mid, uid), _submit(mid, uid))
    assert sorted(c for c, _ in results) == [False, True]
    assert await _balance(uid) == 450
    async with SessionLocal() as s:
        assert await s.scalar(select(func.count()).select_from(ContestEntry)) == 1


@pytest.mark.asyncio
async def test_unknown_match_is_not_found(make_user):
    uid = await make_user()
    with pytest.raises(NotFound):
        await _submit(uuid.uuid4(), uid)


@pytest.mark.asyncio
async def test_locked_match_rejects_new_entries_and_deletes(make_user, make_match):
    early, late, mid = await make_user(), await make_user(), await make_match()
    await _fund(early)
    await _fund(late)
    await _submit(mid, early)
    async with SessionLocal() as s:
        await lock_match(s, mid)

    with pytest.raises(InvalidState):
        await _submit(mid, late)
    assert await _balance(late) == 500
    async with SessionLocal() as s:
        with pytest.raises(InvalidState):
            await delete_entry(s, mid, early)


@pytest.mark.asyncio
async def test_delete_entry_then_rejoin_is_free(make_user, make_match):
    uid, mid = await make_user(), await make_match()
    await _fund(uid)
    await _submit(mid, uid)
    async with SessionLocal() as s:
        await delete_entry(s, mid, uid)
        with pytest.raises(NotFound):
            await delete_entry(s, mid, uid)
    created, _ = await _submit(mid, uid)
    assert created
    assert await _balance(uid) == 450


@pytest.mark.asyncio
async def test_refresh_points_only_writes_changes(make_user, make_match):
    uid, mid = await make_user(), await make_match()
    await _fund(uid)
    await _submit(mid, uid)

    updated = await seed_performances(mid, [
        {"player_id": "p1", "player_name": "Opener", "team_short_name": "MI", "runs": 40, "fours": 4},
        {"player_id": "p2", "player_name": "Spinner", "team_short_name": "MI", "wickets": 2},
        {"player_id": "x9", "player_name": "Not picked", "team_short_name": "CSK", "runs": 100},
    ])
    assert updated == 1
    async with SessionLocal() as s:
        assert await refresh_points(s, mid) == 0
        entries = await list_my_entries(s, uid)
    # captain (40 + 4) * 2 + vice 50 * 1.5
    assert entries[0]["points"] == 163.0
    assert entries[0]["match"]["match_label"] == "MI vs CSK"


@pytest.mark.asyncio
async def test_leaderboard_shares_rank_and_hides_prize_until_completed(make_user, make_match):
    a, b, c = await make_user(display_name="alpha"), await make_user(display_name="bravo"), await make_user(display_name="charlie")
    mid = await make_match()
    for uid in (a, b, c):
        await _fund(uid)
    await _submit(mid, a, RosterSelection.of(roster_ids(), "p1", "p2"))
    await _submit(mid, b, RosterSelection.of(roster_ids(), "p1", "p2"))
    await _submit(mid, c, RosterSelection.of(roster_ids(), "p3", "p2"))
    await seed_performances(mid, [{"player_id": "p1", "team_short_name": "MI", "runs": 60}])

    async with SessionLocal() as s:
        board = await get_leaderboard(s, mid, user_id=c)
    assert board["participants"] == 3
    assert [(r["name"], r["rank"], r["points"]) for r in board["leaders"]] == [
        ("alpha", 1, 120.0),
        ("bravo", 1, 120.0),
        ("charlie", 3, 60.0),
    ]
    assert all(r["prize"] == 0 for r in board["leaders"])
    assert board["my_entry"]["rank"] == 3


@pytest.mark.asyncio
async def test_list_contests_reports_pool(make_user, make_match):
    uid, mid = await make_user(), await make_match()
    await make_match("RCB", "KKR")
    await _fund(uid)
    await _submit(mid, uid)
    async with SessionLocal() as s:
        rows = await list_contests(s, "upcoming")
        assert await list_contests(s, "completed") == []
    by_id = {r["id"]: r for r in rows}
    assert len(rows) == 2
    assert by_id[mid]["participants_count"] == 1
    assert by_id[mid]["prize_pool"] == 50
    assert by_id[mid]["entry_fee"] == 50
