import uuid
import httpx
from httpx import AsyncClient
from app.jobs.deliver_notification import _run
from app.main import app
from app.services.notifications import get_notifier
import pytest
from conftest import RecordingNotifier, auth_headers, roster_ids


def _client() -> AsyncClient:
    return AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")


def _team(captain="p1", vice="p2", **extra):
    return {"team_id": "t1", "team_name": "Night Owls", "player_ids": roster_ids(), "captain_id": captain, "vice_captain_id": vice, **extra}


@pytest.fixture
def recorder():
    rec = RecordingNotifier()
    app.dependency_overrides[get_notifier] = lambda: rec
    yield rec
    app.dependency_overrides.pop(get_notifier, None)


@pytest.mark.asyncio
async def test_wallet_requires_token(db):
    async with _client() as ac:
        r = await ac.get("/wallet/summary")
        assert r.status_code in (401, 403)
        r = await ac.get("/wallet/summary", headers={"Authorization": "Bearer not-a-jwt"})
        assert r.status_code == 401


@pytest.mark.asyncio
async def test_bonus_flow_and_transactions(make_user):
    uid = await make_user()
    hdrs = auth_headers(uid)
    async with _client() as ac:
        r = await ac.post("/wallet/welcome-bonus", headers=hdrs)
        assert r.status_code == 200, r.text
        assert r.json() == {"created": True, "amount": 500, "balance": 500, "message": "Transaction applied"}

        r = await ac.post("/wallet/welcome-bonus", headers=hdrs)
        assert r.json()["created"] is False and r.json()["balance"] == 500

        r = await ac.post("/wallet/daily-bonus", headers=hdrs)
        assert r.json()["balance"] == 600

        r = await ac.get("/wallet/summary", headers=hdrs)
        assert r.json()["balance"] == 600 and r.json()["transaction_count"] == 2

        r = await ac.get("/wallet/transactions?page=1&size=1", headers=hdrs)
        body = r.json()
        assert len(body["rows"]) == 1
        assert body["pagination"] == {"page": 1, "size": 1, "total": 2, "total_pages": 2}


@pytest.mark.asyncio
async def test_join_update_and_leave_contest(make_user, make_match, recorder):
    uid, mid = await make_user(), await make_match()
    hdrs = auth_headers(uid)
    async with _client() as ac:
        r = await ac.post(f"/contests/{mid}/entry", headers=hdrs, json=_team())
        assert r.status_code == 402

        await ac.post("/wallet/welcome-bonus", headers=hdrs)
        r = await ac.post(f"/contests/{mid}/entry", headers=hdrs, json=_team())
        assert r.status_code == 201, r.text
        assert r.json()["created"] is True

        r = await ac.post(f"/contests/{mid}/entry", headers=hdrs, json=_team(captain="p4"))
        assert r.status_code == 200
        assert r.json()["message"] == "Team updated" and r.json()["entry"]["captain_id"] == "p4"

        r = await ac.get("/contests", headers=hdrs)
        listing = {c["id"]: c for c in r.json()}
        assert listing[str(mid)]["participants_count"] == 1

        r = await ac.get("/contests/my-entries", headers=hdrs)
        assert [e["match_id"] for e in r.json()] == [str(mid)]

        r = await ac.get(f"/contests/{mid}/leaderboard", headers=hdrs)
        assert r.json()["my_entry"]["rank"] == 1

        r = await ac.delete(f"/contests/{mid}/entry", headers=hdrs)
        assert r.status_code == 204
        r = await ac.delete(f"/contests/{mid}/entry", headers=hdrs)
        assert r.status_code == 404

        r = await ac.get("/wallet/summary", headers=hdrs)
        assert r.json()["balance"] == 450
    assert [k for (_, k, _) in recorder.sent] == ["contest_joined"]


@pytest.mark.asyncio
async def test_roster_validation_is_422(make_user, make_match):
    uid, mid = await make_user(), await make_match()
    hdrs = auth_headers(uid)
    bad = [
        _team(captain="p1", vice="p1"),
        _team(captain="zz"),
        {**_team(), "player_ids": roster_ids(n=10)},
        {**_team(), "player_ids": roster_ids(n=10) + ["p1"]},
    ]
    async with _client() as ac:
        for payload in bad:
            r = await ac.post(f"/contests/{mid}/entry", headers=hdrs, json=payload)
            assert r.status_code == 422, payload


@pytest.mark.asyncio
async def test_admin_routes_require_admin(make_user):
    uid = await make_user()
    async with _client() as ac:
        r = await ac.get("/admin/matches", headers=auth_headers(uid))
        assert r.status_code == 403


@pytest.mark.asyncio
async def test_admin_match_lifecycle(make_user, recorder):
    admin, player = await make_user(role="admin"), await make_user(display_name="player one")
    ah, ph = auth_headers(admin), auth_headers(player)
    async with _client() as ac:
        r = await ac.post("/admin/matches", headers=ah, json={
            "league": "IPL",
            "team_a_name": "Mumbai Indians",
            "team_a_short_name": "mi",
            "team_b_name": "Chennai Super Kings",
            "team_b_short_name": "csk",
            "start_time": "2026-10-20T14:00:00Z",
        })
        assert r.status_code == 201, r.text
        match = r.json()
        mid = match["id"]
        assert match["match_label"] == "MI vs CSK" and match["status"] == "upcoming"

        await ac.post("/wallet/welcome-bonus", headers=ph)
        assert (await ac.post(f"/contests/{mid}/entry", headers=ph, json=_team())).status_code == 201

        r = await ac.patch(f"/admin/matches/{mid}/lock", headers=ah)
        assert r.status_code == 200 and r.json()["status"] == "locked"
        r = await ac.patch(f"/admin/matches/{mid}/lock", headers=ah)
        assert r.status_code == 409

        r = await ac.post(f"/contests/{mid}/entry", headers=ph, json=_team(captain="p3"))
        assert r.status_code == 409

        r = await ac.put(f"/admin/matches/{mid}/scorecard", headers=ah, json={
            "performances": [
                {"player_id": "p1", "player_name": "Rohit", "team_short_name": "MI", "runs": 50, "sixes": 2},
                {"player_id": "p2", "player_name": "Bumrah", "team_short_name": "MI", "wickets": 3, "maidens": 1},
            ],
            "innings": [{"team_short_name": "MI", "runs": 180, "wickets": 5, "overs": "20.0"}],
            "result_text": "MI 180/5",
        })
        assert r.status_code == 200, r.text
        assert r.json()["entries_updated"] == 1

        r = await ac.get(f"/admin/matches/{mid}/leaderboard", headers=ah)
        # (50 + 4) * 2 + (75 + 12) * 1.5
        assert r.json()["leaders"][0]["points"] == 238.5
        assert r.json()["leaders"][0]["name"] == "player one"

        r = await ac.patch(f"/admin/matches/{mid}/complete", headers=ah, json={"result": "team_a", "winner_team_short_name": "MI"})
        assert r.status_code == 200, r.text
        report = r.json()
        assert report["credited_count"] == 1 and report["payouts"][0]["prize"] == 1000

        r = await ac.patch(f"/admin/matches/{mid}/complete", headers=ah, json={})
        assert r.json()["credited_count"] == 0 and r.json()["already_credited_count"] == 1

        r = await ac.put(f"/admin/matches/{mid}/scorecard", headers=ah, json={
            "performances": [{"player_id": "p11", "team_short_name": "MI", "runs": 1000}],
        })
        assert r.status_code == 409

        r = await ac.get(f"/matches/{mid}/scorecard")
        card = r.json()
        assert r.status_code == 200
        assert card["result_text"] == "MI 180/5" and card["innings"][0]["runs"] == 180
        assert {p["player_id"]: p["runs"] for p in card["performances"]} == {"p1": 50, "p2": 0}

        r = await ac.get("/matches/completed")
        assert [m["id"] for m in r.json()] == [mid]

        r = await ac.patch(f"/admin/matches/{mid}/abandon", headers=ah)
        assert r.status_code == 409

        r = await ac.get(f"/admin/users/{player}/ledger-audit", headers=ah)
        assert r.json() == {"user_id": str(player), "balance": 1450, "ledger_balance": 1450, "consistent": True}

        r = await ac.get("/admin/matches?status=completed", headers=ah)
        assert [m["id"] for m in r.json()] == [mid]
        assert r.json()[0]["result"] == "team_a"
    assert sorted(k for (_, k, _) in recorder.sent) == ["contest_joined", "match_completed", "match_completed", "prize_credited"]


@pytest.mark.asyncio
async def test_unknown_match_is_404(make_user):
    admin = await make_user(role="admin")
    async with _client() as ac:
        r = await ac.patch(f"/admin/matches/{uuid.uuid4()}/lock", headers=auth_headers(admin))
        assert r.status_code == 404
        r = await ac.get(f"/contests/{uuid.uuid4()}/leaderboard", headers=auth_headers(admin))
        assert r.status_code == 404


@pytest.mark.asyncio
async def test_public_match_reads(make_match):
    upcoming = await make_match()
    async with _client() as ac:
        r = await ac.get("/matches/completed")
        assert r.status_code == 200 and r.json() == []

        r = await ac.get("/matches?status=upcoming")
        assert [m["id"] for m in r.json()] == [str(upcoming)]

        r = await ac.get(f"/matches/{upcoming}/scorecard")
        assert r.status_code == 200
        assert r.json()["innings"] == [] and r.json()["performances"] == []

        r = await ac.get(f"/matches/{uuid.uuid4()}/scorecard")
        assert r.status_code == 404


@pytest.mark.asyncio
async def test_notification_inbox(make_user):
    uid, other = await make_user(), await make_user()
    for kind, key in (("contest_joined", "a"), ("match_completed", "b"), ("prize_credited", "c")):
        await _run(str(uid), kind, {"title": kind, "message": f"msg {key}", "dedupe_key": f"{kind}:{uid}:{key}"})
    await _run(str(other), "system", {"title": "hi", "dedupe_key": f"system:{other}"})
    hdrs = auth_headers(uid)
    async with _client() as ac:
        r = await ac.get("/notifications", headers=hdrs)
        body = r.json()
        assert r.status_code == 200
        assert body["unread_count"] == 3 and body["pagination"]["total"] == 3
        first = body["rows"][0]["id"]

        r = await ac.patch(f"/notifications/{first}/read", headers=hdrs)
        assert r.status_code == 200 and r.json()["is_read"] is True
        r = await ac.get("/notifications/unread-count", headers=hdrs)
        assert r.json() == {"unread_count": 2}
        r = await ac.get("/notifications?unread=true", headers=hdrs)
        assert first not in [n["id"] for n in r.json()["rows"]]

        # someone else's notification looks missing
        r = await ac.get("/notifications", headers=auth_headers(other))
        foreign = r.json()["rows"][0]["id"]
        r = await ac.patch(f"/notifications/{foreign}/read", headers=hdrs)
        assert r.status_code == 404
        r = await ac.delete(f"/notifications/{foreign}", headers=hdrs)
        assert r.status_code == 404

        r = await ac.patch("/notifications/read-all", headers=hdrs)
        assert r.json() == {"updated": 2}
        r = await ac.get("/notifications/unread-count", headers=hdrs)
        assert r.json() == {"unread_count": 0}

        r = await ac.delete(f"/notifications/{first}", headers=hdrs)
        assert r.status_code == 204
        r = await ac.get("/notifications", headers=hdrs)
        assert r.json()["pagination"]["total"] == 2

        r = await ac.get("/notifications/unread-count", headers=auth_headers(other))
        assert r.json() == {"unread_count": 1}
