"""
Simulated live scoring for locked matches.

One tick advances a single ball in one innings of one locked match and writes
the new player totals through upsert_performances, so contest points move the
same way they would for a real score feed.
"""
from __future__ import annotations
import asyncio
import copy
import random
from typing import Any
import structlog
from sqlalchemy import select
from app.config import settings
from app.db import SessionLocal
from app.models.match import Match
from app.models.scorecard import PlayerPerformance
from app.services.scorecards import PERFORMANCE_FIELDS, get_scorecard, upsert_performances

log = structlog.get_logger()

MAX_BALLS = 120  # 20 overs
MAX_WICKETS = 10
WICKET_CHANCE = 0.16
DISMISSALS = ("bowled", "caught", "stumped", "run_out")


def _new_innings(team_short_name: str) -> dict:
    return {"team_short_name": team_short_name, "runs": 0, "wickets": 0, "overs": "0.0", "balls": 0, "over_runs": 0}


def _innings_open(inn: dict) -> bool:
    return int(inn.get("balls", 0)) < MAX_BALLS and int(inn.get("wickets", 0)) < MAX_WICKETS


def _live_line(innings: list[dict]) -> str:
    return "Live: " + " | ".join(
        f"{i['team_short_name']} {i['runs']}/{i['wickets']} ({i['overs']})" for i in innings
    )


class LiveScoreTicker:
    def __init__(self, session_factory=SessionLocal, interval: float | None = None, rng: random.Random | None = None):
        self.session_factory = session_factory
        self.interval = settings.live_sim_interval_seconds if interval is None else interval
        self.rng = rng or random.Random()
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="live-score-ticker")
        log.info("live_ticker_started", interval=self.interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        log.info("live_ticker_stopped")

    async def _loop(self) -> None:
        while True:
            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception:
                log.exception("live_ticker_tick_failed")
            await asyncio.sleep(self.interval)

    async def tick(self) -> dict[str, Any] | None:
        """Advance one ball. Returns what happened, or None when nothing is live."""
        async with self.session_factory() as session:
            live = (await session.execute(
                select(Match)
                .where(Match.status == "locked")
                .where(Match.id.in_(select(PlayerPerformance.match_id).distinct()))
                .order_by(Match.start_time, Match.id)
            )).scalars().all()
            if not live:
                return None
            m = self.rng.choice(live)
            match_id, team_a, team_b = m.id, m.team_a_short_name, m.team_b_short_name

            card, rows = await get_scorecard(session, match_id)
            innings = copy.deepcopy(card.innings) if card and card.innings else []
            if len(innings) < 2:
                innings = [_new_innings(team_a), _new_innings(team_b)]

            open_sides = [i for i, inn in enumerate(innings[:2]) if _innings_open(inn)]
            if not open_sides:
                return None
            bat = self.rng.choice(open_sides)
            bowl = 1 - bat
            batting_team = innings[bat]["team_short_name"]
            bowling_team = innings[bowl]["team_short_name"]

            totals = {r.player_id: {f: int(getattr(r, f) or 0) for f in PERFORMANCE_FIELDS} for r in rows}
            batters = sorted(r.player_id for r in rows if r.team_short_name == batting_team)
            fielders = sorted(r.player_id for r in rows if r.team_short_name == bowling_team)
            if not batters or not fielders:
                return None

            runs = self.rng.randint(0, 6)
            wicket = self.rng.random() < WICKET_CHANCE
            batter = self.rng.choice(batters[:4])
            bowler = self.rng.choice(fielders[:4])
            changed = {batter, bowler}

            totals[batter]["runs"] += runs
            if runs == 4:
                totals[batter]["fours"] += 1
            elif runs == 6:
                totals[batter]["sixes"] += 1

            dismissal = None
            if wicket:
                dismissal = self.rng.choice(DISMISSALS)
                fielder = self.rng.choice(fielders)
                if dismissal == "run_out":
                    totals[fielder]["run_outs"] += 1
                    changed.add(fielder)
                else:
                    totals[bowler]["wickets"] += 1
                    if dismissal == "caught":
                        totals[fielder]["catches"] += 1
                        changed.add(fielder)
                    elif dismissal == "stumped":
                        totals[fielder]["stumpings"] += 1
                        changed.add(fielder)

            inn = innings[bat]
            inn["runs"] = int(inn.get("runs", 0)) + runs
            inn["wickets"] = min(MAX_WICKETS, int(inn.get("wickets", 0)) + (1 if wicket else 0))
            inn["balls"] = int(inn.get("balls", 0)) + 1
            inn["over_runs"] = int(inn.get("over_runs", 0)) + runs
            inn["overs"] = f"{inn['balls'] // 6}.{inn['balls'] % 6}"
            if inn["balls"] % 6 == 0:
                if inn["over_runs"] == 0:
                    totals[bowler]["maidens"] += 1
                inn["over_runs"] = 0

            updated = await upsert_performances(
                session,
                match_id,
                [{"player_id": pid, **totals[pid]} for pid in sorted(changed)],
                innings=innings,
                result_text=_live_line(innings),
            )

        event = {
            "match_id": match_id,
            "batting_team": batting_team,
            "batter": batter,
            "bowler": bowler,
            "runs": runs,
            "dismissal": dismissal,
            "entries_updated": updated,
        }
        log.info("live_ball", **{k: str(v) if k == "match_id" else v for k, v in event.items()})
        return event
