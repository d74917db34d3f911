from __future__ import annotations

import logging
import random
from threading import Lock
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from .app import build_default_league
from .config import DEFAULT_START_YEAR, DEFAULT_TEAM_COUNT, MAX_ADVANCE_DAYS
from .errors import InvalidDate, InvalidTeamConfiguration, MalformedLineupData, ScheduleConflict
from .league import DayReport, FranchiseState, advance_days, new_franchise, standings_table
from .lineup import assemble_lineup, defense_pair_weight, forward_line_weight
from .models import POSITION_NAMES, Game, Team
from .season_calendar import SimulationEvent

logger = logging.getLogger(__name__)


class AdvanceSelection(BaseModel):
    days: int = Field(default=1, le=MAX_ADVANCE_DAYS)


class ResetSelection(BaseModel):
    seed: int | None = None
    team_count: int = DEFAULT_TEAM_COUNT
    year: int = DEFAULT_START_YEAR


class SimService:
    def __init__(self, seed: int | None = None) -> None:
        self._lock = Lock()
        self._init_fresh_state(seed=seed)

    def _init_fresh_state(
        self,
        seed: int | None = None,
        team_count: int = DEFAULT_TEAM_COUNT,
        year: int = DEFAULT_START_YEAR,
    ) -> None:
        rng = random.Random(seed)
        league = build_default_league(team_count=team_count, seed=seed)
        # Swap in the new franchise only once it has been built successfully.
        self.state: FranchiseState = new_franchise(league, year, rng=rng)
        self._rng = rng
        self.last_report: DayReport | None = None

    def _team_or_404(self, team_id: str) -> Team:
        team = self.state.league.team(team_id)
        if team is None:
            raise HTTPException(status_code=404, detail="Team not found")
        return team

    def _event_row(self, event: SimulationEvent) -> dict[str, Any]:
        return {
            "event_id": event.event_id,
            "date": event.date.isoformat(),
            "type": event.type.value,
            "priority": event.priority.name.lower(),
            "description": event.description,
        }

    def _game_row(self, game: Game) -> dict[str, Any]:
        home = self.state.league.team(game.home_team_id)
        away = self.state.league.team(game.away_team_id)
        row: dict[str, Any] = {
            "game_id": game.game_id,
            "date": game.date.isoformat(),
            "home": home.full_name if home is not None else game.home_team_id,
            "away": away.full_name if away is not None else game.away_team_id,
            "completed": game.is_completed,
        }
        if game.result is not None:
            row["home_score"] = game.result.home_score
            row["away_score"] = game.result.away_score
            row["overtime"] = game.result.overtime
            row["shootout"] = game.result.shootout
        return row

    def status(self) -> dict[str, Any]:
        calendar = self.state.calendar
        return {
            "date": calendar.current_date.isoformat(),
            "formatted_date": calendar.formatted_date,
            "season": calendar.season_display,
            "phase": calendar.phase.value,
            "phase_label": calendar.phase_label,
            "progress": round(self.state.progress, 3),
            "status": self.state.status_label,
            "days_until_next_phase": calendar.days_until_next_phase(),
            "games_played": self.state.total_games_played(),
            "games_remaining_estimate": calendar.games_remaining_estimate(),
            "past_seasons": [season.display for season in self.state.past_seasons],
        }

    def standings(self) -> list[dict[str, Any]]:
        return standings_table(self.state.league, self.state.calendar.phase)

    def upcoming_events(self, limit: int = 10) -> list[dict[str, Any]]:
        return [self._event_row(event) for event in self.state.upcoming_events(limit=limit)]

    def upcoming_games(self, team_id: str | None = None, limit: int = 10) -> list[dict[str, Any]]:
        if team_id is not None:
            self._team_or_404(team_id)
        return [self._game_row(game) for game in self.state.upcoming_games(team_id=team_id, limit=limit)]

    def team_lineup(self, team_id: str) -> dict[str, Any]:
        team = self._team_or_404(team_id)
        lineup = team.lineup
        if lineup is None:
            try:
                lineup = assemble_lineup(team)
            except (InvalidTeamConfiguration, MalformedLineupData) as exc:
                raise HTTPException(status_code=409, detail=str(exc)) from exc

        def _names(player_ids: list[str]) -> list[dict[str, Any]]:
            out: list[dict[str, Any]] = []
            for player_id in player_ids:
                player = team.player(player_id)
                out.append(
                    {
                        "player_id": player_id,
                        "name": player.name if player is not None else "",
                        "position": player.position if player is not None else "",
                        "overall": player.overall if player is not None else 0,
                    }
                )
            return out

        return {
            "team_id": team.team_id,
            "team": team.full_name,
            "forward_lines": [
                {"line": idx + 1, "weight": forward_line_weight(idx), "players": _names(line)}
                for idx, line in enumerate(lineup.forward_lines)
            ],
            "defense_pairs": [
                {"pair": idx + 1, "weight": defense_pair_weight(idx), "players": _names(pair)}
                for idx, pair in enumerate(lineup.defense_pairs)
            ],
            "starting_goalie": _names([lineup.starting_goalie])[0] if lineup.starting_goalie else None,
            "backup_goalie": _names([lineup.backup_goalie])[0] if lineup.backup_goalie else None,
        }

    def player_detail(self, player_id: str) -> dict[str, Any]:
        found = self.state.league.find_player(player_id)
        if found is None:
            raise HTTPException(status_code=404, detail="Player not found")
        team, player = found
        stats = player.season_stats
        row: dict[str, Any] = {
            "player_id": player.player_id,
            "name": player.name,
            "team": team.full_name,
            "position": player.position,
            "position_name": POSITION_NAMES[player.position],
            "age": player.age,
            "overall": player.overall,
            "injury_days": player.injury.days_remaining if player.injury is not None else 0,
            "games_played": stats.games_played,
            "time_on_ice_avg": round(stats.average_toi, 1),
        }
        if player.is_goalie:
            row.update(
                {
                    "wins": stats.wins,
                    "losses": stats.losses,
                    "ot_losses": stats.overtime_losses,
                    "save_pct": round(stats.save_pct, 3),
                    "gaa": round(stats.gaa, 2),
                    "shutouts": stats.shutouts,
                }
            )
        else:
            row.update(
                {
                    "goals": stats.goals,
                    "assists": stats.assists,
                    "points": stats.points,
                    "plus_minus": stats.plus_minus,
                    "shots": stats.shots,
                    "faceoff_pct": round(stats.faceoff_pct, 3),
                }
            )
        return row

    def advance(self, days: int) -> dict[str, Any]:
        try:
            reports = advance_days(self.state, days, rng=self._rng)
        except InvalidDate as exc:
            raise HTTPException(status_code=400, detail=exc.message) from exc
        self.last_report = reports[-1]
        skipped_teams = sorted({skip.team_name for report in reports for skip in report.skipped_teams})
        logger.info("advanced %d days to %s", days, self.state.current_date)
        return {
            "days": days,
            "games_played": sum(report.games_played for report in reports),
            "skipped_games": sum(len(report.skipped_games) for report in reports),
            "skipped_teams": skipped_teams,
            "events": [self._event_row(event) for report in reports for event in report.events],
            "new_season": any(report.new_season_started for report in reports),
            "status": self.status(),
        }

    def reset(
        self,
        seed: int | None = None,
        team_count: int = DEFAULT_TEAM_COUNT,
        year: int = DEFAULT_START_YEAR,
    ) -> dict[str, Any]:
        try:
            self._init_fresh_state(seed=seed, team_count=team_count, year=year)
        except (ValueError, ScheduleConflict) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return self.status()


service = SimService()
app = FastAPI(title="Franchise Sim API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/status")
def status() -> dict[str, Any]:
    with service._lock:
        return service.status()


@app.get("/api/standings")
def standings() -> list[dict[str, Any]]:
    with service._lock:
        return service.standings()


@app.get("/api/events/upcoming")
def upcoming_events(limit: int = 10) -> list[dict[str, Any]]:
    with service._lock:
        return service.upcoming_events(limit=limit)


@app.get("/api/games/upcoming")
def upcoming_games(team: str | None = None, limit: int = 10) -> list[dict[str, Any]]:
    with service._lock:
        return service.upcoming_games(team_id=team, limit=limit)


@app.get("/api/teams/{team_id}/lineup")
def team_lineup(team_id: str) -> dict[str, Any]:
    with service._lock:
        return service.team_lineup(team_id)


@app.get("/api/players/{player_id}")
def player_detail(player_id: str) -> dict[str, Any]:
    with service._lock:
        return service.player_detail(player_id)


@app.post("/api/advance")
def advance(payload: AdvanceSelection) -> dict[str, Any]:
    with service._lock:
        return service.advance(payload.days)


@app.post("/api/reset")
def reset(payload: ResetSelection) -> dict[str, Any]:
    with service._lock:
        return service.reset(seed=payload.seed, team_count=payload.team_count, year=payload.year)
