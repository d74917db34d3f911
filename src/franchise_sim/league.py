from __future__ import annotations

import copy
import logging
import random
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import Callable

from .config import DEFAULT_TUNING, EngineTuning
from .engine import GameResult, simulate_game
from .errors import InvalidDate, InvalidTeamConfiguration, MalformedLineupData
from .lineup import assemble_lineup, lineup_is_current
from .models import Game, League, Season, TeamLineup, TeamRecord
from .schedule import build_season_schedule
from .season_calendar import EventPriority, EventType, SeasonCalendar, SeasonPhase, SimulationEvent

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float, str], None]

LINEUP_POLICIES = ("always", "when_stale")


@dataclass(frozen=True, slots=True)
class SkippedTeam:
    team_id: str
    team_name: str
    reason: str


@dataclass(slots=True)
class DayReport:
    """Everything that happened while one calendar day was simulated."""

    date: date
    results: list[GameResult] = field(default_factory=list)
    skipped_teams: list[SkippedTeam] = field(default_factory=list)
    skipped_games: list[Game] = field(default_factory=list)
    events: list[SimulationEvent] = field(default_factory=list)
    new_season_started: bool = False
    status: str = ""

    @property
    def games_played(self) -> int:
        return len(self.results)


@dataclass(slots=True)
class FranchiseState:
    league: League
    calendar: SeasonCalendar
    season: Season
    past_seasons: list[Season] = field(default_factory=list)
    user_team_id: str | None = None
    progress: float = 1.0
    status_label: str = "Ready"

    @property
    def current_date(self) -> date:
        return self.calendar.current_date

    @property
    def phase(self) -> SeasonPhase:
        return self.calendar.phase

    def upcoming_events(self, limit: int = 10) -> list[SimulationEvent]:
        return self.calendar.upcoming_events(limit=limit)

    def upcoming_games(self, team_id: str | None = None, limit: int = 10) -> list[Game]:
        return self.season.upcoming_games(self.calendar.current_date, team_id=team_id, limit=limit)

    def total_games_played(self) -> int:
        return sum(1 for game in self.season.games if game.is_completed)

    def user_team_record(self) -> TeamRecord | None:
        if self.user_team_id is None:
            return None
        team = self.league.team(self.user_team_id)
        return team.record if team is not None else None

    def snapshot(self) -> FranchiseState:
        """Independent deep copy, for undo or for handing to a persistence layer."""
        return copy.deepcopy(self)


def standings_table(league: League, phase: SeasonPhase | None = None) -> list[dict[str, object]]:
    teams = league.standings_for_phase(phase) if phase is not None else league.standings()
    out: list[dict[str, object]] = []
    for rank, team in enumerate(teams, start=1):
        rec = team.record
        out.append(
            {
                "rank": rank,
                "team_id": team.team_id,
                "team": team.full_name,
                "abbreviation": team.abbreviation,
                "gp": rec.games_played,
                "wins": rec.wins,
                "losses": rec.losses,
                "ot_losses": rec.ot_losses,
                "points": rec.points,
                "win_pct": round(rec.win_pct, 3),
                "point_pct": round(rec.point_pct, 3),
                "gf": rec.goals_for,
                "ga": rec.goals_against,
                "gd": rec.goal_diff,
                "home": rec.home_record,
                "away": rec.away_record,
                "l10": rec.last10,
                "strk": rec.streak,
            }
        )
    return out


def _game_day_events(games: list[Game]) -> list[SimulationEvent]:
    per_day = Counter(game.date for game in games)
    return [
        SimulationEvent(day, EventType.GAME_DAY, EventPriority.LOW, f"{count} games scheduled")
        for day, count in sorted(per_day.items())
    ]


def _schedule_for(league: League, calendar: SeasonCalendar, year: int, rng: random.Random) -> Season:
    games = build_season_schedule(league, year, rng)
    for event in _game_day_events(games):
        calendar.schedule_event(event)
    return Season(year=year, games=games)


def new_franchise(
    league: League,
    year: int,
    rng: random.Random | None = None,
    user_team_id: str | None = None,
) -> FranchiseState:
    """Start a franchise at the opening of `year`'s season with a freshly built schedule."""
    rng = rng or random.Random()
    if user_team_id is not None and league.team(user_team_id) is None:
        raise ValueError(f"League {league.name} has no team {user_team_id}.")
    calendar = SeasonCalendar(year)
    season = _schedule_for(league, calendar, year, rng)
    logger.info("new franchise in %s starting %s with %d teams", league.name, season.display, len(league.teams))
    return FranchiseState(league=league, calendar=calendar, season=season, user_team_id=user_team_id)


def start_next_season(state: FranchiseState, rng: random.Random | None = None) -> Season:
    """Archive the current season and open the one the calendar has rolled into."""
    rng = rng or random.Random()
    finished = state.season
    finished.is_completed = True
    finished.final_standings = standings_table(state.league)
    state.past_seasons.append(finished)

    for team in state.league.teams:
        team.record = TeamRecord()
        for player in team.roster:
            player.reset_season_stats()

    year = max(state.calendar.season, finished.year + 1)
    state.season = _schedule_for(state.league, state.calendar, year, rng)
    logger.info("archived %s, opened %s", finished.display, state.season.display)
    return state.season


def _assemble_lineups(state: FranchiseState, policy: str, report: DayReport) -> dict[str, TeamLineup]:
    lineups: dict[str, TeamLineup] = {}
    for team in state.league.teams:
        if policy == "when_stale" and team.lineup is not None and lineup_is_current(team, team.lineup):
            lineups[team.team_id] = team.lineup
            continue
        try:
            team.lineup = assemble_lineup(team)
        except (InvalidTeamConfiguration, MalformedLineupData) as exc:
            team.lineup = None
            logger.warning("skipping %s on %s: %s", team.name, report.date, exc)
            report.skipped_teams.append(SkippedTeam(team.team_id, team.name, str(exc)))
            continue
        lineups[team.team_id] = team.lineup
    return lineups


def _fold_result(league: League, result: GameResult) -> None:
    home = league.team(result.home_team_id)
    away = league.team(result.away_team_id)
    extra_time = result.overtime or result.shootout
    if home is not None:
        home.record.register_game(result.home_score, result.away_score, extra_time, is_home=True)
    if away is not None:
        away.record.register_game(result.away_score, result.home_score, extra_time, is_home=False)

    for player_id, box in result.player_stats.items():
        team = league.team(box.team_id)
        player = team.player(player_id) if team is not None else None
        if player is None:
            logger.debug("box score for %s has no rostered player; dropped", player_id)
            continue
        player.record_game(box)


def advance_one_day(
    state: FranchiseState,
    rng: random.Random | None = None,
    progress: ProgressCallback | None = None,
    lineup_policy: str = "when_stale",
    tuning: EngineTuning | None = None,
) -> DayReport:
    """Simulate the current calendar day and step the calendar forward by one.

    Mutates `state` in place; take `state.snapshot()` first to keep the prior day.
    Teams that cannot dress a lineup are skipped along with their games, which
    stay incomplete.
    """
    if lineup_policy not in LINEUP_POLICIES:
        raise ValueError(f"Unknown lineup policy {lineup_policy!r}; expected one of {LINEUP_POLICIES}.")
    rng = rng or random.Random()
    tuning = tuning or DEFAULT_TUNING
    today = state.calendar.current_date
    report = DayReport(date=today)

    def _notify(fraction: float, label: str) -> None:
        state.progress = fraction
        state.status_label = label
        if progress is not None:
            progress(fraction, label)

    _notify(0.0, "Starting day")

    lineups = _assemble_lineups(state, lineup_policy, report)
    _notify(0.1, "Lineups set")

    todays_games = [game for game in state.season.games_on(today) if not game.is_completed]
    _notify(0.2, f"{len(todays_games)} games today")

    results: list[GameResult] = []
    total = len(todays_games)
    for idx, game in enumerate(todays_games, start=1):
        home = state.league.team(game.home_team_id)
        away = state.league.team(game.away_team_id)
        home_lineup = lineups.get(game.home_team_id)
        away_lineup = lineups.get(game.away_team_id)
        if home is None or away is None or home_lineup is None or away_lineup is None:
            logger.warning("game %s on %s left unplayed: a team has no lineup", game.game_id, today)
            report.skipped_games.append(game)
        else:
            result = simulate_game(
                home, away, home_lineup, away_lineup, today, rng=rng, tuning=tuning, game_id=game.game_id
            )
            game.complete(result.outcome)
            results.append(result)
            logger.debug(
                "%s %d @ %s %d%s",
                away.abbreviation,
                result.away_score,
                home.abbreviation,
                result.home_score,
                " (SO)" if result.shootout else " (OT)" if result.overtime else "",
            )
        _notify(round(0.2 + 0.6 * idx / total, 3), f"Simulated game {idx} of {total}")

    _notify(0.8, "Recording results")
    for result in results:
        _fold_result(state.league, result)
    report.results = results

    _notify(0.9, "Updating injuries")
    for player in state.league.all_players():
        player.advance_day()

    report.events = state.calendar.advance(1)
    if state.calendar.season > state.season.year:
        start_next_season(state, rng)
        report.new_season_started = True

    report.status = "Day complete"
    _notify(1.0, report.status)
    logger.info(
        "simulated %s: %d played, %d skipped games, %d skipped teams",
        today,
        report.games_played,
        len(report.skipped_games),
        len(report.skipped_teams),
    )
    return report


def advance_days(
    state: FranchiseState,
    days: int,
    rng: random.Random | None = None,
    progress: ProgressCallback | None = None,
    lineup_policy: str = "when_stale",
    tuning: EngineTuning | None = None,
) -> list[DayReport]:
    if days <= 0:
        raise InvalidDate(f"Cannot advance the franchise by {days} days", days=days)
    rng = rng or random.Random()
    return [advance_one_day(state, rng, progress, lineup_policy, tuning) for _ in range(days)]


def simulate_until(
    state: FranchiseState,
    target: date,
    rng: random.Random | None = None,
    progress: ProgressCallback | None = None,
    lineup_policy: str = "when_stale",
    tuning: EngineTuning | None = None,
) -> list[DayReport]:
    """Simulate day by day until the calendar reaches `target`; no-op for past targets."""
    rng = rng or random.Random()
    reports: list[DayReport] = []
    while state.calendar.current_date < target:
        reports.append(advance_one_day(state, rng, progress, lineup_policy, tuning))
    return reports
