from __future__ import annotations

import logging
import random
from datetime import date, timedelta
from itertools import combinations

from .config import ALL_STAR_BREAK_WINDOW_DAYS, GAME_DAY_WEEKDAYS, MIN_REST_DAYS, SCHEDULE_ATTEMPTS
from .errors import ScheduleConflict
from .models import Game, League
from .season_calendar import all_star_break_date, regular_season_end_date, regular_season_start_date

logger = logging.getLogger(__name__)


def candidate_game_dates(year: int) -> list[date]:
    """Game nights of the regular season: Tue/Thu/Sat/Sun outside the all-star window."""
    start = regular_season_start_date(year)
    end = regular_season_end_date(year)
    break_day = all_star_break_date(year)
    window = timedelta(days=ALL_STAR_BREAK_WINDOW_DAYS)

    dates: list[date] = []
    day = start
    while day <= end:
        if day.weekday() in GAME_DAY_WEEKDAYS and not (break_day - window <= day <= break_day + window):
            dates.append(day)
        day += timedelta(days=1)
    return dates


def _build_matchups(team_ids: list[str], per_pair: int, rng: random.Random) -> list[tuple[str, str]]:
    matchups: list[tuple[str, str]] = []
    for first, second in combinations(team_ids, 2):
        for meeting in range(per_pair):
            # Alternate site orientation across repeated meetings.
            if meeting % 2 == 0:
                matchups.append((first, second))
            else:
                matchups.append((second, first))
    rng.shuffle(matchups)
    return matchups


class _SlateBook:
    """Mutable bookkeeping shared by the greedy and backfill passes."""

    def __init__(self, team_ids: list[str], dates: list[date], cap: int) -> None:
        self.dates = dates
        self.cap = cap
        self.games: list[Game] = []
        self.busy: dict[date, set[str]] = {day: set() for day in dates}
        self.per_date: dict[date, int] = {day: 0 for day in dates}
        self.counts: dict[str, int] = {tid: 0 for tid in team_ids}
        self.home_counts: dict[str, int] = {tid: 0 for tid in team_ids}
        self.last_played: dict[str, date] = {}

    def is_open(self, day: date, home_id: str, away_id: str) -> bool:
        busy = self.busy[day]
        return self.per_date[day] < self.cap and home_id not in busy and away_id not in busy

    def is_rested(self, team_id: str, day: date) -> bool:
        last = self.last_played.get(team_id)
        return last is None or (day - last).days >= MIN_REST_DAYS

    def place(self, day: date, home_id: str, away_id: str) -> None:
        self.games.append(Game(home_team_id=home_id, away_team_id=away_id, date=day))
        self.busy[day].update((home_id, away_id))
        self.per_date[day] += 1
        self.counts[home_id] += 1
        self.counts[away_id] += 1
        self.home_counts[home_id] += 1
        for team_id in (home_id, away_id):
            previous = self.last_played.get(team_id)
            if previous is None or day > previous:
                self.last_played[team_id] = day


def _greedy_pass(book: _SlateBook, matchups: list[tuple[str, str]], target: int) -> list[tuple[str, str]]:
    remaining = list(matchups)
    for day in book.dates:
        if not remaining:
            break
        leftover: list[tuple[str, str]] = []
        for home_id, away_id in remaining:
            if (
                book.is_open(day, home_id, away_id)
                and book.counts[home_id] < target
                and book.counts[away_id] < target
                and book.is_rested(home_id, day)
                and book.is_rested(away_id, day)
            ):
                book.place(day, home_id, away_id)
            else:
                leftover.append((home_id, away_id))
        remaining = leftover
    return remaining


def _first_open_date(book: _SlateBook, first: str, second: str) -> date | None:
    for day in book.dates:
        if book.is_open(day, first, second):
            return day
    return None


def _backfill_pass(book: _SlateBook, target: int, rng: random.Random) -> int:
    added = 0
    while True:
        short = [tid for tid, count in book.counts.items() if count < target]
        if len(short) < 2:
            break
        # Largest deficits first; shuffling before the stable sort breaks ties at random.
        rng.shuffle(short)
        short.sort(key=lambda tid: target - book.counts[tid], reverse=True)

        placed = False
        for first, second in combinations(short, 2):
            day = _first_open_date(book, first, second)
            if day is None:
                continue
            if book.home_counts[first] <= book.home_counts[second]:
                book.place(day, first, second)
            else:
                book.place(day, second, first)
            added += 1
            placed = True
            break
        if not placed:
            break
    return added


def build_season_schedule(league: League, year: int, rng: random.Random | None = None) -> list[Game]:
    """Lay out the regular season so that every team plays exactly `games_per_season` games.

    Matchups come from an even split across opponents and are placed greedily on
    game nights; whatever the split leaves short is backfilled between teams that
    still need games. A layout that leaves anyone short is reshuffled and retried;
    ScheduleConflict is raised once every attempt has come up short.
    """
    rng = rng or random.Random()
    team_ids = [team.team_id for team in league.teams]
    target = league.games_per_season
    if len(team_ids) < 2:
        raise ScheduleConflict(f"League {league.name} needs at least two teams to build a schedule")

    dates = candidate_game_dates(year)
    cap = max(1, len(team_ids) // 2)
    per_pair = target // (len(team_ids) - 1)

    short: dict[str, int] = {}
    for attempt in range(1, SCHEDULE_ATTEMPTS + 1):
        book = _SlateBook(team_ids, dates, cap)
        matchups = _build_matchups(team_ids, per_pair, rng)
        unplaced = _greedy_pass(book, matchups, target)
        added = _backfill_pass(book, target, rng)
        logger.debug(
            "schedule %s attempt %d: %d matchups, %d unplaced after greedy pass, %d backfilled",
            year,
            attempt,
            len(matchups),
            len(unplaced),
            added,
        )
        short = {tid: count for tid, count in book.counts.items() if count != target}
        if not short:
            break
        logger.warning("schedule %s attempt %d left %d teams short; reshuffling", year, attempt, len(short))
    else:
        names = ", ".join(
            f"{league.team(tid).name} ({count})" for tid, count in short.items() if league.team(tid) is not None
        )
        raise ScheduleConflict(f"Could not give every team {target} games for {year}: {names}")

    games = sorted(book.games, key=lambda g: g.date)
    logger.info("built %d-game schedule for %s across %d dates", len(games), year, len({g.date for g in games}))
    return games
