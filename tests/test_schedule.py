import random
from collections import Counter
from datetime import date

import pytest

from franchise_sim.app import build_default_league
from franchise_sim.errors import ScheduleConflict
from franchise_sim.models import League, Team
from franchise_sim.schedule import build_season_schedule, candidate_game_dates


def test_candidate_dates_are_game_nights_inside_the_regular_season() -> None:
    dates = candidate_game_dates(2025)
    assert dates == sorted(dates)
    assert dates[0] >= date(2025, 10, 10)
    assert dates[-1] <= date(2026, 4, 15)
    assert all(day.weekday() in {1, 3, 5, 6} for day in dates)
    assert not any(date(2026, 2, 12) <= day <= date(2026, 2, 18) for day in dates)
    assert date(2026, 2, 19) in dates


@pytest.mark.parametrize("seed", [1, 7, 2025])
def test_every_team_gets_a_full_slate(seed: int) -> None:
    league = build_default_league(team_count=10, seed=seed)
    games = build_season_schedule(league, 2025, rng=random.Random(seed))
    allowed = set(candidate_game_dates(2025))

    per_team: Counter[str] = Counter()
    per_day: dict[date, list[str]] = {}
    for game in games:
        per_team[game.home_team_id] += 1
        per_team[game.away_team_id] += 1
        per_day.setdefault(game.date, []).extend((game.home_team_id, game.away_team_id))
        assert game.date in allowed
        assert not game.is_completed

    assert len(games) == 410
    assert all(per_team[team.team_id] == 82 for team in league.teams)
    for teams_on_day in per_day.values():
        # Nobody plays twice on one night and no night holds more than half the league.
        assert len(teams_on_day) == len(set(teams_on_day))
        assert len(teams_on_day) // 2 <= 5
    assert [g.date for g in games] == sorted(g.date for g in games)


@pytest.mark.parametrize("seed", [0, 5, 41])
@pytest.mark.parametrize("team_count", [4, 5, 7, 9, 11, 23])
def test_backfill_completes_odd_and_uneven_leagues(team_count: int, seed: int) -> None:
    league = League(name="Sized", teams=[Team(name=f"Team {idx}") for idx in range(team_count)])
    games = build_season_schedule(league, 2025, rng=random.Random(seed))

    per_team = Counter(tid for game in games for tid in (game.home_team_id, game.away_team_id))
    assert all(per_team[team.team_id] == league.games_per_season for team in league.teams)
    assert len(games) == team_count * league.games_per_season // 2

    seen: set[tuple[date, str]] = set()
    for game in games:
        for tid in (game.home_team_id, game.away_team_id):
            assert (game.date, tid) not in seen
            seen.add((game.date, tid))


def test_same_seed_builds_same_schedule() -> None:
    league = build_default_league(team_count=10, seed=3)
    first = build_season_schedule(league, 2025, rng=random.Random(99))
    second = build_season_schedule(league, 2025, rng=random.Random(99))
    assert [(g.date, g.home_team_id, g.away_team_id) for g in first] == [
        (g.date, g.home_team_id, g.away_team_id) for g in second
    ]


def test_home_games_are_roughly_balanced() -> None:
    league = build_default_league(team_count=10, seed=12)
    games = build_season_schedule(league, 2025, rng=random.Random(12))
    home = Counter(game.home_team_id for game in games)
    assert all(33 <= home[team.team_id] <= 49 for team in league.teams)


def test_two_team_league_plays_each_other_all_season() -> None:
    league = League(name="Pair", teams=[Team(name="Alpha"), Team(name="Bravo")])
    games = build_season_schedule(league, 2025, rng=random.Random(1))
    assert len(games) == 82
    assert len({g.date for g in games}) == 82


def test_infeasible_calendars_raise_schedule_conflict() -> None:
    trio = League(name="Trio", teams=[Team(name="A1"), Team(name="B2"), Team(name="C3")])
    with pytest.raises(ScheduleConflict) as excinfo:
        build_season_schedule(trio, 2025, rng=random.Random(1))
    assert excinfo.value.error_code == "SCHEDULE_CONFLICT"

    with pytest.raises(ScheduleConflict):
        build_season_schedule(League(name="Solo", teams=[Team(name="Only")]), 2025)
