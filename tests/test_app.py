import random
from dataclasses import fields

import pytest

from franchise_sim.app import build_default_league, format_player_stats, format_standings
from franchise_sim.league import advance_days, new_franchise
from franchise_sim.lineup import assemble_lineup


def test_default_league_shape() -> None:
    league = build_default_league(team_count=10, seed=1)
    assert len(league.teams) == 10
    assert len({team.full_name for team in league.teams}) == 10
    for team in league.teams:
        assert len(team.roster) == 23
        assert len(team.abbreviation) == 3
        assert len(team.players_at("G")) == 2
        assert all(player.team_id == team.team_id for player in team.roster)
        assemble_lineup(team)


def test_generated_attributes_are_in_range() -> None:
    league = build_default_league(team_count=6, seed=4)
    for player in league.all_players():
        values = [getattr(player.attributes, f.name) for f in fields(player.attributes)]
        assert all(1 <= value <= 99 for value in values)


def test_same_seed_same_league() -> None:
    first = build_default_league(team_count=8, seed=13)
    second = build_default_league(team_count=8, seed=13)
    assert [t.full_name for t in first.teams] == [t.full_name for t in second.teams]
    assert [p.overall for p in first.all_players()] == [p.overall for p in second.all_players()]


@pytest.mark.parametrize("count", [0, 1, 25])
def test_team_count_is_bounded(count: int) -> None:
    with pytest.raises(ValueError):
        build_default_league(team_count=count)


def test_text_reports() -> None:
    league = build_default_league(team_count=10, seed=9)
    state = new_franchise(league, 2025, rng=random.Random(9))
    table = format_standings(state).splitlines()
    assert table[0] == "2025-26 Pre-Season - Oct 01, 2025"
    assert len(table) == 12

    advance_days(state, 14, rng=random.Random(9))
    report = format_player_stats(league.all_players(), "League Leaders", limit=5).splitlines()
    assert report[0] == "League Leaders"
    assert len(report) == 7
