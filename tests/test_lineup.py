import pytest

from franchise_sim.app import build_default_league
from franchise_sim.errors import InvalidTeamConfiguration, MalformedLineupData
from franchise_sim.lineup import (
    assemble_lineup,
    defense_pair_weight,
    forward_line_weight,
    lineup_is_current,
    validate_lineup,
)
from franchise_sim.models import DEFENSE_POSITIONS, FORWARD_POSITIONS, GOALIE_POSITIONS


def _assert_lineup_invariant(team, lineup) -> None:
    assert len(lineup.forward_lines) == 4
    assert all(len(line) == 3 and len(set(line)) == 3 for line in lineup.forward_lines)
    assert len(lineup.defense_pairs) == 3
    assert all(len(pair) == 2 and len(set(pair)) == 2 for pair in lineup.defense_pairs)
    assert lineup.starting_goalie is not None
    assert lineup.backup_goalie is not None
    skaters = lineup.skater_ids()
    assert len(skaters) == len(set(skaters)) == 18
    assert not lineup.has_duplicates()
    for line in lineup.forward_lines:
        assert all(team.player(pid).position in FORWARD_POSITIONS for pid in line)
    for pair in lineup.defense_pairs:
        assert all(team.player(pid).position in DEFENSE_POSITIONS for pid in pair)
    assert team.player(lineup.starting_goalie).position in GOALIE_POSITIONS


def test_default_league_teams_assemble_valid_lineups() -> None:
    league = build_default_league(team_count=10, seed=5)
    for team in league.teams:
        lineup = assemble_lineup(team)
        _assert_lineup_invariant(team, lineup)
        assert lineup_is_current(team, lineup)


def test_centers_anchor_each_line_and_best_goalie_starts(make_team) -> None:
    team = make_team()
    goalies = team.players_at("G")
    goalies[1].attributes.glove_hand = 99
    goalies[1].attributes.blocker = 99
    goalies[1].attributes.pad_saves = 99
    goalies[1].attributes.reaction_time = 99
    goalies[1].attributes.second_saves = 99

    lineup = assemble_lineup(team)
    for line in lineup.forward_lines:
        assert team.player(line[0]).position == "C"
    assert lineup.starting_goalie == goalies[1].player_id
    assert lineup.backup_goalie == goalies[0].player_id


def test_injured_players_are_left_out(make_team) -> None:
    team = make_team(centers=5)
    hurt = team.players_at("C")[0]
    hurt.injure(4)
    lineup = assemble_lineup(team)
    assert hurt.player_id not in lineup.player_ids()
    _assert_lineup_invariant(team, lineup)


def test_missing_goalies_raise_invalid_configuration(make_team) -> None:
    team = make_team(name="Thin", goalies=1)
    with pytest.raises(InvalidTeamConfiguration) as excinfo:
        assemble_lineup(team)
    assert excinfo.value.team_name == "Thin"
    assert excinfo.value.missing_unit == "goalies"
    assert "Thin" in str(excinfo.value)


def test_short_forward_group_raises_invalid_configuration(make_team) -> None:
    team = make_team(right_wings=3)
    with pytest.raises(InvalidTeamConfiguration) as excinfo:
        assemble_lineup(team)
    assert excinfo.value.missing_unit == "forwards"


def test_short_defense_group_raises_invalid_configuration(make_team) -> None:
    team = make_team(left_defense=2, right_defense=2)
    with pytest.raises(InvalidTeamConfiguration) as excinfo:
        assemble_lineup(team)
    assert excinfo.value.missing_unit == "defensemen"


def test_incomplete_pair_is_malformed(make_team) -> None:
    # Three left-side defensemen pass the depth check but cannot fill a third pair.
    team = make_team(left_defense=3, right_defense=2)
    with pytest.raises(MalformedLineupData):
        assemble_lineup(team)


def test_wings_fill_lines_when_centers_are_short(make_team) -> None:
    team = make_team(centers=3, left_wings=5, right_wings=4)
    lineup = assemble_lineup(team)
    _assert_lineup_invariant(team, lineup)
    assert team.player(lineup.forward_lines[3][0]).position != "C"


def test_lineup_goes_stale_when_a_dressed_player_is_hurt(make_team) -> None:
    team = make_team()
    lineup = assemble_lineup(team)
    team.player(lineup.defense_pairs[0][0]).injure(2)
    assert not lineup_is_current(team, lineup)
    with pytest.raises(MalformedLineupData):
        validate_lineup(team, lineup)


def test_deployment_weights() -> None:
    assert [forward_line_weight(i) for i in range(4)] == [0.30, 0.25, 0.25, 0.20]
    assert [defense_pair_weight(i) for i in range(3)] == [0.40, 0.35, 0.25]
    assert forward_line_weight(9) == 0.20
    assert defense_pair_weight(-1) == 0.25
