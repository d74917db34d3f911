from __future__ import annotations

from .config import (
    DEFENSE_PAIR_WEIGHTS,
    DEFENSE_PAIRS,
    DEFENSE_PER_PAIR,
    FORWARD_LINE_WEIGHTS,
    FORWARD_LINES,
    FORWARDS_PER_LINE,
    MIN_DEFENSE,
    MIN_DEFENSE_PER_SIDE,
    MIN_FORWARDS,
    MIN_FORWARDS_PER_POSITION,
    MIN_GOALIES,
)
from .errors import InvalidTeamConfiguration, MalformedLineupData
from .models import DEFENSE_POSITIONS, FORWARD_POSITIONS, GOALIE_POSITIONS, Player, Team, TeamLineup


def forward_line_weight(line_index: int) -> float:
    if 0 <= line_index < len(FORWARD_LINE_WEIGHTS):
        return FORWARD_LINE_WEIGHTS[line_index]
    return FORWARD_LINE_WEIGHTS[-1]


def defense_pair_weight(pair_index: int) -> float:
    if 0 <= pair_index < len(DEFENSE_PAIR_WEIGHTS):
        return DEFENSE_PAIR_WEIGHTS[pair_index]
    return DEFENSE_PAIR_WEIGHTS[-1]


def _by_overall(players: list[Player]) -> list[Player]:
    return sorted(players, key=lambda p: p.overall, reverse=True)


def _check_depth(team: Team, forwards: list[Player], defense: list[Player], goalies: list[Player]) -> None:
    per_forward_slot = [sum(1 for p in forwards if p.position == pos) for pos in ("C", "LW", "RW")]
    if len(forwards) < MIN_FORWARDS and not all(count >= MIN_FORWARDS_PER_POSITION for count in per_forward_slot):
        raise InvalidTeamConfiguration(team.name, "forwards")

    left = sum(1 for p in defense if p.position == "LD")
    right = sum(1 for p in defense if p.position == "RD")
    if left + right < MIN_DEFENSE and left < MIN_DEFENSE_PER_SIDE and right < MIN_DEFENSE_PER_SIDE:
        raise InvalidTeamConfiguration(team.name, "defensemen")

    if len(goalies) < MIN_GOALIES:
        raise InvalidTeamConfiguration(team.name, "goalies")


def assemble_lineup(team: Team) -> TeamLineup:
    """Build the deployment plan for a team from its healthy players.

    Raises InvalidTeamConfiguration when a position group is too thin to try,
    and MalformedLineupData when the filled lineup is still incomplete.
    """
    forwards = _by_overall(team.active_forwards())
    defense = _by_overall(team.active_defense())
    goalies = _by_overall(team.active_goalies())
    _check_depth(team, forwards, defense, goalies)
    centers = [p for p in forwards if p.position == "C"]

    lineup = TeamLineup(team_id=team.team_id)
    placed: set[str] = set()

    anchors = [c.player_id for c in centers[:FORWARD_LINES]]
    for line_index in range(FORWARD_LINES):
        line: list[str] = []
        # One center per line where the depth chart allows it.
        if line_index < len(anchors):
            line.append(anchors[line_index])
            placed.add(anchors[line_index])
        reserved = set(anchors[line_index + 1 :])
        for player in forwards:
            if len(line) >= FORWARDS_PER_LINE:
                break
            if player.player_id in placed or player.player_id in reserved:
                continue
            line.append(player.player_id)
            placed.add(player.player_id)
        lineup.forward_lines[line_index] = line

    for pair_index in range(DEFENSE_PAIRS):
        pair: list[str] = []
        for player in defense:
            if len(pair) >= DEFENSE_PER_PAIR:
                break
            if player.player_id in placed:
                continue
            pair.append(player.player_id)
            placed.add(player.player_id)
        lineup.defense_pairs[pair_index] = pair

    lineup.starting_goalie = goalies[0].player_id if goalies else None
    if len(goalies) > 1:
        lineup.backup_goalie = goalies[1].player_id
    else:
        lineup.backup_goalie = lineup.starting_goalie

    if not lineup.is_valid:
        raise MalformedLineupData(team.name, _describe_gaps(lineup))
    if lineup.has_duplicates():
        raise MalformedLineupData(team.name, "a player fills more than one slot")
    return lineup


def _describe_gaps(lineup: TeamLineup) -> str:
    gaps: list[str] = []
    for idx, line in enumerate(lineup.forward_lines):
        if len(line) != FORWARDS_PER_LINE:
            gaps.append(f"forward line {idx + 1} has {len(line)} players")
    for idx, pair in enumerate(lineup.defense_pairs):
        if len(pair) != DEFENSE_PER_PAIR:
            gaps.append(f"defense pair {idx + 1} has {len(pair)} players")
    if lineup.starting_goalie is None or lineup.backup_goalie is None:
        gaps.append("goalie slots are empty")
    return "; ".join(gaps)


def lineup_is_current(team: Team, lineup: TeamLineup | None) -> bool:
    if lineup is None or lineup.team_id != team.team_id:
        return False
    if not lineup.is_valid or lineup.has_duplicates():
        return False

    def _fits(player_id: str | None, positions: set[str]) -> bool:
        player = team.player(player_id) if player_id else None
        return player is not None and not player.is_injured and player.position in positions

    if not all(_fits(pid, FORWARD_POSITIONS) for line in lineup.forward_lines for pid in line):
        return False
    if not all(_fits(pid, DEFENSE_POSITIONS) for pair in lineup.defense_pairs for pid in pair):
        return False
    return _fits(lineup.starting_goalie, GOALIE_POSITIONS) and _fits(lineup.backup_goalie, GOALIE_POSITIONS)


def validate_lineup(team: Team, lineup: TeamLineup) -> None:
    if not lineup_is_current(team, lineup):
        raise MalformedLineupData(team.name, "lineup references missing, injured or misplaced players")
