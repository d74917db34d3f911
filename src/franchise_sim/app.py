from __future__ import annotations

import random
from dataclasses import fields
from typing import Iterable

from .config import DEFAULT_TEAM_COUNT
from .league import FranchiseState, standings_table
from .models import GoalieAttributes, League, Player, SkaterAttributes, Team

CITY_NAMES: tuple[str, ...] = (
    "Calgary", "Vancouver", "Toronto", "Montreal", "Ottawa", "Edmonton", "Winnipeg", "Quebec City",
    "Halifax", "Victoria", "Regina", "Saskatoon", "London", "Hamilton", "Windsor", "Kingston",
    "Thunder Bay", "Sudbury", "Barrie", "Oshawa", "Kelowna", "Red Deer", "Lethbridge", "Kamloops",
)
TEAM_NAMES: tuple[str, ...] = (
    "Wolves", "Eagles", "Sharks", "Lions", "Bears", "Tigers", "Hawks", "Dragons",
    "Thunder", "Lightning", "Storm", "Ice", "Fire", "Steel", "Crusaders", "Warriors",
    "Knights", "Rangers", "Hunters", "Titans", "Phoenix", "Avalanche", "Blizzard", "Cyclones",
)

ROSTER_TEMPLATE: tuple[str, ...] = (
    "C", "C", "C", "C", "C",
    "LW", "LW", "LW", "LW", "LW",
    "RW", "RW", "RW", "RW", "RW",
    "LD", "LD", "LD",
    "RD", "RD", "RD",
    "G", "G",
)

_ATTRIBUTE_GROUPS: dict[str, tuple[str, ...]] = {
    "shooting": ("shooting_accuracy", "shooting_power", "quick_release", "one_timer"),
    "passing": ("passing_accuracy", "passing_vision", "passing_creativity", "passing_under_pressure"),
    "defense": (
        "stick_checking",
        "gap_control",
        "shot_blocking",
        "defensive_positioning",
        "poke_checking",
        "backchecking",
    ),
    "physical": ("body_checking", "strength", "balance", "stamina"),
}

ROLE_ADJUSTMENTS: dict[str, dict[str, int]] = {
    "sniper": {"shooting": 10, "passing": -4, "defense": -5},
    "playmaker": {"passing": 10, "shooting": -4, "defense": -4},
    "two-way": {"defense": 8, "shooting": 2, "passing": 2},
    "depth": {"physical": 8, "defense": 3, "shooting": -3},
    "shutdown": {"defense": 10, "physical": 4, "shooting": -6},
    "offensive": {"shooting": 5, "passing": 7, "defense": -4},
}
FORWARD_ROLES = ("sniper", "playmaker", "two-way", "depth")
DEFENSE_ROLES = ("shutdown", "two-way", "offensive", "depth")


def _sample_quality(rng: random.Random, tier_plan: list[tuple[float, float, float]]) -> float:
    roll = rng.random()
    cumulative = 0.0
    for weight, low, high in tier_plan:
        cumulative += weight
        if roll <= cumulative:
            return rng.uniform(low, high)
    return rng.uniform(tier_plan[-1][1], tier_plan[-1][2])


def _abbreviation(city: str, name: str) -> str:
    return (city[:1] + name[:2]).upper()


def _skater_attributes(rng: random.Random, quality: float, role: str) -> SkaterAttributes:
    base = 35 + quality * 55
    values = {f.name: base + rng.uniform(-6, 6) for f in fields(SkaterAttributes)}
    for group, delta in ROLE_ADJUSTMENTS[role].items():
        for name in _ATTRIBUTE_GROUPS[group]:
            values[name] += delta
    attrs = SkaterAttributes(**{name: int(round(value)) for name, value in values.items()})
    attrs.clamp()
    return attrs


def _goalie_attributes(rng: random.Random, quality: float, starter: bool) -> GoalieAttributes:
    base = 40 + quality * 50 + (3 if starter else -2)
    attrs = GoalieAttributes(**{f.name: int(round(base + rng.uniform(-5, 5))) for f in fields(GoalieAttributes)})
    attrs.clamp()
    return attrs


def _make_roster(city: str, team_name: str, rng: random.Random) -> list[Player]:
    # Pro-style talent pyramid: very few stars, more middle/depth players.
    skater_tiers = [(0.08, 0.85, 1.00), (0.22, 0.68, 0.85), (0.42, 0.50, 0.68), (0.28, 0.32, 0.50)]
    goalie_tiers = [(0.10, 0.82, 0.96), (0.40, 0.64, 0.82), (0.50, 0.46, 0.64)]
    abbreviation = _abbreviation(city, team_name)

    roster: list[Player] = []
    per_position: dict[str, int] = {}
    for number, position in enumerate(ROSTER_TEMPLATE, start=2):
        per_position[position] = per_position.get(position, 0) + 1
        label = f"{abbreviation} {position}{per_position[position]}"
        age = rng.randint(20, 35)
        if position == "G":
            starter = per_position[position] == 1
            attributes = _goalie_attributes(rng, _sample_quality(rng, goalie_tiers), starter)
            roster.append(Player.goalie(label, attributes=attributes, age=age, jersey_number=29 + per_position[position]))
            continue
        roles = DEFENSE_ROLES if position in {"LD", "RD"} else FORWARD_ROLES
        attributes = _skater_attributes(rng, _sample_quality(rng, skater_tiers), rng.choice(roles))
        roster.append(Player.skater(label, position, attributes=attributes, age=age, jersey_number=number))
    return roster


def build_default_league(
    team_count: int = DEFAULT_TEAM_COUNT,
    seed: int | None = None,
    name: str = "Franchise Hockey League",
) -> League:
    """Create a league of randomly rated teams, each able to dress a full lineup."""
    if not 2 <= team_count <= len(TEAM_NAMES):
        raise ValueError(f"team_count must be between 2 and {len(TEAM_NAMES)}, got {team_count}.")
    rng = random.Random(seed)
    cities = rng.sample(CITY_NAMES, team_count)
    names = rng.sample(TEAM_NAMES, team_count)

    teams: list[Team] = []
    for city, team_name in zip(cities, names):
        teams.append(
            Team(
                name=team_name,
                city=city,
                abbreviation=_abbreviation(city, team_name),
                roster=_make_roster(city, team_name, rng),
            )
        )
    return League(name=name, teams=teams)


def format_standings(state: FranchiseState) -> str:
    lines = [f"{state.season.display} {state.calendar.phase_label} - {state.calendar.formatted_date}"]
    lines.append("Pos Team                     GP  Pts  W  L OTL  GF  GA  GD")
    for row in standings_table(state.league, state.calendar.phase):
        lines.append(
            f"{row['rank']:>3} {row['team']:<24} {row['gp']:>2} {row['points']:>4} {row['wins']:>2} {row['losses']:>2}"
            f" {row['ot_losses']:>3} {row['gf']:>3} {row['ga']:>3} {row['gd']:>3}"
        )
    return "\n".join(lines)


def format_player_stats(players: Iterable[Player], title: str, limit: int = 20) -> str:
    lines = [title, "Player                Age Pos GP  G  A  P InjOut"]
    ranked = sorted(players, key=lambda p: (p.season_stats.points, p.season_stats.goals), reverse=True)
    for player in ranked[:limit]:
        stats = player.season_stats
        days_out = player.injury.days_remaining if player.injury is not None else 0
        lines.append(
            f"{player.name:<20} {player.age:>3} {player.position:<3} {stats.games_played:>2}"
            f" {stats.goals:>2} {stats.assists:>2} {stats.points:>2} {days_out:>6}"
        )
    return "\n".join(lines)
