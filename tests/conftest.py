from __future__ import annotations

from dataclasses import fields
from typing import Callable

import pytest

from franchise_sim.models import GoalieAttributes, Player, SkaterAttributes, Team


def uniform_skater(value: int = 50) -> SkaterAttributes:
    return SkaterAttributes(**{f.name: value for f in fields(SkaterAttributes)})


def uniform_goalie(value: int = 50) -> GoalieAttributes:
    return GoalieAttributes(**{f.name: value for f in fields(GoalieAttributes)})


def build_team(
    name: str = "Testers",
    centers: int = 4,
    left_wings: int = 4,
    right_wings: int = 4,
    left_defense: int = 3,
    right_defense: int = 3,
    goalies: int = 2,
    rating: int = 50,
) -> Team:
    roster: list[Player] = []
    for position, count in (
        ("C", centers),
        ("LW", left_wings),
        ("RW", right_wings),
        ("LD", left_defense),
        ("RD", right_defense),
    ):
        for idx in range(count):
            roster.append(Player.skater(f"{name} {position}{idx + 1}", position, attributes=uniform_skater(rating)))
    for idx in range(goalies):
        roster.append(Player.goalie(f"{name} G{idx + 1}", attributes=uniform_goalie(rating)))
    return Team(name=name, roster=roster)


@pytest.fixture
def make_team() -> Callable[..., Team]:
    return build_team
