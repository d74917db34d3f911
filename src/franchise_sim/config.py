"""Static simulation configuration constants."""

from __future__ import annotations

from dataclasses import dataclass

GAMES_PER_SEASON = 82
DEFAULT_START_YEAR = 2025
DEFAULT_TEAM_COUNT = 10
# Longest single advance the API accepts.
MAX_ADVANCE_DAYS = 366

# Fraction of game time per forward line (index 0-3) and defense pair (index 0-2).
FORWARD_LINE_WEIGHTS: tuple[float, ...] = (0.30, 0.25, 0.25, 0.20)
DEFENSE_PAIR_WEIGHTS: tuple[float, ...] = (0.40, 0.35, 0.25)

FORWARD_LINES = 4
FORWARDS_PER_LINE = 3
DEFENSE_PAIRS = 3
DEFENSE_PER_PAIR = 2

MIN_FORWARDS = FORWARD_LINES * FORWARDS_PER_LINE
MIN_FORWARDS_PER_POSITION = 4
MIN_DEFENSE = DEFENSE_PAIRS * DEFENSE_PER_PAIR
MIN_DEFENSE_PER_SIDE = 3
MIN_GOALIES = 2

ATTRIBUTE_MIN = 1
ATTRIBUTE_MAX = 99
DEFAULT_ATTRIBUTE = 50

# date.weekday(): Tuesday, Thursday, Saturday, Sunday.
GAME_DAY_WEEKDAYS = frozenset({1, 3, 5, 6})
ALL_STAR_BREAK_WINDOW_DAYS = 3
MIN_REST_DAYS = 1
# Fresh shuffles tried before a schedule is declared infeasible.
SCHEDULE_ATTEMPTS = 5

EVENT_RETENTION_DAYS = 7
# Dates from this month onward belong to the season starting that calendar year.
SEASON_ROLLOVER_MONTH = 8

# name -> (years after season start year, month, day)
SEASON_MILESTONES: dict[str, tuple[int, int, int]] = {
    "season_start": (0, 10, 1),
    "regular_season_start": (0, 10, 10),
    "all_star_break": (1, 2, 15),
    "trade_deadline": (1, 3, 3),
    "regular_season_end": (1, 4, 15),
    "playoff_start": (1, 4, 20),
    "playoff_end": (1, 6, 15),
    "draft": (1, 6, 25),
    "free_agency_start": (1, 7, 1),
}

GAME_SECONDS = 3600
PENALTY_LENGTHS: tuple[int, ...] = (2, 2, 2, 4, 5, 10)


@dataclass(frozen=True, slots=True)
class EngineTuning:
    """Knobs mapping ratings to game outcomes."""

    expected_goal_scale: float = 3.0
    defense_offset: float = 50.0
    default_strength: float = 50.0
    min_lambda: float = 0.5
    max_lambda: float = 8.0
    max_goals: int = 10
    home_overtime_share: float = 0.5
    shootout_probability: float = 0.30
    goal_factor: float = 0.3
    defense_goal_factor: float = 0.35
    assist_factor: float = 0.4
    center_assist_bonus: float = 1.3
    fallback_goal_probability: float = 0.02
    fallback_assist_probability: float = 0.03
    toi_jitter: tuple[float, float] = (0.8, 1.2)
    shots_base: float = 8.0
    shots_jitter: tuple[float, float] = (0.5, 1.5)
    hits_base: float = 3.0
    hits_jitter: tuple[float, float] = (0.5, 2.0)
    blocks_base: float = 2.0
    blocks_jitter: tuple[float, float] = (0.3, 1.8)
    defense_shot_divisor: int = 2
    defense_block_multiplier: int = 2
    penalty_rate: float = 0.15
    faceoff_attempts: tuple[int, int] = (5, 25)
    goalie_shots_against: tuple[int, int] = (20, 40)
    plus_minus_jitter: int = 1


DEFAULT_TUNING = EngineTuning()
