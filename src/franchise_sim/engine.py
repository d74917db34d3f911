from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from datetime import date

from .config import DEFAULT_TUNING, GAME_SECONDS, PENALTY_LENGTHS, EngineTuning
from .lineup import defense_pair_weight, forward_line_weight
from .models import GameBoxScore, GameOutcome, Player, Team, TeamLineup


@dataclass(slots=True)
class GameResult:
    game_date: date
    home_team_id: str
    away_team_id: str
    home_score: int
    away_score: int
    overtime: bool
    shootout: bool
    player_stats: dict[str, GameBoxScore] = field(default_factory=dict)
    game_id: str | None = None

    @property
    def outcome(self) -> GameOutcome:
        return GameOutcome(
            home_score=self.home_score,
            away_score=self.away_score,
            overtime=self.overtime,
            shootout=self.shootout,
        )

    @property
    def winning_team_id(self) -> str:
        return self.home_team_id if self.home_score > self.away_score else self.away_team_id

    @property
    def losing_team_id(self) -> str:
        return self.home_team_id if self.home_score < self.away_score else self.away_team_id

    @property
    def was_shutout(self) -> bool:
        return self.home_score == 0 or self.away_score == 0

    def box_scores_for(self, team_id: str) -> list[GameBoxScore]:
        return [box for box in self.player_stats.values() if box.team_id == team_id]

    def goals_credited(self, team_id: str) -> int:
        return sum(box.goals for box in self.box_scores_for(team_id))

    def assists_credited(self, team_id: str) -> int:
        return sum(box.assists for box in self.box_scores_for(team_id))


def _avg(values: list[float], fallback: float) -> float:
    if not values:
        return fallback
    return sum(values) / len(values)


def offensive_strength(team: Team, lineup: TeamLineup, tuning: EngineTuning = DEFAULT_TUNING) -> float:
    ratings: list[float] = []
    for line in lineup.forward_lines:
        for player_id in line:
            player = team.player(player_id)
            attrs = player.skater_attributes if player is not None else None
            if attrs is not None:
                ratings.append(attrs.offensive_rating)
    return _avg(ratings, tuning.default_strength)


def defensive_strength(team: Team, lineup: TeamLineup, tuning: EngineTuning = DEFAULT_TUNING) -> float:
    ratings: list[float] = []
    for pair in lineup.defense_pairs:
        for player_id in pair:
            player = team.player(player_id)
            attrs = player.skater_attributes if player is not None else None
            if attrs is not None:
                ratings.append(attrs.defensive_rating)
    goalie = team.player(lineup.starting_goalie) if lineup.starting_goalie else None
    if goalie is not None and goalie.goalie_attributes is not None:
        ratings.append(float(goalie.goalie_attributes.overall))
    return _avg(ratings, tuning.default_strength)


def expected_goals(offense: float, opposing_defense: float, tuning: EngineTuning = DEFAULT_TUNING) -> float:
    return offense / (opposing_defense + tuning.defense_offset) * tuning.expected_goal_scale


def sample_goals(expected: float, rng: random.Random, tuning: EngineTuning = DEFAULT_TUNING) -> int:
    """Draw a goal count from a Poisson distribution by inverse CDF."""
    lam = max(tuning.min_lambda, min(tuning.max_lambda, expected))
    probability = math.exp(-lam)
    cumulative = probability
    roll = rng.random()
    goals = 0
    while cumulative < roll and goals < tuning.max_goals:
        goals += 1
        probability *= lam / goals
        cumulative += probability
    return goals


def _goal_probability(player: Player, deployment: float, is_defense: bool, tuning: EngineTuning) -> float:
    attrs = player.skater_attributes
    if attrs is None:
        return tuning.fallback_goal_probability
    shooting = (attrs.shooting_accuracy + attrs.shooting_power) / 200.0
    probability = shooting * deployment * tuning.goal_factor
    if is_defense:
        probability *= tuning.defense_goal_factor
    return probability


def _assist_probability(player: Player, deployment: float, tuning: EngineTuning) -> float:
    attrs = player.skater_attributes
    if attrs is None:
        return tuning.fallback_assist_probability
    passing = (attrs.passing_accuracy + attrs.passing_vision) / 200.0
    position_mod = tuning.center_assist_bonus if player.position == "C" else 1.0
    return passing * deployment * position_mod * tuning.assist_factor


def _shots(player: Player, deployment: float, rng: random.Random, tuning: EngineTuning) -> int:
    attrs = player.skater_attributes
    if attrs is None:
        return 0
    tendency = (attrs.shooting_accuracy + attrs.shooting_power) / 200.0
    return max(0, int(deployment * tuning.shots_base * tendency * rng.uniform(*tuning.shots_jitter)))


def _hits(player: Player, deployment: float, rng: random.Random, tuning: EngineTuning) -> int:
    attrs = player.skater_attributes
    if attrs is None:
        return 0
    tendency = (attrs.body_checking + attrs.strength) / 200.0
    return max(0, int(deployment * tuning.hits_base * tendency * rng.uniform(*tuning.hits_jitter)))


def _blocks(player: Player, deployment: float, rng: random.Random, tuning: EngineTuning) -> int:
    attrs = player.skater_attributes
    if attrs is None:
        return 0
    tendency = (attrs.shot_blocking + attrs.positioning) / 200.0
    return max(0, int(deployment * tuning.blocks_base * tendency * rng.uniform(*tuning.blocks_jitter)))


def _penalty_minutes(player: Player, rng: random.Random, tuning: EngineTuning) -> int:
    attrs = player.skater_attributes
    if attrs is None:
        return 0
    probability = (100 - attrs.discipline) / 100.0 * tuning.penalty_rate
    if rng.random() < probability:
        return rng.choice(PENALTY_LENGTHS)
    return 0


def _choose_weighted(boxes: list[GameBoxScore], weights: list[float], rng: random.Random) -> GameBoxScore:
    if not boxes:
        raise ValueError("No players available for weighted selection.")
    return rng.choices(boxes, weights=weights, k=1)[0]


def _team_box_scores(
    team: Team,
    lineup: TeamLineup,
    team_goals: int,
    opponent_goals: int,
    overtime: bool,
    shootout: bool,
    rng: random.Random,
    tuning: EngineTuning,
) -> dict[str, GameBoxScore]:
    stats: dict[str, GameBoxScore] = {}
    goals_left = team_goals
    assists_left = team_goals * 2
    scorers: list[GameBoxScore] = []
    scorer_weights: list[float] = []
    goal_diff = team_goals - opponent_goals

    units: list[tuple[list[str], float, bool]] = [
        (line, forward_line_weight(idx), False) for idx, line in enumerate(lineup.forward_lines)
    ]
    units.extend((pair, defense_pair_weight(idx), True) for idx, pair in enumerate(lineup.defense_pairs))

    for player_ids, deployment, is_defense in units:
        base_toi = int(GAME_SECONDS * deployment)
        for player_id in player_ids:
            player = team.player(player_id)
            if player is None or player_id in stats:
                continue
            box = GameBoxScore(player_id=player_id, team_id=team.team_id)
            box.time_on_ice = int(base_toi * rng.uniform(*tuning.toi_jitter))

            goal_probability = _goal_probability(player, deployment, is_defense, tuning)
            if goals_left > 0 and rng.random() < goal_probability:
                box.goals = 1
                goals_left -= 1

            if assists_left > 0 and rng.random() < _assist_probability(player, deployment, tuning):
                awarded = 1 if is_defense else rng.randint(1, 2)
                box.assists = min(assists_left, awarded)
                assists_left -= box.assists

            box.shots = _shots(player, deployment, rng, tuning)
            box.hits = _hits(player, deployment, rng, tuning)
            box.blocks = _blocks(player, deployment, rng, tuning)
            if is_defense:
                box.shots //= tuning.defense_shot_divisor
                box.blocks *= tuning.defense_block_multiplier
            box.penalty_minutes = _penalty_minutes(player, rng, tuning)
            box.plus_minus = goal_diff + rng.randint(-tuning.plus_minus_jitter, tuning.plus_minus_jitter)

            if player.position == "C":
                box.faceoff_attempts = rng.randint(*tuning.faceoff_attempts)
                attrs = player.skater_attributes
                win_rate = (attrs.positioning if attrs is not None else 50) / 100.0
                box.faceoff_wins = int(box.faceoff_attempts * win_rate)

            stats[player_id] = box
            scorers.append(box)
            scorer_weights.append(max(goal_probability, 1e-6))

    # Goals the per-skater pass left unclaimed still belong to someone on the ice.
    if scorers:
        for _ in range(goals_left):
            _choose_weighted(scorers, scorer_weights, rng).goals += 1
        for box in scorers:
            box.shots = max(box.shots, box.goals)

    goalie_id = lineup.starting_goalie
    goalie = team.player(goalie_id) if goalie_id else None
    if goalie is not None and goalie.player_id not in stats:
        low, high = tuning.goalie_shots_against
        box = GameBoxScore(player_id=goalie.player_id, team_id=team.team_id)
        box.time_on_ice = GAME_SECONDS
        box.goals_against = opponent_goals
        box.shots_against = max(opponent_goals, rng.randint(low, high))
        box.saves = box.shots_against - opponent_goals
        if team_goals > opponent_goals:
            box.win = True
        elif overtime or shootout:
            box.overtime_loss = True
        else:
            box.loss = True
        box.shutout = opponent_goals == 0
        stats[goalie.player_id] = box

    return stats


def simulate_game(
    home: Team,
    away: Team,
    home_lineup: TeamLineup,
    away_lineup: TeamLineup,
    game_date: date,
    rng: random.Random | None = None,
    tuning: EngineTuning | None = None,
    game_id: str | None = None,
) -> GameResult:
    """Simulate one game and produce the final score plus a box score for every dressed player.

    Never mutates either team; missing ratings fall back to league-average defaults.
    """
    rng = rng or random.Random()
    tuning = tuning or DEFAULT_TUNING

    home_offense = offensive_strength(home, home_lineup, tuning)
    home_defense = defensive_strength(home, home_lineup, tuning)
    away_offense = offensive_strength(away, away_lineup, tuning)
    away_defense = defensive_strength(away, away_lineup, tuning)

    home_goals = sample_goals(expected_goals(home_offense, away_defense, tuning), rng, tuning)
    away_goals = sample_goals(expected_goals(away_offense, home_defense, tuning), rng, tuning)

    overtime = False
    shootout = False
    if home_goals == away_goals:
        if rng.random() < tuning.home_overtime_share:
            home_goals += 1
        else:
            away_goals += 1
        # Decided either in overtime or by shootout, never both.
        if rng.random() < tuning.shootout_probability:
            shootout = True
        else:
            overtime = True

    player_stats = _team_box_scores(home, home_lineup, home_goals, away_goals, overtime, shootout, rng, tuning)
    player_stats.update(_team_box_scores(away, away_lineup, away_goals, home_goals, overtime, shootout, rng, tuning))

    return GameResult(
        game_date=game_date,
        home_team_id=home.team_id,
        away_team_id=away.team_id,
        home_score=home_goals,
        away_score=away_goals,
        overtime=overtime,
        shootout=shootout,
        player_stats=player_stats,
        game_id=game_id,
    )
