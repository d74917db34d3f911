from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import ClassVar
from uuid import uuid4

from .config import (
    ATTRIBUTE_MAX,
    ATTRIBUTE_MIN,
    DEFENSE_PAIRS,
    DEFENSE_PER_PAIR,
    FORWARD_LINES,
    FORWARDS_PER_LINE,
    GAMES_PER_SEASON,
)
from .season_calendar import SeasonPhase

FORWARD_POSITIONS = {"C", "LW", "RW"}
DEFENSE_POSITIONS = {"LD", "RD"}
GOALIE_POSITIONS = {"G"}
ALL_POSITIONS = FORWARD_POSITIONS | DEFENSE_POSITIONS | GOALIE_POSITIONS

POSITION_NAMES = {
    "C": "Center",
    "LW": "Left Wing",
    "RW": "Right Wing",
    "LD": "Left Defense",
    "RD": "Right Defense",
    "G": "Goalie",
}


def _clamp_attribute(value: int) -> int:
    return max(ATTRIBUTE_MIN, min(ATTRIBUTE_MAX, int(value)))


@dataclass(slots=True)
class SkaterAttributes:
    passing_accuracy: int = 50
    passing_vision: int = 50
    passing_creativity: int = 50
    passing_under_pressure: int = 50
    shooting_accuracy: int = 50
    shooting_power: int = 50
    quick_release: int = 50
    one_timer: int = 50
    positioning: int = 50
    anticipation: int = 50
    decision_making: int = 50
    game_awareness: int = 50
    stick_checking: int = 50
    gap_control: int = 50
    shot_blocking: int = 50
    defensive_positioning: int = 50
    body_checking: int = 50
    poke_checking: int = 50
    backchecking: int = 50
    speed: int = 50
    acceleration: int = 50
    agility: int = 50
    balance: int = 50
    stamina: int = 50
    strength: int = 50
    clutch: int = 50
    composure: int = 50
    focus: int = 50
    discipline: int = 50

    def clamp(self) -> None:
        for name in self.__slots__:
            setattr(self, name, _clamp_attribute(getattr(self, name)))

    @property
    def offensive_rating(self) -> float:
        return (
            self.shooting_accuracy
            + self.shooting_power
            + self.passing_accuracy
            + self.passing_vision
            + self.speed
        ) / 5

    @property
    def defensive_rating(self) -> float:
        return (
            self.defensive_positioning
            + self.stick_checking
            + self.gap_control
            + self.shot_blocking
            + self.body_checking
        ) / 5

    @property
    def overall(self) -> int:
        physical = (self.speed + self.acceleration + self.agility + self.balance + self.stamina + self.strength) // 6
        offensive = (
            self.passing_accuracy + self.passing_vision + self.shooting_accuracy + self.shooting_power + self.quick_release
        ) // 5
        defensive = (
            self.stick_checking + self.gap_control + self.shot_blocking + self.defensive_positioning + self.body_checking
        ) // 5
        mental = (
            self.positioning + self.anticipation + self.decision_making + self.game_awareness + self.clutch + self.composure
        ) // 6
        return (physical + offensive + defensive + mental) // 4

    def position_overall(self, position: str) -> int:
        if position == "C":
            # Centers lean on vision and decision making.
            passing = (self.passing_accuracy + self.passing_vision * 2 + self.passing_creativity) // 4
            vision = (self.decision_making * 2 + self.game_awareness + self.positioning) // 4
            offensive = (self.shooting_accuracy + self.quick_release + self.one_timer) // 3
            physical = (self.speed + self.acceleration + self.agility + self.balance) // 4
            mental = (self.clutch + self.composure + self.focus) // 3
            return (passing * 3 + vision * 3 + offensive * 2 + physical * 2 + mental) // 11
        if position in {"LW", "RW"}:
            shooting = (self.shooting_accuracy * 2 + self.shooting_power + self.quick_release + self.one_timer) // 5
            skating = (self.speed * 2 + self.acceleration + self.agility) // 4
            passing = (self.passing_accuracy + self.passing_vision) // 2
            physical = (self.strength + self.balance + self.stamina) // 3
            mental = (self.positioning + self.anticipation + self.clutch) // 3
            return (shooting * 3 + skating * 3 + passing * 2 + physical * 2 + mental) // 11
        if position in DEFENSE_POSITIONS:
            defense = (
                self.defensive_positioning * 2 + self.stick_checking * 2 + self.gap_control + self.shot_blocking
            ) // 6
            physical = (self.strength * 2 + self.balance) // 3
            passing = (self.passing_accuracy + self.passing_vision + self.passing_under_pressure) // 3
            checking = (self.body_checking + self.poke_checking + self.backchecking) // 3
            mental = (self.positioning + self.anticipation + self.decision_making) // 3
            return (defense * 4 + physical * 2 + passing * 2 + checking * 2 + mental) // 11
        return self.overall


@dataclass(slots=True)
class GoalieAttributes:
    angle_play: int = 50
    depth_management: int = 50
    net_coverage: int = 50
    post_play: int = 50
    screen_management: int = 50
    glove_hand: int = 50
    blocker: int = 50
    pad_saves: int = 50
    reaction_time: int = 50
    second_saves: int = 50
    rebound_direction: int = 50
    absorption: int = 50
    recovery_speed: int = 50
    scramble_ability: int = 50
    freeze_timing: int = 50
    lateral_movement: int = 50
    post_to_post: int = 50
    butterfly_technique: int = 50
    recovery: int = 50
    flexibility: int = 50
    puck_playing: int = 50
    passing_accuracy: int = 50
    decision_making: int = 50
    behind_net: int = 50
    breakout_assistance: int = 50
    focus: int = 50
    tracking: int = 50
    anticipation: int = 50
    clutch: int = 50
    composure: int = 50

    def clamp(self) -> None:
        for name in self.__slots__:
            setattr(self, name, _clamp_attribute(getattr(self, name)))

    @property
    def overall(self) -> int:
        positioning = (
            self.angle_play + self.depth_management + self.net_coverage + self.post_play + self.screen_management
        ) // 5
        reflexes = (self.glove_hand + self.blocker + self.pad_saves + self.reaction_time + self.second_saves) // 5
        rebounds = (
            self.rebound_direction + self.absorption + self.recovery_speed + self.scramble_ability + self.freeze_timing
        ) // 5
        movement = (
            self.lateral_movement + self.post_to_post + self.butterfly_technique + self.recovery + self.flexibility
        ) // 5
        puck_handling = (
            self.puck_playing + self.passing_accuracy + self.decision_making + self.behind_net + self.breakout_assistance
        ) // 5
        mental = (self.focus + self.tracking + self.anticipation + self.clutch + self.composure) // 5
        return (positioning + reflexes + rebounds + movement + puck_handling + mental) // 6


@dataclass(frozen=True, slots=True)
class Injury:
    days_remaining: int
    description: str = "Undisclosed"


@dataclass(slots=True)
class GameBoxScore:
    """One player's line from a single simulated game."""

    player_id: str
    team_id: str
    goals: int = 0
    assists: int = 0
    shots: int = 0
    hits: int = 0
    blocks: int = 0
    penalty_minutes: int = 0
    time_on_ice: int = 0
    plus_minus: int = 0
    faceoff_attempts: int = 0
    faceoff_wins: int = 0
    saves: int = 0
    goals_against: int = 0
    shots_against: int = 0
    win: bool = False
    loss: bool = False
    overtime_loss: bool = False
    shutout: bool = False

    @property
    def points(self) -> int:
        return self.goals + self.assists


@dataclass(slots=True)
class PlayerStats:
    games_played: int = 0
    goals: int = 0
    assists: int = 0
    plus_minus: int = 0
    penalty_minutes: int = 0
    shots: int = 0
    hits: int = 0
    blocks: int = 0
    faceoff_wins: int = 0
    faceoff_attempts: int = 0
    time_on_ice: int = 0
    saves: int = 0
    goals_against: int = 0
    shots_against: int = 0
    wins: int = 0
    losses: int = 0
    overtime_losses: int = 0
    shutouts: int = 0

    @property
    def points(self) -> int:
        return self.goals + self.assists

    @property
    def faceoff_pct(self) -> float:
        if self.faceoff_attempts <= 0:
            return 0.0
        return self.faceoff_wins / self.faceoff_attempts

    @property
    def save_pct(self) -> float:
        if self.shots_against <= 0:
            return 0.0
        return self.saves / self.shots_against

    @property
    def gaa(self) -> float:
        if self.time_on_ice <= 0:
            return 0.0
        return self.goals_against * 3600.0 / self.time_on_ice

    @property
    def average_toi(self) -> float:
        if self.games_played <= 0:
            return 0.0
        return self.time_on_ice / self.games_played

    def add_game(self, box: GameBoxScore) -> None:
        self.games_played += 1
        self.goals += box.goals
        self.assists += box.assists
        self.plus_minus += box.plus_minus
        self.penalty_minutes += box.penalty_minutes
        self.shots += box.shots
        self.hits += box.hits
        self.blocks += box.blocks
        self.faceoff_wins += box.faceoff_wins
        self.faceoff_attempts += box.faceoff_attempts
        self.time_on_ice += box.time_on_ice
        self.saves += box.saves
        self.goals_against += box.goals_against
        self.shots_against += box.shots_against
        if box.win:
            self.wins += 1
        if box.loss:
            self.losses += 1
        if box.overtime_loss:
            self.overtime_losses += 1
        if box.shutout:
            self.shutouts += 1


@dataclass(slots=True)
class Player:
    name: str
    position: str
    attributes: SkaterAttributes | GoalieAttributes
    player_id: str = field(default_factory=lambda: uuid4().hex)
    team_id: str | None = None
    age: int = 24
    jersey_number: int = 0
    injury: Injury | None = None
    season_stats: PlayerStats = field(default_factory=PlayerStats)
    career_stats: PlayerStats = field(default_factory=PlayerStats)

    def __post_init__(self) -> None:
        if self.position not in ALL_POSITIONS:
            raise ValueError(f"{self.name} has unknown position {self.position!r}.")
        expected = GoalieAttributes if self.position in GOALIE_POSITIONS else SkaterAttributes
        if not isinstance(self.attributes, expected):
            raise ValueError(f"{self.name} at {self.position} requires {expected.__name__}.")

    @classmethod
    def skater(cls, name: str, position: str, **kwargs) -> Player:
        attributes = kwargs.pop("attributes", None) or SkaterAttributes()
        return cls(name=name, position=position, attributes=attributes, **kwargs)

    @classmethod
    def goalie(cls, name: str, **kwargs) -> Player:
        attributes = kwargs.pop("attributes", None) or GoalieAttributes()
        return cls(name=name, position="G", attributes=attributes, **kwargs)

    @property
    def is_goalie(self) -> bool:
        return self.position in GOALIE_POSITIONS

    @property
    def is_forward(self) -> bool:
        return self.position in FORWARD_POSITIONS

    @property
    def is_defense(self) -> bool:
        return self.position in DEFENSE_POSITIONS

    @property
    def skater_attributes(self) -> SkaterAttributes | None:
        return self.attributes if isinstance(self.attributes, SkaterAttributes) else None

    @property
    def goalie_attributes(self) -> GoalieAttributes | None:
        return self.attributes if isinstance(self.attributes, GoalieAttributes) else None

    @property
    def overall(self) -> int:
        if isinstance(self.attributes, GoalieAttributes):
            return self.attributes.overall
        return self.attributes.position_overall(self.position)

    @property
    def is_injured(self) -> bool:
        return self.injury is not None and self.injury.days_remaining > 0

    def injure(self, days: int, description: str = "Undisclosed") -> None:
        if days <= 0:
            self.injury = None
            return
        self.injury = Injury(days_remaining=days, description=description)

    def advance_day(self) -> None:
        if self.injury is None:
            return
        if self.injury.days_remaining <= 1:
            self.injury = None
        else:
            self.injury = Injury(self.injury.days_remaining - 1, self.injury.description)

    def record_game(self, box: GameBoxScore) -> None:
        self.season_stats.add_game(box)
        self.career_stats.add_game(box)

    def reset_season_stats(self) -> None:
        self.season_stats = PlayerStats()


@dataclass(slots=True)
class TeamLineup:
    team_id: str
    forward_lines: list[list[str]] = field(default_factory=lambda: [[] for _ in range(FORWARD_LINES)])
    defense_pairs: list[list[str]] = field(default_factory=lambda: [[] for _ in range(DEFENSE_PAIRS)])
    starting_goalie: str | None = None
    backup_goalie: str | None = None

    @property
    def is_valid(self) -> bool:
        lines_ok = len(self.forward_lines) == FORWARD_LINES and all(
            len(line) == FORWARDS_PER_LINE for line in self.forward_lines
        )
        pairs_ok = len(self.defense_pairs) == DEFENSE_PAIRS and all(
            len(pair) == DEFENSE_PER_PAIR for pair in self.defense_pairs
        )
        return lines_ok and pairs_ok and self.starting_goalie is not None and self.backup_goalie is not None

    def skater_ids(self) -> list[str]:
        ids = [pid for line in self.forward_lines for pid in line]
        ids.extend(pid for pair in self.defense_pairs for pid in pair)
        return ids

    def player_ids(self) -> set[str]:
        ids = set(self.skater_ids())
        if self.starting_goalie is not None:
            ids.add(self.starting_goalie)
        if self.backup_goalie is not None:
            ids.add(self.backup_goalie)
        return ids

    def has_duplicates(self) -> bool:
        # Starter and backup may be the same goalie when only one is healthy.
        skaters = self.skater_ids()
        if len(skaters) != len(set(skaters)):
            return True
        goalies = {g for g in (self.starting_goalie, self.backup_goalie) if g is not None}
        return bool(goalies & set(skaters))


@dataclass(slots=True)
class TeamRecord:
    wins: int = 0
    losses: int = 0
    ot_losses: int = 0
    goals_for: int = 0
    goals_against: int = 0
    home_wins: int = 0
    home_losses: int = 0
    home_ot_losses: int = 0
    away_wins: int = 0
    away_losses: int = 0
    away_ot_losses: int = 0
    recent_results: list[str] = field(default_factory=list)

    @property
    def points(self) -> int:
        return self.wins * 2 + self.ot_losses

    @property
    def goal_diff(self) -> int:
        return self.goals_for - self.goals_against

    @property
    def games_played(self) -> int:
        return self.wins + self.losses + self.ot_losses

    @property
    def win_pct(self) -> float:
        gp = self.games_played
        if gp <= 0:
            return 0.0
        return self.wins / gp

    @property
    def point_pct(self) -> float:
        gp = self.games_played
        if gp <= 0:
            return 0.0
        return self.points / (gp * 2)

    @property
    def home_record(self) -> str:
        return f"{self.home_wins}-{self.home_losses}-{self.home_ot_losses}"

    @property
    def away_record(self) -> str:
        return f"{self.away_wins}-{self.away_losses}-{self.away_ot_losses}"

    @property
    def last10(self) -> str:
        sample = self.recent_results[-10:]
        return f"{sample.count('W')}-{sample.count('L')}-{sample.count('OTL')}"

    @property
    def streak(self) -> str:
        if not self.recent_results:
            return "-"
        last = self.recent_results[-1]
        count = 1
        for result in reversed(self.recent_results[:-1]):
            if result != last:
                break
            count += 1
        return f"{last}{count}"

    def register_game(self, goals_for: int, goals_against: int, extra_time: bool, is_home: bool) -> None:
        self.goals_for += goals_for
        self.goals_against += goals_against
        if goals_for > goals_against:
            self.wins += 1
            self.recent_results.append("W")
            if is_home:
                self.home_wins += 1
            else:
                self.away_wins += 1
        elif extra_time:
            self.ot_losses += 1
            self.recent_results.append("OTL")
            if is_home:
                self.home_ot_losses += 1
            else:
                self.away_ot_losses += 1
        else:
            self.losses += 1
            self.recent_results.append("L")
            if is_home:
                self.home_losses += 1
            else:
                self.away_losses += 1
        if len(self.recent_results) > 10:
            self.recent_results = self.recent_results[-10:]


@dataclass(slots=True)
class Team:
    name: str
    city: str = ""
    abbreviation: str = ""
    team_id: str = field(default_factory=lambda: uuid4().hex)
    roster: list[Player] = field(default_factory=list)
    lineup: TeamLineup | None = None
    record: TeamRecord = field(default_factory=TeamRecord)

    MAX_ROSTER_SIZE: ClassVar[int] = 30

    def __post_init__(self) -> None:
        if len(self.roster) > self.MAX_ROSTER_SIZE:
            raise ValueError(f"{self.name} roster exceeds max of {self.MAX_ROSTER_SIZE}.")
        seen: set[str] = set()
        for player in self.roster:
            if player.player_id in seen:
                raise ValueError(f"{self.name} roster lists player {player.player_id} twice.")
            seen.add(player.player_id)
            player.team_id = self.team_id
        if not self.abbreviation:
            self.abbreviation = self.name[:3].upper()

    @property
    def full_name(self) -> str:
        return f"{self.city} {self.name}".strip()

    def add_player(self, player: Player) -> None:
        if self.player(player.player_id) is not None:
            raise ValueError(f"{self.name} already has player {player.player_id}.")
        if len(self.roster) >= self.MAX_ROSTER_SIZE:
            raise ValueError(f"{self.name} roster exceeds max of {self.MAX_ROSTER_SIZE}.")
        player.team_id = self.team_id
        self.roster.append(player)

    def remove_player(self, player_id: str) -> Player | None:
        player = self.player(player_id)
        if player is None:
            return None
        self.roster.remove(player)
        player.team_id = None
        return player

    def player(self, player_id: str) -> Player | None:
        for player in self.roster:
            if player.player_id == player_id:
                return player
        return None

    def players_at(self, position: str) -> list[Player]:
        return [p for p in self.roster if p.position == position]

    def active_players(self) -> list[Player]:
        return [p for p in self.roster if not p.is_injured]

    def active_forwards(self) -> list[Player]:
        return [p for p in self.active_players() if p.is_forward]

    def active_defense(self) -> list[Player]:
        return [p for p in self.active_players() if p.is_defense]

    def active_goalies(self) -> list[Player]:
        return [p for p in self.active_players() if p.is_goalie]


@dataclass(slots=True)
class League:
    name: str
    teams: list[Team] = field(default_factory=list)
    games_per_season: int = GAMES_PER_SEASON

    def __post_init__(self) -> None:
        ids = [team.team_id for team in self.teams]
        if len(ids) != len(set(ids)):
            raise ValueError(f"League {self.name} lists a team twice.")

    def team(self, team_id: str) -> Team | None:
        for team in self.teams:
            if team.team_id == team_id:
                return team
        return None

    def team_by_name(self, name: str) -> Team | None:
        lowered = name.lower()
        for team in self.teams:
            if team.name.lower() == lowered or team.full_name.lower() == lowered or team.abbreviation.lower() == lowered:
                return team
        return None

    def find_player(self, player_id: str) -> tuple[Team, Player] | None:
        for team in self.teams:
            player = team.player(player_id)
            if player is not None:
                return team, player
        return None

    def all_players(self) -> list[Player]:
        return [p for team in self.teams for p in team.roster]

    def standings(self) -> list[Team]:
        return sorted(
            self.teams,
            key=lambda t: (t.record.points, t.record.wins, t.record.goal_diff),
            reverse=True,
        )

    def standings_for_phase(self, phase: SeasonPhase) -> list[Team]:
        if phase in {SeasonPhase.PRESEASON, SeasonPhase.OFFSEASON}:
            return sorted(self.teams, key=lambda t: t.name)
        return self.standings()


@dataclass(frozen=True, slots=True)
class GameOutcome:
    home_score: int
    away_score: int
    overtime: bool = False
    shootout: bool = False

    @property
    def extra_time(self) -> bool:
        return self.overtime or self.shootout


@dataclass(slots=True)
class Game:
    home_team_id: str
    away_team_id: str
    date: date
    game_id: str = field(default_factory=lambda: uuid4().hex)
    is_completed: bool = False
    result: GameOutcome | None = None

    # Pairing, date and id are fixed once set; only completion state changes.
    FIXED_FIELDS: ClassVar[frozenset[str]] = frozenset({"home_team_id", "away_team_id", "date", "game_id"})

    def __post_init__(self) -> None:
        if self.home_team_id == self.away_team_id:
            raise ValueError(f"Game {self.game_id} pairs team {self.home_team_id} with itself.")

    def __setattr__(self, name: str, value: object) -> None:
        if name in self.FIXED_FIELDS and hasattr(self, name):
            raise AttributeError(f"Game.{name} cannot be reassigned.")
        object.__setattr__(self, name, value)

    def involves(self, team_id: str) -> bool:
        return team_id in (self.home_team_id, self.away_team_id)

    def complete(self, outcome: GameOutcome) -> None:
        if self.is_completed:
            raise ValueError(f"Game {self.game_id} on {self.date.isoformat()} is already completed.")
        self.result = outcome
        self.is_completed = True

    def winner_id(self) -> str | None:
        if self.result is None:
            return None
        return self.home_team_id if self.result.home_score > self.result.away_score else self.away_team_id

    def loser_id(self) -> str | None:
        if self.result is None:
            return None
        return self.home_team_id if self.result.home_score < self.result.away_score else self.away_team_id


@dataclass(slots=True)
class Season:
    year: int
    games: list[Game] = field(default_factory=list)
    is_completed: bool = False
    final_standings: list[dict[str, object]] = field(default_factory=list)

    @property
    def display(self) -> str:
        return f"{self.year}-{str(self.year + 1)[-2:]}"

    @property
    def last_game_date(self) -> date | None:
        if not self.games:
            return None
        return max(g.date for g in self.games)

    def games_for(self, team_id: str) -> list[Game]:
        return [g for g in self.games if g.involves(team_id)]

    def completed_games_for(self, team_id: str) -> list[Game]:
        return [g for g in self.games_for(team_id) if g.is_completed]

    def games_on(self, day: date) -> list[Game]:
        return [g for g in self.games if g.date == day]

    def upcoming_games(self, from_date: date, team_id: str | None = None, limit: int = 10) -> list[Game]:
        pool = self.games_for(team_id) if team_id else self.games
        upcoming = sorted(
            (g for g in pool if not g.is_completed and g.date >= from_date),
            key=lambda g: g.date,
        )
        return upcoming[: max(0, limit)]

    def record_for(self, team_id: str) -> TeamRecord:
        record = TeamRecord()
        for game in sorted(self.completed_games_for(team_id), key=lambda g: g.date):
            if game.result is None:
                continue
            is_home = game.home_team_id == team_id
            goals_for = game.result.home_score if is_home else game.result.away_score
            goals_against = game.result.away_score if is_home else game.result.home_score
            record.register_game(goals_for, goals_against, game.result.extra_time, is_home=is_home)
        return record
