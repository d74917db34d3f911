"""Season calendar: milestone dates, phase derivation and the event queue."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum, IntEnum
from typing import Callable
from uuid import uuid4

from .config import (
    ALL_STAR_BREAK_WINDOW_DAYS,
    EVENT_RETENTION_DAYS,
    GAMES_PER_SEASON,
    SEASON_MILESTONES,
    SEASON_ROLLOVER_MONTH,
)
from .errors import InvalidDate

logger = logging.getLogger(__name__)


class SeasonPhase(str, Enum):
    PRESEASON = "PRESEASON"
    REGULAR = "REGULAR"
    PLAYOFFS = "PLAYOFFS"
    OFFSEASON = "OFFSEASON"

    @property
    def display_name(self) -> str:
        return _PHASE_NAMES[self]

    @property
    def order(self) -> int:
        return _PHASE_ORDER.index(self)


_PHASE_ORDER = (SeasonPhase.PRESEASON, SeasonPhase.REGULAR, SeasonPhase.PLAYOFFS, SeasonPhase.OFFSEASON)
_PHASE_NAMES = {
    SeasonPhase.PRESEASON: "Pre-Season",
    SeasonPhase.REGULAR: "Regular Season",
    SeasonPhase.PLAYOFFS: "Playoffs",
    SeasonPhase.OFFSEASON: "Off-Season",
}


class EventType(str, Enum):
    GAME_DAY = "game_day"
    CONTRACT_EXPIRY = "contract_expiry"
    TRADE_DEADLINE = "trade_deadline"
    FREE_AGENCY_START = "free_agency_start"
    DRAFT = "draft"
    PLAYER_BIRTHDAY = "player_birthday"
    INJURY_RECOVERY = "injury_recovery"
    SEASON_TRANSITION = "season_transition"
    ALL_STAR_BREAK = "all_star_break"
    PLAYOFF_START = "playoff_start"


class EventPriority(IntEnum):
    LOW = 0
    MEDIUM = 1
    HIGH = 2
    CRITICAL = 3


@dataclass(frozen=True, slots=True)
class SimulationEvent:
    date: date
    type: EventType
    priority: EventPriority
    description: str
    event_id: str = field(default_factory=lambda: uuid4().hex)


def milestone_date(name: str, year: int) -> date:
    try:
        year_offset, month, day = SEASON_MILESTONES[name]
    except KeyError as exc:
        raise ValueError(f"Unknown season milestone '{name}'.") from exc
    return date(year + year_offset, month, day)


def season_start_date(year: int) -> date:
    return milestone_date("season_start", year)


def regular_season_start_date(year: int) -> date:
    return milestone_date("regular_season_start", year)


def all_star_break_date(year: int) -> date:
    return milestone_date("all_star_break", year)


def trade_deadline_date(year: int) -> date:
    return milestone_date("trade_deadline", year)


def regular_season_end_date(year: int) -> date:
    return milestone_date("regular_season_end", year)


def playoff_start_date(year: int) -> date:
    return milestone_date("playoff_start", year)


def playoff_end_date(year: int) -> date:
    return milestone_date("playoff_end", year)


def draft_date(year: int) -> date:
    return milestone_date("draft", year)


def free_agency_start_date(year: int) -> date:
    return milestone_date("free_agency_start", year)


def season_year_for(day: date) -> int:
    # Hockey seasons span two calendar years.
    return day.year if day.month >= SEASON_ROLLOVER_MONTH else day.year - 1


def phase_for(day: date) -> SeasonPhase:
    year = season_year_for(day)
    if day < regular_season_start_date(year):
        return SeasonPhase.PRESEASON
    if day < regular_season_end_date(year):
        return SeasonPhase.REGULAR
    if day < playoff_end_date(year):
        return SeasonPhase.PLAYOFFS
    return SeasonPhase.OFFSEASON


def season_milestone_events(year: int) -> list[SimulationEvent]:
    return [
        SimulationEvent(regular_season_start_date(year), EventType.SEASON_TRANSITION, EventPriority.HIGH, "Regular season begins"),
        SimulationEvent(all_star_break_date(year), EventType.ALL_STAR_BREAK, EventPriority.MEDIUM, "All-Star Break"),
        SimulationEvent(trade_deadline_date(year), EventType.TRADE_DEADLINE, EventPriority.CRITICAL, "Trade Deadline"),
        SimulationEvent(playoff_start_date(year), EventType.PLAYOFF_START, EventPriority.HIGH, "Playoffs begin"),
        SimulationEvent(draft_date(year), EventType.DRAFT, EventPriority.HIGH, "Entry Draft"),
        SimulationEvent(free_agency_start_date(year), EventType.FREE_AGENCY_START, EventPriority.HIGH, "Free Agency begins"),
    ]


class EventQueue:
    """Date-ordered collection of future simulation events."""

    def __init__(self, events: list[SimulationEvent] | None = None) -> None:
        self._events: list[SimulationEvent] = []
        for event in events or []:
            self.schedule_event(event)

    def __len__(self) -> int:
        return len(self._events)

    def schedule_event(self, event: SimulationEvent) -> None:
        self._events.append(event)
        # Stable sort keeps insertion order among same-day events.
        self._events.sort(key=lambda e: e.date)

    def events_for_date(self, day: date) -> list[SimulationEvent]:
        return [e for e in self._events if e.date == day]

    def remove_processed_events(self, before: date) -> list[SimulationEvent]:
        removed = [e for e in self._events if e.date < before]
        if removed:
            self._events = [e for e in self._events if e.date >= before]
        return removed

    def all_events(self) -> list[SimulationEvent]:
        return list(self._events)

    def upcoming_events(self, from_date: date, limit: int = 10) -> list[SimulationEvent]:
        return [e for e in self._events if e.date >= from_date][: max(0, limit)]


EventListener = Callable[[SimulationEvent], None]


class SeasonCalendar:
    """Tracks the current date and season phase and fires queued events as days pass.

    The phase and season year are always re-derived from the current date
    against the fixed milestone table; they are cached only so that a change
    can be detected and announced.
    """

    def __init__(self, start_year: int, current_date: date | None = None) -> None:
        self.current_date = current_date or season_start_date(start_year)
        self.season = start_year
        self.phase = phase_for(self.current_date)
        self.event_queue = EventQueue()
        self._listeners: list[EventListener] = []
        self._fired_ids: set[str] = set()
        self._milestones_through = start_year - 1
        self._queue_milestones_through(start_year)

    @property
    def formatted_date(self) -> str:
        return self.current_date.strftime("%b %d, %Y")

    @property
    def season_display(self) -> str:
        return f"{self.season}-{str(self.season + 1)[-2:]}"

    @property
    def phase_label(self) -> str:
        return self.phase.display_name

    def subscribe(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def schedule_event(self, event: SimulationEvent) -> None:
        self.event_queue.schedule_event(event)

    def upcoming_events(self, limit: int = 10) -> list[SimulationEvent]:
        return self.event_queue.upcoming_events(self.current_date, limit=limit)

    def advance(self, days: int) -> list[SimulationEvent]:
        if days <= 0:
            raise InvalidDate(f"Cannot advance the calendar by {days} days", days=days)

        fired: list[SimulationEvent] = []
        processing = self.current_date
        for _ in range(days):
            processing += timedelta(days=1)
            # A walk across Aug 1 must see next season's milestones before it passes them.
            self._queue_milestones_through(season_year_for(processing))
            fired.extend(self._fire_events_for(processing))
        self.current_date = processing

        fired.extend(self._update_phase())

        cutoff = self.current_date - timedelta(days=EVENT_RETENTION_DAYS)
        for event in self.event_queue.remove_processed_events(before=cutoff):
            self._fired_ids.discard(event.event_id)
        return fired

    def advance_to_date(self, target: date) -> list[SimulationEvent]:
        days = (target - self.current_date).days
        if days <= 0:
            return []
        return self.advance(days)

    def _fire_events_for(self, day: date) -> list[SimulationEvent]:
        due = [e for e in self.event_queue.events_for_date(day) if e.event_id not in self._fired_ids]
        due.sort(key=lambda e: e.priority, reverse=True)
        for event in due:
            self._fire(event)
        return due

    def _fire(self, event: SimulationEvent) -> None:
        self._fired_ids.add(event.event_id)
        logger.debug("event fired date=%s type=%s desc=%s", event.date, event.type.value, event.description)
        for listener in list(self._listeners):
            listener(event)

    def _update_phase(self) -> list[SimulationEvent]:
        fired: list[SimulationEvent] = []
        derived_year = season_year_for(self.current_date)
        new_phase = phase_for(self.current_date)

        if new_phase != self.phase:
            old_phase = self.phase
            self.phase = new_phase
            transition = SimulationEvent(
                date=self.current_date,
                type=EventType.SEASON_TRANSITION,
                priority=EventPriority.HIGH,
                description=f"Season phase changed from {old_phase.display_name} to {new_phase.display_name}",
            )
            self.event_queue.schedule_event(transition)
            self._fire(transition)
            fired.append(transition)
            logger.info("phase transition %s -> %s on %s", old_phase.value, new_phase.value, self.current_date)

        while self.season < derived_year:
            self.season += 1
            self._queue_milestones_through(self.season)
            logger.info("season rolled over to %s", self.season_display)
        return fired

    def _queue_milestones_through(self, year: int) -> None:
        while self._milestones_through < year:
            self._milestones_through += 1
            for event in season_milestone_events(self._milestones_through):
                self.event_queue.schedule_event(event)

    def _next_phase_date(self) -> date:
        if self.phase == SeasonPhase.PRESEASON:
            return regular_season_start_date(self.season)
        if self.phase == SeasonPhase.REGULAR:
            return regular_season_end_date(self.season)
        if self.phase == SeasonPhase.PLAYOFFS:
            return playoff_end_date(self.season)
        return date(self.season + 1, SEASON_ROLLOVER_MONTH, 1)

    def days_until_next_phase(self) -> int:
        return max(0, (self._next_phase_date() - self.current_date).days)

    def transition_to_next_phase(self) -> list[SimulationEvent]:
        return self.advance_to_date(self._next_phase_date())

    def is_trade_deadline(self) -> bool:
        return self.current_date == trade_deadline_date(self.season)

    def is_all_star_break(self) -> bool:
        center = all_star_break_date(self.season)
        window = timedelta(days=ALL_STAR_BREAK_WINDOW_DAYS)
        return center - window <= self.current_date <= center + window

    def games_remaining_estimate(self) -> int:
        if self.phase == SeasonPhase.PRESEASON:
            return GAMES_PER_SEASON
        if self.phase == SeasonPhase.REGULAR:
            days_left = (regular_season_end_date(self.season) - self.current_date).days
            return max(0, min(GAMES_PER_SEASON, days_left // 2))
        return 0
