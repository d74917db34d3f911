from datetime import date, timedelta

import pytest

from franchise_sim.errors import InvalidDate
from franchise_sim.season_calendar import (
    EventPriority,
    EventType,
    SeasonCalendar,
    SeasonPhase,
    SimulationEvent,
    milestone_date,
    phase_for,
    season_year_for,
)


def test_new_calendar_opens_in_preseason() -> None:
    calendar = SeasonCalendar(2025)
    assert calendar.current_date == date(2025, 10, 1)
    assert calendar.phase == SeasonPhase.PRESEASON
    assert calendar.season_display == "2025-26"
    assert calendar.formatted_date == "Oct 01, 2025"
    assert len(calendar.event_queue) == 6
    assert calendar.days_until_next_phase() == 9
    assert calendar.games_remaining_estimate() == 82


@pytest.mark.parametrize("days", [0, -1, -30])
def test_advance_rejects_non_positive_days(days: int) -> None:
    calendar = SeasonCalendar(2025)
    with pytest.raises(InvalidDate) as excinfo:
        calendar.advance(days)
    assert excinfo.value.days == days
    assert calendar.current_date == date(2025, 10, 1)


def test_regular_season_start_fires_transition() -> None:
    calendar = SeasonCalendar(2025)
    fired = calendar.advance(9)
    assert calendar.current_date == date(2025, 10, 10)
    assert calendar.phase == SeasonPhase.REGULAR
    assert [event.type for event in fired] == [EventType.SEASON_TRANSITION, EventType.SEASON_TRANSITION]
    assert fired[-1].description == "Season phase changed from Pre-Season to Regular Season"


def test_phase_only_wraps_with_a_new_season() -> None:
    calendar = SeasonCalendar(2025)
    seen: list[str] = []
    calendar.subscribe(lambda event: seen.append(event.event_id))

    previous_order = calendar.phase.order
    previous_season = calendar.season
    while calendar.current_date < date(2026, 8, 5):
        calendar.advance(1)
        order = calendar.phase.order
        if order < previous_order:
            assert calendar.phase == SeasonPhase.PRESEASON
            assert calendar.current_date == date(2026, 8, 1)
            assert calendar.season == previous_season + 1
        else:
            assert calendar.season == previous_season
        previous_order = order
        previous_season = calendar.season

    assert calendar.season == 2026
    assert len(seen) == len(set(seen))
    # Every phase change plus the six milestones of the first season.
    assert len(seen) == 4 + 6


def test_multi_day_jump_recomputes_phase_once() -> None:
    calendar = SeasonCalendar(2025)
    fired = calendar.advance(300)
    assert calendar.current_date == date(2026, 7, 28)
    assert calendar.phase == SeasonPhase.OFFSEASON
    transitions = [e for e in fired if e.description.startswith("Season phase changed")]
    assert len(transitions) == 1


def test_long_jump_across_rollover_fires_next_season_milestones() -> None:
    calendar = SeasonCalendar(2025)
    calendar.advance_to_date(date(2026, 7, 30))
    seen: list[str] = []
    calendar.subscribe(lambda event: seen.append(event.event_id))

    fired = calendar.advance(100)
    assert calendar.current_date == date(2026, 11, 7)
    assert calendar.season == 2026
    assert calendar.phase == SeasonPhase.REGULAR
    openers = [e for e in fired if e.date == date(2026, 10, 10) and e.description == "Regular season begins"]
    assert len(openers) == 1
    assert [e.date for e in fired[:-1]] == sorted(e.date for e in fired[:-1])
    assert len(seen) == len(set(seen)) == len(fired)

    queued = [e for e in calendar.event_queue.all_events() if e.type == EventType.DRAFT]
    assert [e.date for e in queued] == [date(2027, 6, 25)]


def test_same_day_events_fire_by_priority() -> None:
    calendar = SeasonCalendar(2025)
    day = date(2025, 10, 3)
    for priority in (EventPriority.LOW, EventPriority.CRITICAL, EventPriority.MEDIUM):
        calendar.schedule_event(SimulationEvent(day, EventType.PLAYER_BIRTHDAY, priority, priority.name))
    fired = calendar.advance(2)
    assert [event.priority for event in fired] == [EventPriority.CRITICAL, EventPriority.MEDIUM, EventPriority.LOW]


def test_stale_events_are_pruned() -> None:
    calendar = SeasonCalendar(2025)
    old = SimulationEvent(date(2025, 10, 2), EventType.INJURY_RECOVERY, EventPriority.LOW, "Back from injury")
    calendar.schedule_event(old)
    calendar.advance(5)
    assert old in calendar.event_queue.all_events()
    calendar.advance(10)
    assert old not in calendar.event_queue.all_events()


def test_listener_can_unsubscribe() -> None:
    calendar = SeasonCalendar(2025)
    seen: list[SimulationEvent] = []
    calendar.subscribe(seen.append)
    calendar.advance(9)
    calendar.unsubscribe(seen.append)
    calendar.transition_to_next_phase()
    assert len(seen) == 2


def test_advance_to_date_ignores_past_targets() -> None:
    calendar = SeasonCalendar(2025)
    assert calendar.advance_to_date(date(2025, 9, 1)) == []
    assert calendar.advance_to_date(calendar.current_date) == []
    assert calendar.current_date == date(2025, 10, 1)

    calendar.advance_to_date(date(2025, 12, 25))
    assert calendar.current_date == date(2025, 12, 25)


def test_upcoming_events_are_date_ordered() -> None:
    calendar = SeasonCalendar(2025)
    upcoming = calendar.upcoming_events(limit=3)
    assert [event.type for event in upcoming] == [
        EventType.SEASON_TRANSITION,
        EventType.ALL_STAR_BREAK,
        EventType.TRADE_DEADLINE,
    ]
    assert calendar.upcoming_events(limit=0) == []


@pytest.mark.parametrize(
    ("day", "season", "phase"),
    [
        (date(2025, 10, 9), 2025, SeasonPhase.PRESEASON),
        (date(2025, 10, 10), 2025, SeasonPhase.REGULAR),
        (date(2026, 4, 14), 2025, SeasonPhase.REGULAR),
        (date(2026, 4, 15), 2025, SeasonPhase.PLAYOFFS),
        (date(2026, 6, 15), 2025, SeasonPhase.OFFSEASON),
        (date(2026, 7, 31), 2025, SeasonPhase.OFFSEASON),
        (date(2026, 8, 1), 2026, SeasonPhase.PRESEASON),
    ],
)
def test_phase_is_derived_from_date(day: date, season: int, phase: SeasonPhase) -> None:
    assert season_year_for(day) == season
    assert phase_for(day) == phase


def test_all_star_window_and_trade_deadline() -> None:
    calendar = SeasonCalendar(2025, current_date=date(2026, 2, 12))
    assert calendar.phase == SeasonPhase.REGULAR
    assert calendar.is_all_star_break()
    calendar.advance(7)
    assert not calendar.is_all_star_break()
    calendar.advance_to_date(date(2026, 3, 3))
    assert calendar.is_trade_deadline()
    assert calendar.games_remaining_estimate() == (date(2026, 4, 15) - date(2026, 3, 3)).days // 2


def test_unknown_milestone_raises() -> None:
    with pytest.raises(ValueError):
        milestone_date("parade", 2025)
    assert milestone_date("draft", 2025) == date(2026, 6, 25)
    assert date(2025, 10, 1) + timedelta(days=9) == milestone_date("regular_season_start", 2025)
