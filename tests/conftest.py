"""Shared pytest fixtures for the What-If Simulator test suite.

Provides:
- day: Monday 2026-03-02 00:00 UTC, the schedule day used throughout
- make_event / make_task: factories with sensible defaults
- standup_state: the two-event Standup / Design Review baseline
- engine: SimulationEngine with default config and a fixed seed
- anyio_backend: async tests (marked anyio) run on asyncio
"""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from whatif.engine.simulation import SimulationEngine
from whatif.models.common import EventCategory, Priority, TaskStatus
from whatif.models.schedule import CalendarEvent, Task
from whatif.models.state import SystemState

DAY = datetime(2026, 3, 2, tzinfo=timezone.utc)


def at(hour: float, day: datetime = DAY) -> datetime:
    """Timestamp ``hour`` hours into ``day`` (fractions allowed)."""
    return day + timedelta(hours=hour)


def build_event(
    event_id: str,
    start: float,
    end: float,
    *,
    title: str | None = None,
    category: EventCategory = EventCategory.WORK,
    priority: Priority = Priority.MEDIUM,
    **extra: Any,
) -> CalendarEvent:
    return CalendarEvent(
        id=event_id,
        title=title or event_id,
        start_time=at(start),
        end_time=at(end),
        category=category,
        priority=priority,
        **extra,
    )


def build_task(
    task_id: str,
    *,
    status: TaskStatus = TaskStatus.ACTIONABLE,
    due_hour: float | None = None,
    **extra: Any,
) -> Task:
    return Task(
        id=task_id,
        title=extra.pop("title", task_id),
        status=status,
        due_date=at(due_hour) if due_hour is not None else None,
        **extra,
    )


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def day() -> datetime:
    return DAY


@pytest.fixture
def make_event() -> Callable[..., CalendarEvent]:
    return build_event


@pytest.fixture
def make_task() -> Callable[..., Task]:
    return build_task


@pytest.fixture
def standup_state() -> SystemState:
    """09:00-10:00 Standup (medium) overlapping 09:30-11:00 Design Review (high)."""
    return SystemState(
        timestamp=at(7),
        events=[
            build_event("standup", 9, 10, title="Standup", category=EventCategory.MEETING),
            build_event(
                "design-review", 9.5, 11,
                title="Design Review",
                category=EventCategory.MEETING,
                priority=Priority.HIGH,
            ),
        ],
    )


@pytest.fixture
def engine() -> SimulationEngine:
    return SimulationEngine(seed=42)
