"""Schedule metrics and time distribution.

Heuristics, not ground truth. Every formula is bounded and monotone in
the direction that matters (more conflicts never raise productivity,
never lower stress). Hour-based values only count the user's own
events; delegated events are off the calendar.

Call order on a state: conflicts first (``compute`` reads
``state.conflicts``), then metrics, then distribution.
"""

from __future__ import annotations

from whatif.engine.config import SimulationConfig
from whatif.models.common import (
    EVENT_BUDGET_CATEGORY,
    BudgetCategory,
    EventCategory,
    Priority,
    TaskStatus,
)
from whatif.models.schedule import CalendarEvent
from whatif.models.state import SystemMetrics, SystemState, TimeDistribution

HOURS_PER_DAY = 24.0

_FOCUS_CATEGORIES = frozenset({EventCategory.WORK, EventCategory.LEARNING})
_WORK_CATEGORIES = frozenset({EventCategory.WORK, EventCategory.MEETING})
_PERSONAL_CATEGORIES = frozenset({EventCategory.PERSONAL, EventCategory.HEALTH})

# QUICK mode skips the gap scan and assumes a moderately choppy day.
QUICK_FRAGMENTATION = 0.5


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def _hours(events: list[CalendarEvent], categories: frozenset[EventCategory] | None = None) -> float:
    return sum(
        e.duration_hours for e in events
        if categories is None or e.category in categories
    )


def time_slot(hour: int) -> str:
    """Bucket an hour of day into morning / afternoon / evening / night."""
    if 5 <= hour < 12:
        return "morning"
    if 12 <= hour < 18:
        return "afternoon"
    if 18 <= hour < 22:
        return "evening"
    return "night"


class MetricsCalculator:
    """Derives SystemMetrics and TimeDistribution from a state."""

    def __init__(self, config: SimulationConfig | None = None) -> None:
        self._config = config or SimulationConfig()

    # ---------------------------------------------------------------
    # Metrics
    # ---------------------------------------------------------------

    def compute(self, state: SystemState, *, quick: bool = False) -> SystemMetrics:
        """Compute metrics from events, tasks and already-detected conflicts.

        With ``quick=True`` the fragmentation scan is replaced by a fixed
        estimate; everything else is computed exactly.
        """
        cfg = self._config
        events = state.own_events
        conflict_count = len(state.conflicts)

        scheduled = _hours(events)
        free = HOURS_PER_DAY - scheduled
        utilization = scheduled / HOURS_PER_DAY * 100.0

        total_tasks = len(state.tasks)
        completed = sum(1 for t in state.tasks if t.is_completed)
        overdue = sum(1 for t in state.tasks if t.is_overdue(state.as_of))
        completion_rate = completed / total_tasks * 100.0 if total_tasks else 0.0

        focus = self.focus_time(events)
        fragmentation = QUICK_FRAGMENTATION if quick else self.fragmentation(events)

        efficiency = max(0.0, 100.0 - 5.0 * conflict_count)
        productivity = _clamp(completion_rate * 0.4 + focus * 10.0 + efficiency * 0.3)

        work = _hours(events, _WORK_CATEGORIES)
        personal = _hours(events, _PERSONAL_CATEGORIES)
        balance = (
            min(100.0, personal / (work + personal) * 200.0)
            if work + personal > 0
            else 0.0
        )

        own_tasks = sum(
            1 for t in state.tasks
            if t.delegated_to is None and t.status != TaskStatus.DELEGATED
        )
        stress = min(3.0, own_tasks / 10.0)
        stress += min(2.0, conflict_count * 0.5)
        stress += min(2.0, float(overdue))
        if scheduled > cfg.long_day_hours:
            stress += 2.0
        stress += fragmentation
        stress = min(10.0, stress)

        energy = _clamp(free * 10.0 - stress * 5.0)

        return SystemMetrics(
            total_scheduled_hours=scheduled,
            total_free_hours=free,
            utilization_rate=utilization,
            total_tasks=total_tasks,
            completed_tasks=completed,
            pending_tasks=total_tasks - completed,
            overdue_tasks=overdue,
            completion_rate=completion_rate,
            productivity_score=productivity,
            focus_time_hours=focus,
            fragmentation_index=fragmentation,
            work_life_balance=balance,
            stress_level=stress,
            energy_balance=energy,
        )

    def focus_time(self, events: list[CalendarEvent]) -> float:
        """Hours of WORK/LEARNING blocks at least ``focus_block_hours`` long."""
        return sum(
            e.duration_hours for e in events
            if e.category in _FOCUS_CATEGORIES
            and e.duration_hours >= self._config.focus_block_hours
        )

    def fragmentation(self, events: list[CalendarEvent]) -> float:
        """Short gaps between consecutive events, per event."""
        if not events:
            return 0.0
        ordered = sorted(events, key=lambda e: (e.start_time, e.id))
        limit = self._config.fragmentation_gap_minutes
        short_gaps = 0
        for current, following in zip(ordered, ordered[1:]):
            gap = (following.start_time - current.end_time).total_seconds() / 60.0
            if 0 < gap < limit:
                short_gaps += 1
        return short_gaps / len(events)

    # ---------------------------------------------------------------
    # Distribution
    # ---------------------------------------------------------------

    def distribution(self, state: SystemState) -> TimeDistribution:
        by_category: dict[EventCategory, float] = {}
        by_priority: dict[Priority, float] = {}
        by_time_slot: dict[str, float] = {}
        by_weekday: dict[str, float] = {}
        by_budget: dict[BudgetCategory, float] = {}

        for event in state.own_events:
            hours = event.duration_hours
            by_category[event.category] = by_category.get(event.category, 0.0) + hours
            by_priority[event.priority] = by_priority.get(event.priority, 0.0) + hours
            slot = time_slot(event.start_time.hour)
            by_time_slot[slot] = by_time_slot.get(slot, 0.0) + hours
            weekday = event.start_time.strftime("%A")
            by_weekday[weekday] = by_weekday.get(weekday, 0.0) + hours
            budget = EVENT_BUDGET_CATEGORY[event.category]
            by_budget[budget] = by_budget.get(budget, 0.0) + hours

        budget_usage: dict[BudgetCategory, float] = {}
        for budget in state.time_budgets:
            allowance = budget.daily_budget_hours
            if allowance > 0:
                budget_usage[budget.category] = by_budget.get(budget.category, 0.0) / allowance

        return TimeDistribution(
            by_category=by_category,
            by_priority=by_priority,
            by_time_slot=by_time_slot,
            by_weekday=by_weekday,
            budget_usage=budget_usage,
        )
