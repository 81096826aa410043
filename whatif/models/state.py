"""System state models: SystemState and its derived parts.

``metrics``, ``time_distribution``, ``conflicts`` and ``risks`` are
always derived from events/tasks by the engine and never hand-set.
"""

from datetime import datetime
from enum import StrEnum

from pydantic import Field, computed_field

from whatif.models.common import (
    BudgetCategory,
    EventCategory,
    Priority,
    UTCTimestamp,
    WhatIfBase,
    utc_now,
)
from whatif.models.schedule import CalendarEvent, ScheduleItem, Task, TimeBudget


class ConflictType(StrEnum):
    TIME = "time"
    RESOURCE = "resource"
    PRIORITY = "priority"
    DEPENDENCY = "dependency"


class Severity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RiskCategory(StrEnum):
    DEADLINE = "deadline"
    OVERLOAD = "overload"
    QUALITY = "quality"
    HEALTH = "health"
    RELATIONSHIP = "relationship"


class Conflict(WhatIfBase, frozen=True):
    """An incompatibility between two or more items."""

    id: str
    type: ConflictType
    severity: Severity
    items: list[str] = Field(..., min_length=2)
    description: str
    suggested_resolution: str | None = None

    @property
    def pair_key(self) -> frozenset[str]:
        """Order-independent identity of the items involved."""
        return frozenset(self.items)


class Risk(WhatIfBase, frozen=True):
    """A probabilistic adverse condition inferred from a state."""

    id: str
    category: RiskCategory
    probability: float = Field(..., ge=0.0, le=1.0)
    impact: float = Field(..., ge=1.0, le=10.0)
    description: str
    mitigation: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def score(self) -> float:
        """Advisory ranking value, ``probability * impact``."""
        return self.probability * self.impact


class SystemMetrics(WhatIfBase):
    """Heuristic schedule metrics. All values bounded, none ground truth."""

    # Time
    total_scheduled_hours: float = 0.0
    total_free_hours: float = 24.0
    utilization_rate: float = 0.0

    # Tasks
    total_tasks: int = 0
    completed_tasks: int = 0
    pending_tasks: int = 0
    overdue_tasks: int = 0
    completion_rate: float = 0.0

    # Efficiency
    productivity_score: float = 0.0
    focus_time_hours: float = 0.0
    fragmentation_index: float = 0.0

    # Balance
    work_life_balance: float = 0.0
    stress_level: float = 0.0
    energy_balance: float = 0.0


class TimeDistribution(WhatIfBase):
    """Hours of own calendar time broken down several ways."""

    by_category: dict[EventCategory, float] = Field(default_factory=dict)
    by_priority: dict[Priority, float] = Field(default_factory=dict)
    by_time_slot: dict[str, float] = Field(default_factory=dict)
    by_weekday: dict[str, float] = Field(default_factory=dict)
    budget_usage: dict[BudgetCategory, float] = Field(default_factory=dict)


class SystemState(WhatIfBase):
    """Timestamped snapshot of the schedule plus everything derived from it."""

    timestamp: UTCTimestamp = Field(default_factory=utc_now)
    events: list[CalendarEvent] = Field(default_factory=list)
    tasks: list[Task] = Field(default_factory=list)
    time_budgets: list[TimeBudget] = Field(default_factory=list)

    metrics: SystemMetrics = Field(default_factory=SystemMetrics)
    time_distribution: TimeDistribution = Field(default_factory=TimeDistribution)
    conflicts: list[Conflict] = Field(default_factory=list)
    risks: list[Risk] = Field(default_factory=list)

    @property
    def as_of(self) -> datetime:
        """Reference "now" used for overdue evaluation."""
        return self.timestamp

    @property
    def own_events(self) -> list[CalendarEvent]:
        """Events still on the user's own calendar (not delegated)."""
        return [e for e in self.events if e.is_own]

    def find_event(self, item_id: str) -> CalendarEvent | None:
        return next((e for e in self.events if e.id == item_id), None)

    def find_task(self, item_id: str) -> Task | None:
        return next((t for t in self.tasks if t.id == item_id), None)

    def find_item(self, item_id: str) -> ScheduleItem | None:
        """Look an id up across events, tasks, and time budgets."""
        found = self.find_event(item_id) or self.find_task(item_id)
        if found is not None:
            return found
        return next((b for b in self.time_budgets if b.id == item_id), None)
