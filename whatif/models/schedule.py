"""Schedule item models: calendar events, tasks, and time budgets.

These mirror the shapes supplied by the external calendar, task and
time-budget stores. The engine only ever works on copies of them.
"""

from datetime import datetime, timedelta
from typing import Any, Literal

from pydantic import AwareDatetime, Field, model_validator

from whatif.models.common import (
    BudgetCategory,
    EventCategory,
    EventStatus,
    ItemId,
    Priority,
    TaskStatus,
    WhatIfBase,
)

AutomationType = Literal["recurring", "template", "ai"]


class AutomationMarker(WhatIfBase):
    """Recurrence/template marker attached by an AUTOMATE change."""

    automation_type: AutomationType
    config: dict[str, Any] = Field(default_factory=dict)


class CalendarEvent(WhatIfBase):
    """A scheduled block on the user's calendar."""

    kind: Literal["event"] = "event"
    id: ItemId
    title: str
    start_time: AwareDatetime
    end_time: AwareDatetime
    category: EventCategory = EventCategory.OTHER
    priority: Priority = Priority.MEDIUM
    status: EventStatus = EventStatus.PLANNED
    location: str | None = None
    delegated_to: str | None = None
    automation: AutomationMarker | None = None

    @model_validator(mode="after")
    def _end_after_start(self) -> "CalendarEvent":
        if self.end_time <= self.start_time:
            msg = f"Event {self.id}: end_time must be after start_time"
            raise ValueError(msg)
        return self

    @property
    def duration(self) -> timedelta:
        return self.end_time - self.start_time

    @property
    def duration_hours(self) -> float:
        return self.duration.total_seconds() / 3600.0

    @property
    def is_own(self) -> bool:
        """True while the event still sits on the user's own calendar."""
        return self.delegated_to is None


class Task(WhatIfBase):
    """An inbox/task-store item."""

    kind: Literal["task"] = "task"
    id: ItemId
    title: str
    due_date: AwareDatetime | None = None
    status: TaskStatus = TaskStatus.INBOX
    priority: Priority = Priority.NONE
    estimated_duration: int = Field(default=30, ge=0, description="Minutes.")
    can_delegate: bool = False
    delegated_to: str | None = None
    automation: AutomationMarker | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    @property
    def is_open(self) -> bool:
        return self.status not in (TaskStatus.COMPLETED, TaskStatus.CANCELLED)

    def is_overdue(self, now: datetime) -> bool:
        """Past due and not completed."""
        return (
            self.due_date is not None
            and self.due_date < now
            and not self.is_completed
        )


class TimeBudget(WhatIfBase):
    """Per-category time allowance (seconds) from the time-budget store."""

    kind: Literal["time_budget"] = "time_budget"
    id: ItemId
    category: BudgetCategory
    name: str = ""
    daily_budget_seconds: int = Field(..., ge=0)
    weekly_budget_seconds: int = Field(default=0, ge=0)
    monthly_budget_seconds: int = Field(default=0, ge=0)

    @property
    def daily_budget_hours(self) -> float:
        return self.daily_budget_seconds / 3600.0


ScheduleItem = CalendarEvent | Task | TimeBudget
