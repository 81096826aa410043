"""Read-only schedule sources and the write-back target.

Sources hand out snapshots (copies), so the engine can never mutate the
live stores. ``ScheduleWriter`` is only used when a simulated scenario
is applied for real.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from whatif.models.schedule import CalendarEvent, Task, TimeBudget


class CalendarSource(ABC):
    @abstractmethod
    def list_events(self) -> list[CalendarEvent]: ...


class TaskSource(ABC):
    @abstractmethod
    def list_tasks(self) -> list[Task]: ...


class BudgetSource(ABC):
    @abstractmethod
    def list_budgets(self) -> list[TimeBudget]: ...


class ScheduleWriter(ABC):
    """Mutation API of the live calendar / task stores, keyed by item id."""

    @abstractmethod
    def create_event(self, event: CalendarEvent) -> None: ...

    @abstractmethod
    def create_task(self, task: Task) -> None: ...

    @abstractmethod
    def update_item(self, item_id: str, fields: dict[str, Any]) -> None: ...

    @abstractmethod
    def delete_item(self, item_id: str) -> None: ...


class InMemorySchedule(CalendarSource, TaskSource, BudgetSource, ScheduleWriter):
    """One object playing all store roles, for tests and local use."""

    def __init__(
        self,
        events: list[CalendarEvent] | None = None,
        tasks: list[Task] | None = None,
        budgets: list[TimeBudget] | None = None,
    ) -> None:
        self.events: list[CalendarEvent] = list(events or [])
        self.tasks: list[Task] = list(tasks or [])
        self.budgets: list[TimeBudget] = list(budgets or [])

    # -- sources --

    def list_events(self) -> list[CalendarEvent]:
        return [e.model_copy(deep=True) for e in self.events]

    def list_tasks(self) -> list[Task]:
        return [t.model_copy(deep=True) for t in self.tasks]

    def list_budgets(self) -> list[TimeBudget]:
        return [b.model_copy(deep=True) for b in self.budgets]

    # -- writer --

    def create_event(self, event: CalendarEvent) -> None:
        self.events.append(event.model_copy(deep=True))

    def create_task(self, task: Task) -> None:
        self.tasks.append(task.model_copy(deep=True))

    def update_item(self, item_id: str, fields: dict[str, Any]) -> None:
        for collection in (self.events, self.tasks, self.budgets):
            for i, item in enumerate(collection):
                if item.id == item_id:
                    payload = item.model_dump()
                    payload.update(fields)
                    collection[i] = type(item).model_validate(payload)
                    return
        msg = f"Item {item_id} not found."
        raise KeyError(msg)

    def delete_item(self, item_id: str) -> None:
        before = len(self.events) + len(self.tasks) + len(self.budgets)
        self.events = [e for e in self.events if e.id != item_id]
        self.tasks = [t for t in self.tasks if t.id != item_id]
        self.budgets = [b for b in self.budgets if b.id != item_id]
        if len(self.events) + len(self.tasks) + len(self.budgets) == before:
            msg = f"Item {item_id} not found."
            raise KeyError(msg)
