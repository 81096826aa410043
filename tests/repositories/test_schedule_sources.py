"""Tests for InMemorySchedule as source and writer."""

from datetime import timedelta

import pytest

from whatif.models.common import BudgetCategory, TaskStatus
from whatif.models.schedule import TimeBudget
from whatif.repositories.sources import InMemorySchedule


@pytest.fixture
def schedule(make_event, make_task) -> InMemorySchedule:
    return InMemorySchedule(
        events=[make_event("e1", 9, 10)],
        tasks=[make_task("t1")],
        budgets=[TimeBudget(id="b1", category=BudgetCategory.WORK, daily_budget_seconds=3600)],
    )


class TestSources:
    def test_lists_are_copies(self, schedule) -> None:
        events = schedule.list_events()
        events[0].title = "changed"
        events.clear()
        assert schedule.events[0].title == "e1"

    def test_all_collections_listed(self, schedule) -> None:
        assert [t.id for t in schedule.list_tasks()] == ["t1"]
        assert [b.id for b in schedule.list_budgets()] == ["b1"]


class TestWriter:
    def test_create(self, schedule, make_event, make_task) -> None:
        schedule.create_event(make_event("e2", 11, 12))
        schedule.create_task(make_task("t2"))
        assert [e.id for e in schedule.events] == ["e1", "e2"]
        assert [t.id for t in schedule.tasks] == ["t1", "t2"]

    def test_update_validates_fields(self, schedule, day) -> None:
        schedule.update_item("e1", {"start_time": day + timedelta(hours=8), "end_time": day + timedelta(hours=9)})
        assert schedule.events[0].start_time == day + timedelta(hours=8)
        schedule.update_item("t1", {"status": "delegated", "delegated_to": "sam"})
        assert schedule.tasks[0].status == TaskStatus.DELEGATED

    def test_update_rejects_invalid_payload(self, schedule, day) -> None:
        with pytest.raises(ValueError):
            schedule.update_item("e1", {"end_time": day})

    def test_update_unknown_item(self, schedule) -> None:
        with pytest.raises(KeyError, match="Item ghost not found"):
            schedule.update_item("ghost", {"title": "x"})

    def test_delete(self, schedule) -> None:
        schedule.delete_item("b1")
        assert schedule.budgets == []
        with pytest.raises(KeyError):
            schedule.delete_item("b1")
