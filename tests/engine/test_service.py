"""Tests for WhatIfService: scenario lifecycle over in-memory stores."""

from datetime import timedelta

import pytest

from whatif.engine.errors import (
    ChangeNotFoundError,
    ScenarioNotFoundError,
    ScenarioStateError,
    WhatIfError,
)
from whatif.engine.service import WhatIfService
from whatif.engine.simulation import SimulationEngine
from whatif.models.changes import (
    AddAction,
    ChangeTarget,
    ChangeType,
    DelegateAction,
    RemoveAction,
    RescheduleAction,
    ScenarioChange,
    SplitAction,
    SplitPart,
)
from whatif.models.common import EventCategory, Priority, TaskStatus
from whatif.models.scenario import ScenarioStatus
from whatif.repositories.sources import InMemorySchedule


@pytest.fixture
def schedule(make_event, make_task) -> InMemorySchedule:
    return InMemorySchedule(
        events=[
            make_event("standup", 9, 10, title="Standup", category=EventCategory.MEETING),
            make_event(
                "design-review", 9.5, 11, title="Design Review",
                category=EventCategory.MEETING, priority=Priority.HIGH,
            ),
            make_event(
                "vendor-call", 14, 15, title="Vendor call",
                category=EventCategory.MEETING, priority=Priority.LOW,
            ),
        ],
        tasks=[make_task("report", can_delegate=True)],
    )


@pytest.fixture
def service(schedule) -> WhatIfService:
    return WhatIfService(
        schedule, schedule, schedule, writer=schedule, engine=SimulationEngine(seed=1),
    )


def _reschedule(item_id: str, new_time) -> ScenarioChange:
    return ScenarioChange(
        type=ChangeType.RESCHEDULE,
        target=ChangeTarget.EVENT,
        action=RescheduleAction(item_id=item_id, new_time=new_time),
    )


def _remove(item_id: str) -> ScenarioChange:
    return ScenarioChange(
        type=ChangeType.REMOVE, target=ChangeTarget.EVENT, action=RemoveAction(item_id=item_id),
    )


class TestBaselineAndCreation:
    def test_capture_baseline_is_derived(self, service, schedule) -> None:
        baseline = service.capture_baseline()
        assert len(baseline.events) == 3
        assert len(baseline.conflicts) == 1
        assert baseline.metrics.total_scheduled_hours == pytest.approx(3.5)
        baseline.events.clear()
        assert len(schedule.events) == 3

    def test_create_scenario_is_stored_and_active(self, service) -> None:
        scenario = service.create_scenario("Plan A", "first idea")
        assert scenario.status == ScenarioStatus.DRAFT
        assert service.get_scenario(scenario.id) is scenario
        assert service.get_active() is scenario
        assert service.list_scenarios() == [scenario]

    def test_unknown_scenario(self, service) -> None:
        with pytest.raises(ScenarioNotFoundError):
            service.get_scenario("missing")


class TestEditing:
    @pytest.mark.anyio
    async def test_editing_simulated_scenario_resets_to_draft(self, service) -> None:
        scenario = service.create_scenario("Plan")
        await service.run_simulation(scenario.id)
        assert scenario.status == ScenarioStatus.SIMULATED

        service.add_change(scenario.id, _remove("vendor-call"))
        assert scenario.status == ScenarioStatus.DRAFT
        assert len(scenario.changes) == 1

    def test_remove_change(self, service) -> None:
        change = _remove("vendor-call")
        scenario = service.create_scenario("Plan", changes=[change])
        service.remove_change(scenario.id, change.id)
        assert scenario.changes == []

    def test_remove_unknown_change(self, service) -> None:
        scenario = service.create_scenario("Plan")
        with pytest.raises(ChangeNotFoundError, match="Change 'nope' not found") as exc_info:
            service.remove_change(scenario.id, "nope")
        assert isinstance(exc_info.value, WhatIfError)
        assert exc_info.value.scenario_id == scenario.id

    def test_archived_scenario_is_read_only(self, service) -> None:
        scenario = service.create_scenario("Plan")
        service.archive(scenario.id)
        with pytest.raises(ScenarioStateError, match="can no longer be edited"):
            service.add_change(scenario.id, _remove("vendor-call"))
        with pytest.raises(ScenarioStateError, match="already archived"):
            service.archive(scenario.id)


class TestApply:
    @pytest.mark.anyio
    async def test_apply_writes_changes_back(self, service, schedule, day, make_task) -> None:
        scenario = service.create_scenario("Plan", changes=[
            _reschedule("standup", day + timedelta(hours=8)),
            _remove("vendor-call"),
            ScenarioChange(
                type=ChangeType.ADD, target=ChangeTarget.TASK,
                action=AddAction(item=make_task("follow-up")),
            ),
            ScenarioChange(
                type=ChangeType.DELEGATE, target=ChangeTarget.TASK,
                action=DelegateAction(item_id="report", delegate_to="sam"),
            ),
        ])
        result = await service.run_simulation(scenario.id)
        assert result.success

        service.apply_scenario(scenario.id)

        assert scenario.status == ScenarioStatus.APPLIED
        assert scenario.applied_at is not None
        assert [e.id for e in schedule.events] == ["standup", "design-review"]
        assert schedule.events[0].start_time == day + timedelta(hours=8)
        assert [t.id for t in schedule.tasks] == ["report", "follow-up"]
        assert schedule.tasks[0].status == TaskStatus.DELEGATED

    @pytest.mark.anyio
    async def test_skipped_and_split_changes_not_written(self, service, schedule) -> None:
        scenario = service.create_scenario("Plan", changes=[
            _remove("ghost"),
            ScenarioChange(
                type=ChangeType.SPLIT, target=ChangeTarget.EVENT,
                action=SplitAction(item_id="vendor-call", parts=[SplitPart(title="Prep", duration=30)]),
            ),
        ])
        await service.run_simulation(scenario.id)
        service.apply_scenario(scenario.id)
        assert [e.id for e in schedule.events] == ["standup", "design-review", "vendor-call"]

    def test_apply_requires_simulation(self, service) -> None:
        scenario = service.create_scenario("Plan")
        with pytest.raises(ScenarioStateError, match="must be simulated"):
            service.apply_scenario(scenario.id)

    @pytest.mark.anyio
    async def test_apply_requires_writer(self, schedule) -> None:
        service = WhatIfService(schedule, schedule, schedule)
        scenario = service.create_scenario("Plan")
        await service.run_simulation(scenario.id)
        with pytest.raises(ScenarioStateError, match="No schedule writer"):
            service.apply_scenario(scenario.id)

    @pytest.mark.anyio
    async def test_applied_scenario_cannot_be_resimulated(self, service) -> None:
        scenario = service.create_scenario("Plan")
        await service.run_simulation(scenario.id)
        service.apply_scenario(scenario.id)
        result = await service.run_simulation(scenario.id)
        assert not result.success
        assert scenario.status == ScenarioStatus.APPLIED


class TestPresetsAndComparison:
    @pytest.mark.anyio
    async def test_preset_scenario_records_outcome(self, service, schedule) -> None:
        scenario = service.create_from_preset("focus_mode")
        assert scenario.name == "Focus mode"
        assert [c.item_ids for c in scenario.changes] == [["vendor-call"]]

        await service.run_simulation(scenario.id)
        service.apply_scenario(scenario.id)

        preset = next(p for p in service.list_presets() if p.id == "focus_mode")
        assert preset.usage_count == 1
        assert preset.recorded_outcomes == 1
        assert "vendor-call" not in [e.id for e in schedule.events]

    @pytest.mark.anyio
    async def test_compare_through_service(self, service, day) -> None:
        keep = service.create_scenario("Keep")
        move = service.create_scenario("Move", changes=[_reschedule("standup", day + timedelta(hours=8))])
        await service.run_simulation(keep.id)
        await service.run_simulation(move.id)
        comparison = service.compare([keep.id, move.id])
        assert comparison.winner.id == move.id

    def test_delete_clears_active(self, service) -> None:
        scenario = service.create_scenario("Plan")
        service.delete(scenario.id)
        assert service.get_active() is None
        assert service.list_scenarios() == []

    def test_set_active(self, service) -> None:
        first = service.create_scenario("First")
        service.create_scenario("Second")
        service.set_active(first.id)
        assert service.get_active() is first
        service.set_active(None)
        assert service.get_active() is None
