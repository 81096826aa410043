"""Preset scenarios: canned change generators over a baseline state.

Each preset turns the current schedule into a list of ScenarioChanges:

    focus_mode         remove low-priority meetings
    delegate_all       delegate every open, delegatable task to the team
    emergency_mode     push every non-urgent event back by one day
    work_life_balance  remove low-priority work from 18:00 onwards

Presets keep a usage counter and a success rate. The shipped rate acts
as one prior observation that real outcomes are averaged with.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta

from pydantic import Field

from whatif.engine.errors import PresetNotFoundError
from whatif.models.changes import (
    ChangeTarget,
    ChangeType,
    DelegateAction,
    RemoveAction,
    RescheduleAction,
    ScenarioChange,
)
from whatif.models.common import PRIORITY_RANK, EventCategory, Priority, WhatIfBase
from whatif.models.state import SystemState

EVENING_START_HOUR = 18
DELEGATE_TO = "team"


class WhatIfPreset(WhatIfBase):
    id: str
    name: str
    description: str
    category: str
    expected_outcome: str = ""
    usage_count: int = Field(default=0, ge=0)
    success_rate: float = Field(default=0.0, ge=0.0, le=1.0)
    recorded_outcomes: int = Field(default=0, ge=0)


def _is_low(priority: Priority) -> bool:
    return PRIORITY_RANK[priority] <= PRIORITY_RANK[Priority.LOW]


# ---------------------------------------------------------------------------
# Change generators
# ---------------------------------------------------------------------------


def focus_mode_changes(state: SystemState) -> list[ScenarioChange]:
    return [
        ScenarioChange(
            type=ChangeType.REMOVE,
            target=ChangeTarget.EVENT,
            action=RemoveAction(item_id=e.id, reason="Focus mode: drop low-priority meeting"),
            description=f"Cancel meeting: {e.title}",
            expected_impact="Frees time for deep work",
        )
        for e in state.own_events
        if e.category == EventCategory.MEETING and _is_low(e.priority)
    ]


def delegate_all_changes(state: SystemState) -> list[ScenarioChange]:
    return [
        ScenarioChange(
            type=ChangeType.DELEGATE,
            target=ChangeTarget.TASK,
            action=DelegateAction(item_id=t.id, delegate_to=DELEGATE_TO, notes="Delegated to the team"),
            description=f"Delegate task: {t.title}",
            expected_impact="Frees personal time",
        )
        for t in state.tasks
        if t.can_delegate and t.is_open and t.delegated_to is None
    ]


def emergency_mode_changes(state: SystemState) -> list[ScenarioChange]:
    return [
        ScenarioChange(
            type=ChangeType.RESCHEDULE,
            target=ChangeTarget.EVENT,
            action=RescheduleAction(
                item_id=e.id,
                new_time=e.start_time + timedelta(days=1),
                old_time=e.start_time,
            ),
            description=f"Postpone: {e.title}",
            expected_impact="Clears the day for urgent work",
        )
        for e in state.own_events
        if e.priority != Priority.URGENT
    ]


def work_life_balance_changes(state: SystemState) -> list[ScenarioChange]:
    return [
        ScenarioChange(
            type=ChangeType.REMOVE,
            target=ChangeTarget.EVENT,
            action=RemoveAction(item_id=e.id, reason="Protect the evening"),
            description=f"Drop evening work: {e.title}",
            expected_impact="More personal time in the evening",
        )
        for e in state.own_events
        if e.category == EventCategory.WORK
        and _is_low(e.priority)
        and e.start_time.hour >= EVENING_START_HOUR
    ]


ChangeGenerator = Callable[[SystemState], list[ScenarioChange]]


def default_presets() -> list[tuple[WhatIfPreset, ChangeGenerator]]:
    return [
        (
            WhatIfPreset(
                id="focus_mode",
                name="Focus mode",
                description="Cancel all low-priority meetings and focus on core work",
                category="productivity",
                expected_outcome="About 50% more deep-work time",
                success_rate=0.85,
            ),
            focus_mode_changes,
        ),
        (
            WhatIfPreset(
                id="delegate_all",
                name="Delegate everything",
                description="Hand every delegatable task to the team",
                category="optimization",
                expected_outcome="About 30% of personal time freed",
                success_rate=0.75,
            ),
            delegate_all_changes,
        ),
        (
            WhatIfPreset(
                id="emergency_mode",
                name="Emergency mode",
                description="Postpone everything that is not urgent",
                category="emergency",
                expected_outcome="Full attention on urgent matters",
                success_rate=0.90,
            ),
            emergency_mode_changes,
        ),
        (
            WhatIfPreset(
                id="work_life_balance",
                name="Work-life balance",
                description="Keep evenings free of low-priority work",
                category="balance",
                expected_outcome="Better quality of personal time",
                success_rate=0.80,
            ),
            work_life_balance_changes,
        ),
    ]


class PresetLibrary:
    """Registry of presets and their usage statistics."""

    def __init__(self, presets: list[tuple[WhatIfPreset, ChangeGenerator]] | None = None) -> None:
        self._presets: dict[str, WhatIfPreset] = {}
        self._generators: dict[str, ChangeGenerator] = {}
        for preset, generator in presets if presets is not None else default_presets():
            self._presets[preset.id] = preset
            self._generators[preset.id] = generator

    def list_presets(self) -> list[WhatIfPreset]:
        return list(self._presets.values())

    def get(self, preset_id: str) -> WhatIfPreset:
        try:
            return self._presets[preset_id]
        except KeyError:
            raise PresetNotFoundError(preset_id) from None

    def build_changes(self, preset_id: str, state: SystemState) -> list[ScenarioChange]:
        """Generate the preset's changes against ``state`` and count the use."""
        preset = self.get(preset_id)
        changes = self._generators[preset_id](state)
        preset.usage_count += 1
        return changes

    def record_outcome(self, preset_id: str, success: bool) -> WhatIfPreset:
        """Fold one real outcome into the preset's success rate."""
        preset = self.get(preset_id)
        observations = preset.recorded_outcomes + 1
        preset.success_rate = (
            preset.success_rate * observations + (1.0 if success else 0.0)
        ) / (observations + 1)
        preset.recorded_outcomes += 1
        return preset
