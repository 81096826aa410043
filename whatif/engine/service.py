"""What-If service: scenario lifecycle over injected stores.

Ties the read-only schedule sources, the scenario repository, the
simulation and comparison engines, presets, and the write-back target
together. Everything is passed in; nothing is a process-wide singleton.
"""

from __future__ import annotations

import logging
from typing import Any

from whatif.engine.comparison import ComparisonEngine
from whatif.engine.config import SimulationConfig
from whatif.engine.errors import ChangeNotFoundError, ScenarioStateError
from whatif.engine.presets import PresetLibrary, WhatIfPreset
from whatif.engine.simulation import SimulationEngine
from whatif.models.changes import (
    AddAction,
    ChangeType,
    RemoveAction,
    ScenarioChange,
)
from whatif.models.common import utc_now
from whatif.models.results import ScenarioComparison, SimulationResult
from whatif.models.scenario import (
    Recommendation,
    ScenarioStatus,
    SimulationMode,
    WhatIfScenario,
)
from whatif.models.schedule import CalendarEvent, Task
from whatif.models.state import SystemState
from whatif.repositories.scenarios import InMemoryScenarioRepository, ScenarioRepository
from whatif.repositories.sources import BudgetSource, CalendarSource, ScheduleWriter, TaskSource

logger = logging.getLogger(__name__)

# Change types written back as a field update of the simulated item.
_UPDATE_TYPES = frozenset({
    ChangeType.MODIFY,
    ChangeType.RESCHEDULE,
    ChangeType.DELEGATE,
    ChangeType.AUTOMATE,
})

_RECOMMENDED = frozenset({Recommendation.STRONGLY_RECOMMEND, Recommendation.RECOMMEND})


class WhatIfService:
    """Scenario lifecycle: capture, edit, simulate, compare, apply, archive."""

    def __init__(
        self,
        calendar: CalendarSource,
        tasks: TaskSource,
        budgets: BudgetSource,
        *,
        writer: ScheduleWriter | None = None,
        repository: ScenarioRepository | None = None,
        engine: SimulationEngine | None = None,
        presets: PresetLibrary | None = None,
        config: SimulationConfig | None = None,
    ) -> None:
        self._calendar = calendar
        self._tasks = tasks
        self._budgets = budgets
        self._writer = writer
        self._repository = repository or InMemoryScenarioRepository()
        self._engine = engine or SimulationEngine(config)
        self._comparison = ComparisonEngine(self._engine.config)
        self._presets = presets or PresetLibrary()
        self._preset_origin: dict[str, str] = {}  # scenario_id -> preset_id

    @property
    def repository(self) -> ScenarioRepository:
        return self._repository

    # ---------------------------------------------------------------
    # Baseline and scenario creation
    # ---------------------------------------------------------------

    def capture_baseline(self) -> SystemState:
        """Snapshot the live stores and derive conflicts, metrics and risks."""
        snapshot = SystemState(
            timestamp=utc_now(),
            events=self._calendar.list_events(),
            tasks=self._tasks.list_tasks(),
            time_budgets=self._budgets.list_budgets(),
        )
        return self._engine.derive_state(snapshot)

    def create_scenario(
        self,
        name: str,
        description: str = "",
        changes: list[ScenarioChange] | None = None,
        *,
        baseline: SystemState | None = None,
    ) -> WhatIfScenario:
        """Create, store and activate a new draft scenario."""
        scenario = WhatIfScenario(
            name=name,
            description=description,
            baseline_state=baseline if baseline is not None else self.capture_baseline(),
            changes=list(changes or []),
        )
        self._repository.save(scenario)
        self._repository.set_active(scenario.id)
        logger.info("Created scenario %s (%r) with %d change(s)", scenario.id, name, len(scenario.changes))
        return scenario

    def get_scenario(self, scenario_id: str) -> WhatIfScenario:
        return self._repository.require(scenario_id)

    def list_scenarios(self) -> list[WhatIfScenario]:
        return self._repository.list_all()

    # ---------------------------------------------------------------
    # Editing
    # ---------------------------------------------------------------

    def _editable(self, scenario_id: str) -> WhatIfScenario:
        scenario = self._repository.require(scenario_id)
        if scenario.status not in (ScenarioStatus.DRAFT, ScenarioStatus.SIMULATED):
            msg = f"Scenario {scenario_id} is {scenario.status.value} and can no longer be edited"
            raise ScenarioStateError(msg)
        if self._engine.is_running(scenario_id):
            msg = f"Scenario {scenario_id} is being simulated"
            raise ScenarioStateError(msg)
        return scenario

    def add_change(self, scenario_id: str, change: ScenarioChange) -> WhatIfScenario:
        """Append a change. A simulated scenario drops back to draft."""
        scenario = self._editable(scenario_id)
        scenario.changes.append(change)
        if scenario.status == ScenarioStatus.SIMULATED:
            scenario.status = ScenarioStatus.DRAFT
        return scenario

    def remove_change(self, scenario_id: str, change_id: str) -> WhatIfScenario:
        scenario = self._editable(scenario_id)
        remaining = [c for c in scenario.changes if c.id != change_id]
        if len(remaining) == len(scenario.changes):
            raise ChangeNotFoundError(scenario_id, change_id)
        scenario.changes = remaining
        if scenario.status == ScenarioStatus.SIMULATED:
            scenario.status = ScenarioStatus.DRAFT
        return scenario

    # ---------------------------------------------------------------
    # Simulation and comparison
    # ---------------------------------------------------------------

    async def run_simulation(
        self,
        scenario_id: str,
        mode: SimulationMode = SimulationMode.STANDARD,
        **kwargs: Any,
    ) -> SimulationResult:
        """Run the engine on a stored scenario. ``kwargs`` go to ``SimulationEngine.run``."""
        scenario = self._repository.require(scenario_id)
        result = await self._engine.run(scenario, mode, **kwargs)
        if result.success:
            logger.info(
                "Scenario %s simulated in %.1fms: grade %s",
                scenario_id, result.execution_time, scenario.score.grade.value,
            )
        return result

    def compare(self, scenario_ids: list[str]) -> ScenarioComparison:
        scenarios = [self._repository.require(sid) for sid in scenario_ids]
        return self._comparison.compare(scenarios)

    # ---------------------------------------------------------------
    # Apply / archive / delete
    # ---------------------------------------------------------------

    def apply_scenario(self, scenario_id: str) -> WhatIfScenario:
        """Push a simulated scenario's changes to the live stores.

        REMOVE deletes; ADD creates; MODIFY, RESCHEDULE, DELEGATE and
        AUTOMATE update the item with its simulated field values. SPLIT
        and MERGE are not written back. Skipped (not-found) changes are
        ignored.

        Raises:
            ScenarioStateError: Scenario is not simulated, or no writer.
        """
        scenario = self._repository.require(scenario_id)
        if scenario.status != ScenarioStatus.SIMULATED or scenario.simulated_state is None:
            msg = f"Scenario {scenario_id} must be simulated before it is applied"
            raise ScenarioStateError(msg)
        if self._writer is None:
            msg = "No schedule writer configured"
            raise ScenarioStateError(msg)

        for change in scenario.changes:
            if change.actual_impact is not None and not change.actual_impact.applied:
                continue
            self._write_back(self._writer, change, scenario.simulated_state)

        scenario.status = ScenarioStatus.APPLIED
        scenario.applied_at = utc_now()
        preset_id = self._preset_origin.get(scenario_id)
        if preset_id is not None:
            self._presets.record_outcome(
                preset_id,
                scenario.impact.overall_assessment.recommendation in _RECOMMENDED,
            )
        logger.info("Applied scenario %s (%d change(s))", scenario_id, len(scenario.changes))
        return scenario

    @staticmethod
    def _write_back(writer: ScheduleWriter, change: ScenarioChange, simulated: SystemState) -> None:
        action = change.action

        if isinstance(action, RemoveAction):
            writer.delete_item(action.item_id)
        elif isinstance(action, AddAction):
            item = simulated.find_item(action.item.id)
            if isinstance(item, CalendarEvent):
                writer.create_event(item)
            elif isinstance(item, Task):
                writer.create_task(item)
            else:
                logger.warning("Change %s: only events and tasks can be created", change.id)
        elif change.type in _UPDATE_TYPES:
            item_id = change.item_ids[0]
            item = simulated.find_item(item_id)
            if item is None:
                logger.warning("Change %s: %s no longer exists in the simulated state", change.id, item_id)
                return
            writer.update_item(item_id, item.model_dump(exclude={"id", "kind"}))
        else:
            logger.warning("Change %s: %s is not written back", change.id, change.type.value)

    def archive(self, scenario_id: str) -> WhatIfScenario:
        scenario = self._repository.require(scenario_id)
        if not scenario.can_transition_to(ScenarioStatus.ARCHIVED):
            msg = f"Scenario {scenario_id} is already archived"
            raise ScenarioStateError(msg)
        scenario.status = ScenarioStatus.ARCHIVED
        return scenario

    def delete(self, scenario_id: str) -> None:
        self._repository.delete(scenario_id)
        self._preset_origin.pop(scenario_id, None)

    # ---------------------------------------------------------------
    # Presets and active scenario
    # ---------------------------------------------------------------

    def list_presets(self) -> list[WhatIfPreset]:
        return self._presets.list_presets()

    def create_from_preset(self, preset_id: str, name: str | None = None) -> WhatIfScenario:
        preset = self._presets.get(preset_id)
        baseline = self.capture_baseline()
        changes = self._presets.build_changes(preset_id, baseline)
        scenario = self.create_scenario(
            name or preset.name,
            preset.description,
            changes,
            baseline=baseline,
        )
        self._preset_origin[scenario.id] = preset_id
        return scenario

    def get_active(self) -> WhatIfScenario | None:
        return self._repository.get_active()

    def set_active(self, scenario_id: str | None) -> None:
        self._repository.set_active(scenario_id)
