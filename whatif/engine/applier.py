"""Change application: one ScenarioChange onto one SystemState.

Pure: the input state is cloned first and never mutated. Only events,
tasks and time budgets change here; derived parts (metrics, conflicts,
risks, distribution) are left stale for the engine to recompute.

Per change type:
    ADD         append the event / task / time budget
    REMOVE      drop the id from whichever collection holds it
    MODIFY      set one named field (validated through the item model)
    RESCHEDULE  move an event keeping its duration (tasks: move due date)
    DELEGATE    mark ``delegated_to`` (tasks also become DELEGATED)
    SPLIT       replace one item by ``len(parts)`` items
    MERGE       collapse same-kind items into one
    AUTOMATE    attach an AutomationMarker
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from pydantic import ValidationError

from whatif.engine.cloner import StateCloner
from whatif.engine.errors import ChangeValidationError, ItemNotFoundError
from whatif.models.changes import (
    AddAction,
    AutomateAction,
    ChangeTarget,
    DelegateAction,
    MergeAction,
    ModifyAction,
    RemoveAction,
    RescheduleAction,
    ScenarioChange,
    SplitAction,
)
from whatif.models.common import PRIORITY_RANK, TaskStatus
from whatif.models.schedule import AutomationMarker, CalendarEvent, ScheduleItem, Task, TimeBudget
from whatif.models.state import SystemState

logger = logging.getLogger(__name__)

_ADD_TARGETS: dict[ChangeTarget, type] = {
    ChangeTarget.EVENT: CalendarEvent,
    ChangeTarget.TASK: Task,
    ChangeTarget.TIME_BUDGET: TimeBudget,
}

# Fields a MODIFY may never touch.
_IMMUTABLE_FIELDS = frozenset({"id", "kind"})

# Pseudo-field for DURATION targets, in minutes.
_DURATION_FIELD = "duration"


class ChangeApplier:
    """Applies ScenarioChanges to SystemStates without mutating the input."""

    def __init__(self, cloner: StateCloner | None = None) -> None:
        self._cloner = cloner or StateCloner()

    def apply(self, state: SystemState, change: ScenarioChange) -> SystemState:
        """Apply ``change`` and return the new state.

        A change that references a missing item is a no-op: the returned
        state equals the input.

        Raises:
            ChangeValidationError: Malformed or contradictory payload.
            StateSerializationError: ``state`` cannot be cloned.
        """
        try:
            return self.apply_checked(state, change)
        except ItemNotFoundError as exc:
            logger.warning("Change %s skipped: %s", change.id, exc)
            return self._cloner.clone(state)

    def apply_checked(self, state: SystemState, change: ScenarioChange) -> SystemState:
        """Like ``apply`` but raises ItemNotFoundError for missing items."""
        new_state = self._cloner.clone(state)
        action = change.action

        if isinstance(action, AddAction):
            self._add(new_state, change, action)
        elif isinstance(action, RemoveAction):
            self._remove(new_state, action)
        elif isinstance(action, ModifyAction):
            self._modify(new_state, change, action)
        elif isinstance(action, RescheduleAction):
            self._reschedule(new_state, action)
        elif isinstance(action, DelegateAction):
            self._delegate(new_state, action)
        elif isinstance(action, SplitAction):
            self._split(new_state, action)
        elif isinstance(action, MergeAction):
            self._merge(new_state, action)
        elif isinstance(action, AutomateAction):
            self._automate(new_state, action)
        else:  # pragma: no cover - the discriminated union is exhaustive
            msg = f"Unsupported change type: {change.type}"
            raise ChangeValidationError(msg)

        return new_state

    # ---------------------------------------------------------------
    # ADD / REMOVE
    # ---------------------------------------------------------------

    def _add(self, state: SystemState, change: ScenarioChange, action: AddAction) -> None:
        expected = _ADD_TARGETS.get(change.target)
        if expected is None or not isinstance(action.item, expected):
            msg = (
                f"Change {change.id}: cannot ADD a {action.item.kind} "
                f"with target {change.target.value!r}"
            )
            raise ChangeValidationError(msg)
        if state.find_item(action.item.id) is not None:
            msg = f"Change {change.id}: item {action.item.id!r} already exists"
            raise ChangeValidationError(msg)

        item = action.item.model_copy(deep=True)
        if isinstance(item, CalendarEvent):
            length = (
                timedelta(minutes=action.duration)
                if action.duration is not None
                else item.duration
            )
            start = action.suggested_time or item.start_time
            item = item.model_copy(update={"start_time": start, "end_time": start + length})
            state.events.append(item)
        elif isinstance(item, Task):
            if action.duration is not None:
                item = item.model_copy(update={"estimated_duration": action.duration})
            state.tasks.append(item)
        else:
            state.time_budgets.append(item)

    def _remove(self, state: SystemState, action: RemoveAction) -> None:
        item_id = action.item_id
        before = len(state.events) + len(state.tasks) + len(state.time_budgets)
        state.events = [e for e in state.events if e.id != item_id]
        state.tasks = [t for t in state.tasks if t.id != item_id]
        state.time_budgets = [b for b in state.time_budgets if b.id != item_id]
        after = len(state.events) + len(state.tasks) + len(state.time_budgets)
        if after == before:
            raise ItemNotFoundError(item_id)

    # ---------------------------------------------------------------
    # MODIFY
    # ---------------------------------------------------------------

    def _modify(self, state: SystemState, change: ScenarioChange, action: ModifyAction) -> None:
        item = self._require(state, action.item_id)
        field, value = self._resolve_modify_field(change, item, action)

        if field not in type(item).model_fields or field in _IMMUTABLE_FIELDS:
            msg = f"Change {change.id}: {item.kind} has no modifiable field {field!r}"
            raise ChangeValidationError(msg)

        payload: dict[str, Any] = item.model_dump()
        payload[field] = value
        try:
            updated = type(item).model_validate(payload)
        except ValidationError as exc:
            msg = f"Change {change.id}: invalid value for {field!r}: {exc.errors()[0]['msg']}"
            raise ChangeValidationError(msg) from exc
        self._replace(state, item, [updated])

    @staticmethod
    def _resolve_modify_field(
        change: ScenarioChange,
        item: ScheduleItem,
        action: ModifyAction,
    ) -> tuple[str, Any]:
        """Map target-specific modifications onto a concrete model field."""
        target = change.target
        field = action.field

        if target in (ChangeTarget.EVENT, ChangeTarget.TASK, ChangeTarget.TIME_BUDGET):
            if _ADD_TARGETS[target] is not type(item):
                msg = f"Change {change.id}: target {target.value!r} but item is a {item.kind}"
                raise ChangeValidationError(msg)
            return field, action.new_value

        if target == ChangeTarget.PRIORITY:
            if field != "priority" or isinstance(item, TimeBudget):
                msg = f"Change {change.id}: PRIORITY target must modify an item's 'priority'"
                raise ChangeValidationError(msg)
            return field, action.new_value

        if target == ChangeTarget.DEADLINE:
            if field != "due_date" or not isinstance(item, Task):
                msg = f"Change {change.id}: DEADLINE target must modify a task's 'due_date'"
                raise ChangeValidationError(msg)
            return field, action.new_value

        # DURATION
        if field not in (_DURATION_FIELD, "estimated_duration", "end_time"):
            msg = f"Change {change.id}: DURATION target cannot modify {field!r}"
            raise ChangeValidationError(msg)
        if isinstance(item, CalendarEvent) and field == _DURATION_FIELD:
            minutes = _as_minutes(change, action.new_value)
            return "end_time", item.start_time + timedelta(minutes=minutes)
        if isinstance(item, Task) and field in (_DURATION_FIELD, "estimated_duration"):
            return "estimated_duration", _as_minutes(change, action.new_value)
        if isinstance(item, CalendarEvent) and field == "end_time":
            return field, action.new_value
        msg = f"Change {change.id}: cannot change the duration of a {item.kind} via {field!r}"
        raise ChangeValidationError(msg)

    # ---------------------------------------------------------------
    # RESCHEDULE / DELEGATE / AUTOMATE
    # ---------------------------------------------------------------

    def _reschedule(self, state: SystemState, action: RescheduleAction) -> None:
        item = self._require(state, action.item_id)
        if isinstance(item, CalendarEvent):
            duration = item.duration
            moved = item.model_copy(
                update={"start_time": action.new_time, "end_time": action.new_time + duration},
            )
        elif isinstance(item, Task):
            moved = item.model_copy(update={"due_date": action.new_time})
        else:
            msg = f"Time budget {item.id!r} cannot be rescheduled"
            raise ChangeValidationError(msg)
        self._replace(state, item, [moved])

    def _delegate(self, state: SystemState, action: DelegateAction) -> None:
        item = self._require(state, action.item_id)
        if isinstance(item, TimeBudget):
            msg = f"Time budget {item.id!r} cannot be delegated"
            raise ChangeValidationError(msg)
        update: dict[str, Any] = {"delegated_to": action.delegate_to}
        if isinstance(item, Task):
            update["status"] = TaskStatus.DELEGATED
        self._replace(state, item, [item.model_copy(update=update)])

    def _automate(self, state: SystemState, action: AutomateAction) -> None:
        item = self._require(state, action.item_id)
        if isinstance(item, TimeBudget):
            msg = f"Time budget {item.id!r} cannot be automated"
            raise ChangeValidationError(msg)
        marker = AutomationMarker(
            automation_type=action.automation_type,
            config=dict(action.config),
        )
        self._replace(state, item, [item.model_copy(update={"automation": marker})])

    # ---------------------------------------------------------------
    # SPLIT / MERGE
    # ---------------------------------------------------------------

    def _split(self, state: SystemState, action: SplitAction) -> None:
        if not action.parts:
            msg = f"SPLIT of {action.item_id!r} needs at least one part"
            raise ChangeValidationError(msg)
        item = self._require(state, action.item_id)

        pieces: list[ScheduleItem] = []
        if isinstance(item, Task):
            for n, part in enumerate(action.parts, start=1):
                pieces.append(item.model_copy(update={
                    "id": f"{item.id}-{n}",
                    "title": part.title,
                    "estimated_duration": part.duration,
                    "due_date": part.deadline or item.due_date,
                }))
        elif isinstance(item, CalendarEvent):
            cursor = item.start_time
            for n, part in enumerate(action.parts, start=1):
                end = cursor + timedelta(minutes=part.duration)
                pieces.append(item.model_copy(update={
                    "id": f"{item.id}-{n}",
                    "title": part.title,
                    "start_time": cursor,
                    "end_time": end,
                }))
                cursor = end
        else:
            msg = f"Time budget {item.id!r} cannot be split"
            raise ChangeValidationError(msg)
        self._ensure_free_ids(state, [p.id for p in pieces], replaced={item.id})
        self._replace(state, item, pieces)

    def _merge(self, state: SystemState, action: MergeAction) -> None:
        found = [
            item for item_id in action.item_ids
            if (item := state.find_item(item_id)) is not None
        ]
        if not found:
            raise ItemNotFoundError(action.item_ids[0])
        kinds = {type(item) for item in found}
        if len(kinds) > 1:
            msg = f"MERGE mixes item kinds: {sorted(k.__name__ for k in kinds)}"
            raise ChangeValidationError(msg)

        first = found[0]
        top_priority = max((item.priority for item in found), key=PRIORITY_RANK.__getitem__)
        merged_id = f"{first.id}-merged"

        if isinstance(first, Task):
            due_dates = [t.due_date for t in found if t.due_date is not None]
            merged: ScheduleItem = first.model_copy(update={
                "id": merged_id,
                "title": action.merged_title,
                "estimated_duration": action.merged_duration,
                "priority": top_priority,
                "due_date": min(due_dates) if due_dates else None,
            })
        elif isinstance(first, CalendarEvent):
            start = min(e.start_time for e in found)
            merged = first.model_copy(update={
                "id": merged_id,
                "title": action.merged_title,
                "start_time": start,
                "end_time": start + timedelta(minutes=action.merged_duration),
                "priority": top_priority,
            })
        else:
            msg = "Time budgets cannot be merged"
            raise ChangeValidationError(msg)

        self._ensure_free_ids(state, [merged_id], replaced={first.id})
        self._replace(state, first, [merged])
        dropped = {item.id for item in found[1:]}
        state.events = [e for e in state.events if e.id not in dropped]
        state.tasks = [t for t in state.tasks if t.id not in dropped]

    # ---------------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------------

    @staticmethod
    def _require(state: SystemState, item_id: str) -> ScheduleItem:
        item = state.find_item(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    @staticmethod
    def _ensure_free_ids(state: SystemState, new_ids: list[str], *, replaced: set[str]) -> None:
        """Reject generated ids that collide with items not being replaced."""
        taken = [
            item_id for item_id in new_ids
            if item_id not in replaced and state.find_item(item_id) is not None
        ]
        if taken:
            msg = f"Generated id(s) {taken} clash with existing items"
            raise ChangeValidationError(msg)

    @staticmethod
    def _replace(
        state: SystemState,
        item: ScheduleItem,
        replacements: list[ScheduleItem],
    ) -> None:
        """Swap ``item`` for ``replacements`` in place, keeping list order."""
        if isinstance(item, CalendarEvent):
            collection: list[Any] = state.events
        elif isinstance(item, Task):
            collection = state.tasks
        else:
            collection = state.time_budgets
        index = next(i for i, existing in enumerate(collection) if existing.id == item.id)
        collection[index:index + 1] = replacements


def _as_minutes(change: ScenarioChange, value: Any) -> int:
    try:
        minutes = int(value)
    except (TypeError, ValueError) as exc:
        msg = f"Change {change.id}: duration must be a number of minutes, got {value!r}"
        raise ChangeValidationError(msg) from exc
    if minutes <= 0:
        msg = f"Change {change.id}: duration must be positive, got {minutes}"
        raise ChangeValidationError(msg)
    return minutes
