"""Suggestion providers for DEEP-mode simulation.

A provider looks at a scenario and its simulated state and proposes
extra ScenarioChanges. Providers are best-effort: the engine bounds each
call with a timeout and treats any failure as "no suggestions".

``HeuristicSuggestionProvider`` is the deterministic provider used when
no AI backend is wired in.
"""

from abc import ABC, abstractmethod

from whatif.engine.conflicts import overlaps
from whatif.models.changes import ChangeTarget, ChangeType, RescheduleAction, ScenarioChange
from whatif.models.common import PRIORITY_RANK
from whatif.models.scenario import WhatIfScenario
from whatif.models.state import ConflictType, SystemState


class SuggestionProvider(ABC):
    """Abstract source of suggested changes."""

    @abstractmethod
    async def suggest(
        self,
        scenario: WhatIfScenario,
        state: SystemState,
    ) -> list[ScenarioChange]:
        """Return suggested changes for ``state``; may be empty."""
        ...


class NullSuggestionProvider(SuggestionProvider):
    """Never suggests anything."""

    async def suggest(
        self,
        scenario: WhatIfScenario,
        state: SystemState,
    ) -> list[ScenarioChange]:
        return []


class HeuristicSuggestionProvider(SuggestionProvider):
    """Reschedules the lower-priority side of every time conflict.

    The moved event starts when the higher-priority event ends. On equal
    priority the later-starting event moves. Each event is moved at most
    once per call.
    """

    async def suggest(
        self,
        scenario: WhatIfScenario,
        state: SystemState,
    ) -> list[ScenarioChange]:
        suggestions: list[ScenarioChange] = []
        moved: set[str] = set()

        for conflict in state.conflicts:
            if conflict.type != ConflictType.TIME:
                continue
            events = [state.find_event(item_id) for item_id in conflict.items]
            if any(e is None for e in events) or len(events) != 2:
                continue
            first, second = events
            if not overlaps(first, second):
                continue

            if PRIORITY_RANK[first.priority] > PRIORITY_RANK[second.priority]:
                keep, move = first, second
            elif PRIORITY_RANK[second.priority] > PRIORITY_RANK[first.priority]:
                keep, move = second, first
            else:
                keep, move = sorted((first, second), key=lambda e: (e.start_time, e.id))

            if move.id in moved:
                continue
            moved.add(move.id)
            suggestions.append(ScenarioChange(
                id=f"suggest-{move.id}",
                type=ChangeType.RESCHEDULE,
                target=ChangeTarget.EVENT,
                action=RescheduleAction(
                    item_id=move.id,
                    new_time=keep.end_time,
                    old_time=move.start_time,
                    affected_items=[keep.id],
                ),
                description=f"Move '{move.title}' to after '{keep.title}'",
                expected_impact="Resolves a time conflict",
            ))
        return suggestions
