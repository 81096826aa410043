"""Tests for DEEP-mode suggestion providers."""

import pytest

from whatif.agents.suggestions import HeuristicSuggestionProvider, NullSuggestionProvider
from whatif.models.changes import ChangeType, RescheduleAction
from whatif.models.common import Priority
from whatif.models.scenario import WhatIfScenario
from whatif.models.state import SystemState


def _scenario(state: SystemState) -> WhatIfScenario:
    return WhatIfScenario(name="S", baseline_state=state)


class TestHeuristicSuggestionProvider:
    @pytest.mark.anyio
    async def test_moves_lower_priority_event(self, engine, standup_state) -> None:
        derived = engine.derive_state(standup_state)
        (change,) = await HeuristicSuggestionProvider().suggest(_scenario(standup_state), derived)

        assert change.id == "suggest-standup"
        assert change.type == ChangeType.RESCHEDULE
        assert isinstance(change.action, RescheduleAction)
        review = derived.find_event("design-review")
        assert change.action.new_time == review.end_time
        assert change.action.old_time == derived.find_event("standup").start_time
        assert change.action.affected_items == ["design-review"]

    @pytest.mark.anyio
    async def test_equal_priority_moves_later_event(self, engine, make_event) -> None:
        state = engine.derive_state(SystemState(events=[
            make_event("b", 9.5, 10.5, priority=Priority.LOW),
            make_event("a", 9, 10, priority=Priority.LOW),
        ]))
        (change,) = await HeuristicSuggestionProvider().suggest(_scenario(state), state)
        assert change.action.item_id == "b"

    @pytest.mark.anyio
    async def test_each_event_moved_once(self, engine, make_event) -> None:
        state = engine.derive_state(SystemState(events=[
            make_event("anchor", 9, 12, priority=Priority.HIGH),
            make_event("boss", 9, 10, priority=Priority.URGENT),
            make_event("low", 11, 12, priority=Priority.LOW),
        ]))
        changes = await HeuristicSuggestionProvider().suggest(_scenario(state), state)
        moved = [c.action.item_id for c in changes]
        assert sorted(moved) == ["anchor", "low"]
        assert len(moved) == len(set(moved))

    @pytest.mark.anyio
    async def test_no_conflicts_no_suggestions(self, engine, make_event) -> None:
        state = engine.derive_state(SystemState(events=[make_event("a", 9, 10)]))
        assert await HeuristicSuggestionProvider().suggest(_scenario(state), state) == []


class TestNullSuggestionProvider:
    @pytest.mark.anyio
    async def test_never_suggests(self, engine, standup_state) -> None:
        derived = engine.derive_state(standup_state)
        assert await NullSuggestionProvider().suggest(_scenario(standup_state), derived) == []
