"""Tests for the chart payload builder."""

from datetime import timedelta

import pytest

from whatif.engine.config import SimulationConfig
from whatif.engine.visualization import METRIC_LABELS, WEEKDAYS, VisualizationBuilder
from whatif.models.common import EventCategory
from whatif.models.state import SystemState


class TestTimeline:
    def test_events_sorted_and_flagged(self, standup_state, engine, make_event) -> None:
        standup_state.events.insert(0, make_event("lunch", 12, 13, category=EventCategory.MEAL))
        derived = engine.derive_state(standup_state)
        timeline = VisualizationBuilder().timeline(derived)
        assert [e.id for e in timeline.events] == ["standup", "design-review", "lunch"]
        assert [e.is_conflict for e in timeline.events] == [True, True, False]

    def test_free_slots_use_running_max_end(self, make_event, day) -> None:
        events = [make_event("long", 9, 13), make_event("inner", 10, 11), make_event("pm", 14, 15)]
        state = SystemState(timestamp=day, events=events)
        slots = VisualizationBuilder().timeline(state).free_slots
        assert [(s.start.hour, s.end.hour) for s in slots] == [(8, 9), (13, 14), (15, 22)]
        assert slots[0].duration == pytest.approx(60)

    def test_short_gaps_dropped(self, make_event, day) -> None:
        events = [make_event("a", 8, 9), make_event("b", 9.25, 22)]
        slots = VisualizationBuilder().timeline(SystemState(timestamp=day, events=events)).free_slots
        assert slots == []

    def test_empty_day_is_one_slot(self, day) -> None:
        config = SimulationConfig(day_start_hour=9, day_end_hour=17)
        state = SystemState(timestamp=day + timedelta(hours=6))
        (slot,) = VisualizationBuilder(config).timeline(state).free_slots
        assert slot.start == day + timedelta(hours=9)
        assert slot.duration == pytest.approx(8 * 60)


class TestBuild:
    def test_payload_shapes(self, standup_state, engine) -> None:
        baseline = engine.derive_state(standup_state)
        simulated = engine.derive_state(standup_state.model_copy(
            update={"events": standup_state.events[:1]},
        ))
        data = VisualizationBuilder().build(baseline, simulated)
        assert data.metrics.labels == METRIC_LABELS
        assert len(data.metrics.before) == len(data.metrics.after) == 5
        assert data.distribution.categories == ["meeting"]
        assert data.distribution.before == [pytest.approx(2.5)]
        assert data.distribution.after == [pytest.approx(1.0)]
        assert data.conflict_heatmap.days == WEEKDAYS
        assert sum(map(sum, data.conflict_heatmap.intensity)) == 0

    def test_heatmap_counts_conflicting_events(self, standup_state, engine) -> None:
        heatmap = VisualizationBuilder.conflict_heatmap(engine.derive_state(standup_state))
        monday = heatmap.intensity[0]
        assert monday[9] == 2
        assert sum(monday) == 2
