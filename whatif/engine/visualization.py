"""Chart-ready payloads for a simulated scenario."""

from __future__ import annotations

from datetime import datetime, time, timedelta

from whatif.engine.config import SimulationConfig
from whatif.models.results import (
    CategoryDistribution,
    ConflictHeatmap,
    FreeSlot,
    MetricBars,
    TimelineComparison,
    TimelineData,
    TimelineEvent,
    VisualizationData,
)
from whatif.models.schedule import CalendarEvent
from whatif.models.state import SystemState

WEEKDAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
METRIC_LABELS = ["productivity", "balance", "calm", "completion", "utilization"]


class VisualizationBuilder:
    """Builds timeline, metric, distribution and heatmap payloads."""

    def __init__(self, config: SimulationConfig | None = None) -> None:
        self._config = config or SimulationConfig()

    def build(self, baseline: SystemState, simulated: SystemState) -> VisualizationData:
        return VisualizationData(
            timeline=TimelineComparison(
                before=self.timeline(baseline),
                after=self.timeline(simulated),
            ),
            metrics=MetricBars(
                labels=list(METRIC_LABELS),
                before=self._metric_row(baseline),
                after=self._metric_row(simulated),
            ),
            distribution=self._distribution(baseline, simulated),
            conflict_heatmap=self.conflict_heatmap(simulated),
        )

    # ---------------------------------------------------------------
    # Timeline
    # ---------------------------------------------------------------

    def timeline(self, state: SystemState) -> TimelineData:
        in_conflict = {item for c in state.conflicts for item in c.items}
        events = sorted(state.own_events, key=lambda e: (e.start_time, e.id))
        return TimelineData(
            events=[
                TimelineEvent(
                    id=e.id,
                    title=e.title,
                    start=e.start_time,
                    end=e.end_time,
                    category=e.category.value,
                    priority=e.priority.value,
                    is_conflict=e.id in in_conflict,
                )
                for e in events
            ],
            free_slots=self.free_slots(state, events),
        )

    def free_slots(self, state: SystemState, events: list[CalendarEvent]) -> list[FreeSlot]:
        """Gaps of at least ``min_free_slot_minutes`` inside the day window.

        The schedule day is the day of the earliest event, or of the
        state's timestamp when there are no events.
        """
        cfg = self._config
        anchor = events[0].start_time if events else state.timestamp
        midnight = datetime.combine(anchor.date(), time(0), tzinfo=anchor.tzinfo)
        window_start = midnight + timedelta(hours=cfg.day_start_hour)
        window_end = midnight + timedelta(hours=cfg.day_end_hour)

        slots: list[FreeSlot] = []
        cursor = window_start
        for event in events:
            if event.start_time >= window_end:
                break
            if event.start_time > cursor:
                self._add_slot(slots, cursor, event.start_time)
            cursor = max(cursor, event.end_time)
        if cursor < window_end:
            self._add_slot(slots, cursor, window_end)
        return slots

    def _add_slot(self, slots: list[FreeSlot], start: datetime, end: datetime) -> None:
        minutes = (end - start).total_seconds() / 60.0
        if minutes >= self._config.min_free_slot_minutes:
            slots.append(FreeSlot(start=start, end=end, duration=minutes))

    # ---------------------------------------------------------------
    # Bars, distribution, heatmap
    # ---------------------------------------------------------------

    @staticmethod
    def _metric_row(state: SystemState) -> list[float]:
        m = state.metrics
        return [
            m.productivity_score,
            m.work_life_balance,
            100.0 - m.stress_level * 10.0,
            m.completion_rate,
            m.utilization_rate,
        ]

    @staticmethod
    def _distribution(baseline: SystemState, simulated: SystemState) -> CategoryDistribution:
        before = baseline.time_distribution.by_category
        after = simulated.time_distribution.by_category
        categories = list(before)
        categories.extend(c for c in after if c not in before)
        return CategoryDistribution(
            categories=[c.value for c in categories],
            before=[before.get(c, 0.0) for c in categories],
            after=[after.get(c, 0.0) for c in categories],
        )

    @staticmethod
    def conflict_heatmap(state: SystemState) -> ConflictHeatmap:
        """Conflict participation counts by weekday (Mon..Sun) x start hour."""
        intensity = [[0] * 24 for _ in WEEKDAYS]
        for conflict in state.conflicts:
            for item_id in conflict.items:
                event = state.find_event(item_id)
                if event is not None:
                    intensity[event.start_time.weekday()][event.start_time.hour] += 1
        return ConflictHeatmap(days=list(WEEKDAYS), hours=list(range(24)), intensity=intensity)
