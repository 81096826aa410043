"""Conflict detection: time overlaps between own calendar events.

Intervals are half-open: ``[start1, end1)`` and ``[start2, end2)``
overlap iff ``start1 < end2 and start2 < end1``. Touching endpoints
(``end1 == start2``) never conflict.

Two algorithms:
1. ``detect``: every unordered pair, O(n^2), exact.
2. ``detect_quick``: sort by start, compare neighbours only. May miss
   overlaps when three or more events interleave; used by QUICK mode.
"""

from __future__ import annotations

import logging
from itertools import combinations

from whatif.models.common import PRIORITY_RANK, Priority
from whatif.models.schedule import CalendarEvent
from whatif.models.state import Conflict, ConflictType, Severity, SystemState

logger = logging.getLogger(__name__)

_SEVERITY_BY_PRIORITY: dict[Priority, Severity] = {
    Priority.URGENT: Severity.CRITICAL,
    Priority.HIGH: Severity.HIGH,
    Priority.MEDIUM: Severity.MEDIUM,
    Priority.LOW: Severity.LOW,
    Priority.NONE: Severity.LOW,
}


def overlaps(a: CalendarEvent, b: CalendarEvent) -> bool:
    """Half-open interval overlap test."""
    return a.start_time < b.end_time and b.start_time < a.end_time


def conflict_id(a_id: str, b_id: str) -> str:
    """Order-independent conflict identifier for a pair of items."""
    first, second = sorted((a_id, b_id))
    return f"conflict-{first}-{second}"


class ConflictDetector:
    """Finds time conflicts among the events of a SystemState."""

    def detect(self, state: SystemState) -> list[Conflict]:
        """Exact all-pairs detection.

        Each overlapping pair is reported once regardless of list order.
        """
        events = _chronological(state.own_events)
        conflicts = [
            self._build(a, b)
            for a, b in combinations(events, 2)
            if overlaps(a, b)
        ]
        logger.debug("Detected %d conflicts among %d events", len(conflicts), len(events))
        return conflicts

    def detect_quick(self, state: SystemState) -> list[Conflict]:
        """Adjacent-pair approximation after sorting by start time."""
        events = _chronological(state.own_events)
        return [
            self._build(a, b)
            for a, b in zip(events, events[1:])
            if overlaps(a, b)
        ]

    @staticmethod
    def _build(a: CalendarEvent, b: CalendarEvent) -> Conflict:
        # ``a`` starts no later than ``b``.
        higher, lower = (a, b) if PRIORITY_RANK[a.priority] >= PRIORITY_RANK[b.priority] else (b, a)
        if a.priority == b.priority:
            resolution = f"Merge '{a.title}' and '{b.title}' or postpone one of them"
        else:
            resolution = f"Postpone '{lower.title}' until after '{higher.title}'"
        return Conflict(
            id=conflict_id(a.id, b.id),
            type=ConflictType.TIME,
            severity=_SEVERITY_BY_PRIORITY[higher.priority],
            items=[a.id, b.id],
            description=f"'{a.title}' overlaps with '{b.title}'",
            suggested_resolution=resolution,
        )


def _chronological(events: list[CalendarEvent]) -> list[CalendarEvent]:
    """Sorted copy by (start, id); the input list is left untouched."""
    return sorted(events, key=lambda e: (e.start_time, e.id))
