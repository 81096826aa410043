"""Shared types, enums, and base models used across the simulator's domain models."""

from datetime import datetime, timezone
from enum import StrEnum
from typing import Annotated

from pydantic import AwareDatetime, BaseModel, Field
from uuid_extensions import uuid7


def utc_now() -> datetime:
    """Return the current UTC timestamp (timezone-aware)."""
    return datetime.now(tz=timezone.utc)


def new_id(prefix: str) -> str:
    """Generate a prefixed, time-sortable string identifier."""
    return f"{prefix}_{uuid7().hex}"


# --- Reusable annotated types ---

UTCTimestamp = Annotated[
    AwareDatetime, Field(description="UTC timezone-aware timestamp.")
]
ItemId = Annotated[str, Field(min_length=1, description="Event, task or budget id.")]
# --- Shared enums ---
class EventCategory(StrEnum):
    """Calendar event categories."""

    WORK = "work"
    PERSONAL = "personal"
    MEETING = "meeting"
    BREAK = "break"
    EXERCISE = "exercise"
    MEAL = "meal"
    TRAVEL = "travel"
    LEARNING = "learning"
    HEALTH = "health"
    OTHER = "other"
class Priority(StrEnum):
    """Priority shared by events and tasks, ordered by ``PRIORITY_RANK``."""

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"
PRIORITY_RANK: dict[Priority, int] = {
    Priority.NONE: 0,
    Priority.LOW: 1,
    Priority.MEDIUM: 2,
    Priority.HIGH: 3,
    Priority.URGENT: 4,
}
class EventStatus(StrEnum):
    """Lifecycle status of a calendar event."""

    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    POSTPONED = "postponed"
class TaskStatus(StrEnum):
    """GTD-style task status."""

    INBOX = "inbox"
    PROCESSING = "processing"
    ACTIONABLE = "actionable"
    SCHEDULED = "scheduled"
    DELEGATED = "delegated"
    WAITING = "waiting"
    SOMEDAY = "someday"
    REFERENCE = "reference"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
class BudgetCategory(StrEnum):
    """Time-budget categories."""

    WORK = "work"
    MEETING = "meeting"
    BREAK = "break"
    LEARNING = "learning"
    PERSONAL = "personal"
    EXERCISE = "exercise"
    COMMUTE = "commute"
    OTHER = "other"
# Which budget an event's hours are charged against.
EVENT_BUDGET_CATEGORY: dict[EventCategory, BudgetCategory] = {
    EventCategory.WORK: BudgetCategory.WORK,
    EventCategory.MEETING: BudgetCategory.MEETING,
    EventCategory.BREAK: BudgetCategory.BREAK,
    EventCategory.MEAL: BudgetCategory.BREAK,
    EventCategory.LEARNING: BudgetCategory.LEARNING,
    EventCategory.PERSONAL: BudgetCategory.PERSONAL,
    EventCategory.HEALTH: BudgetCategory.PERSONAL,
    EventCategory.EXERCISE: BudgetCategory.EXERCISE,
    EventCategory.TRAVEL: BudgetCategory.COMMUTE,
    EventCategory.OTHER: BudgetCategory.OTHER,
}
# --- Base model ---
class WhatIfBase(BaseModel):
    """Base model with common configuration for all simulator Pydantic models."""

    model_config = {
        "populate_by_name": True,
        "ser_json_timedelta": "iso8601",
        "protected_namespaces": (),
    }
