"""Scenario change models: ScenarioChange and its payload variants.

A change is a tagged union: ``type`` names the operation and ``action``
carries exactly one payload variant whose own ``type`` must match.
"""

from enum import StrEnum
from typing import Annotated, Any, Literal, Union

from pydantic import AwareDatetime, Field, model_validator

from whatif.models.common import ItemId, WhatIfBase, new_id
from whatif.models.schedule import AutomationType, CalendarEvent, Task, TimeBudget


class ChangeType(StrEnum):
    """Operation a change performs."""

    ADD = "add"
    REMOVE = "remove"
    MODIFY = "modify"
    RESCHEDULE = "reschedule"
    DELEGATE = "delegate"
    SPLIT = "split"
    MERGE = "merge"
    AUTOMATE = "automate"


class ChangeTarget(StrEnum):
    """What a change is aimed at."""

    EVENT = "event"
    TASK = "task"
    TIME_BUDGET = "time_budget"
    PRIORITY = "priority"
    DURATION = "duration"
    DEADLINE = "deadline"


# ---------------------------------------------------------------------------
# Payload variants (union type, discriminated by ``type``)
# ---------------------------------------------------------------------------

AddableItem = Annotated[
    Union[CalendarEvent, Task, TimeBudget],
    Field(discriminator="kind"),
]


class AddAction(WhatIfBase):
    """Add a new event, task or time budget."""

    type: Literal["add"] = "add"
    item: AddableItem
    suggested_time: AwareDatetime | None = None
    duration: int | None = Field(default=None, gt=0, description="Minutes.")


class RemoveAction(WhatIfBase):
    """Remove an item by id from whichever collection holds it."""

    type: Literal["remove"] = "remove"
    item_id: ItemId
    reason: str = ""


class ModifyAction(WhatIfBase):
    """Set a single named field on an item."""

    type: Literal["modify"] = "modify"
    item_id: ItemId
    field: str = Field(..., min_length=1)
    old_value: Any = None
    new_value: Any = None


class RescheduleAction(WhatIfBase):
    """Move an event to ``new_time`` keeping its duration."""

    type: Literal["reschedule"] = "reschedule"
    item_id: ItemId
    new_time: AwareDatetime
    old_time: AwareDatetime | None = None
    affected_items: list[str] = Field(default_factory=list)


class DelegateAction(WhatIfBase):
    """Hand an item to someone else."""

    type: Literal["delegate"] = "delegate"
    item_id: ItemId
    delegate_to: str = Field(..., min_length=1)
    notes: str = ""


class SplitPart(WhatIfBase):
    """One piece of a split item."""

    title: str = Field(..., min_length=1)
    duration: int = Field(..., gt=0, description="Minutes.")
    deadline: AwareDatetime | None = None


class SplitAction(WhatIfBase):
    """Replace one item by several parts."""

    type: Literal["split"] = "split"
    item_id: ItemId
    parts: list[SplitPart] = Field(default_factory=list)


class MergeAction(WhatIfBase):
    """Collapse several items of the same kind into one."""

    type: Literal["merge"] = "merge"
    item_ids: list[str] = Field(..., min_length=1)
    merged_title: str = Field(..., min_length=1)
    merged_duration: int = Field(..., gt=0, description="Minutes.")


class AutomateAction(WhatIfBase):
    """Attach a recurrence/template marker to an item."""

    type: Literal["automate"] = "automate"
    item_id: ItemId
    automation_type: AutomationType
    config: dict[str, Any] = Field(default_factory=dict)


ChangeAction = Annotated[
    Union[
        AddAction,
        RemoveAction,
        ModifyAction,
        RescheduleAction,
        DelegateAction,
        SplitAction,
        MergeAction,
        AutomateAction,
    ],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# Per-change impact (attached after simulation)
# ---------------------------------------------------------------------------


class EffectType(StrEnum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class ImpactScope(StrEnum):
    MINIMAL = "minimal"
    MODERATE = "moderate"
    SIGNIFICANT = "significant"
    CRITICAL = "critical"


class RiskLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Effect(WhatIfBase):
    """A single observed effect of a change."""

    type: EffectType
    category: str
    description: str
    magnitude: int = Field(..., ge=1, le=10)
    affected: list[str] = Field(default_factory=list)


class ChangeImpact(WhatIfBase):
    """Impact of one change, measured against the state just before it."""

    applied: bool = True
    direct_effects: list[Effect] = Field(default_factory=list)
    cascade_effects: list[Effect] = Field(default_factory=list)
    scope: ImpactScope = ImpactScope.MINIMAL
    impact_score: float = 0.0
    risk_level: RiskLevel = RiskLevel.LOW


# ---------------------------------------------------------------------------
# ScenarioChange
# ---------------------------------------------------------------------------


class ScenarioChange(WhatIfBase):
    """One hypothetical change in a what-if scenario."""

    id: str = Field(default_factory=lambda: new_id("change"))
    type: ChangeType
    target: ChangeTarget
    action: ChangeAction
    description: str = ""
    expected_impact: str = ""
    actual_impact: ChangeImpact | None = None

    @model_validator(mode="after")
    def _payload_matches_type(self) -> "ScenarioChange":
        if self.action.type != self.type:
            msg = (
                f"Change {self.id}: payload is {self.action.type!r} "
                f"but type is {self.type.value!r}"
            )
            raise ValueError(msg)
        return self

    @property
    def item_ids(self) -> list[str]:
        """Ids of the existing items this change refers to."""
        action = self.action
        if isinstance(action, AddAction):
            return []
        if isinstance(action, MergeAction):
            return list(action.item_ids)
        return [action.item_id]
