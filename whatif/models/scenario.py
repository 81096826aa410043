"""Scenario models: WhatIfScenario, ImpactAnalysis, ScenarioScore.

WhatIfScenario is the aggregate root. Status transitions:

    draft --run--> simulated --apply--> applied
    simulated --add_change--> draft
    draft/simulated/applied --archive--> archived (terminal)
"""

from enum import StrEnum

from pydantic import Field

from whatif.models.changes import ScenarioChange
from whatif.models.common import UTCTimestamp, WhatIfBase, new_id, utc_now
from whatif.models.state import SystemState


class SimulationMode(StrEnum):
    """Fidelity of a simulation run."""

    QUICK = "quick"
    STANDARD = "standard"
    DEEP = "deep"
    MONTE_CARLO = "monte_carlo"


class ScenarioStatus(StrEnum):
    DRAFT = "draft"
    SIMULATED = "simulated"
    APPLIED = "applied"
    ARCHIVED = "archived"


VALID_SCENARIO_TRANSITIONS: dict[ScenarioStatus, frozenset[ScenarioStatus]] = {
    ScenarioStatus.DRAFT: frozenset({
        ScenarioStatus.SIMULATED,
        ScenarioStatus.ARCHIVED,
    }),
    ScenarioStatus.SIMULATED: frozenset({
        ScenarioStatus.SIMULATED,
        ScenarioStatus.DRAFT,
        ScenarioStatus.APPLIED,
        ScenarioStatus.ARCHIVED,
    }),
    ScenarioStatus.APPLIED: frozenset({
        ScenarioStatus.ARCHIVED,
    }),
    ScenarioStatus.ARCHIVED: frozenset(),
}


# ---------------------------------------------------------------------------
# Impact analysis
# ---------------------------------------------------------------------------


class Recommendation(StrEnum):
    """Five-point recommendation scale."""

    STRONGLY_RECOMMEND = "strongly_recommend"
    RECOMMEND = "recommend"
    NEUTRAL = "neutral"
    NOT_RECOMMEND = "not_recommend"
    STRONGLY_AGAINST = "strongly_against"


class TimeImpact(WhatIfBase):
    saved_hours: float = 0.0
    added_hours: float = 0.0
    net_change: float = 0.0
    efficiency_gain: float = 0.0


class ConflictImpact(WhatIfBase):
    resolved_conflicts: int = 0
    new_conflicts: int = 0
    net_change: int = 0


class ProductivityImpact(WhatIfBase):
    old_score: float = 0.0
    new_score: float = 0.0
    change: float = 0.0
    change_percent: float = 0.0


class StressImpact(WhatIfBase):
    old_level: float = 0.0
    new_level: float = 0.0
    change: float = 0.0
    recommendation: str = ""


class GoalImpact(WhatIfBase):
    progress_change: float = 0.0
    deadline_risk: bool = False
    achievability: float = 0.0


class OverallAssessment(WhatIfBase):
    recommendation: Recommendation = Recommendation.NEUTRAL
    confidence: float = Field(default=0.0, ge=0.0, le=100.0)
    reasoning: str = ""
    impact_score: float = 0.0


class ImpactAnalysis(WhatIfBase):
    """Baseline-vs-simulated diff with a qualitative recommendation."""

    time_impact: TimeImpact = Field(default_factory=TimeImpact)
    conflict_impact: ConflictImpact = Field(default_factory=ConflictImpact)
    productivity_impact: ProductivityImpact = Field(default_factory=ProductivityImpact)
    stress_impact: StressImpact = Field(default_factory=StressImpact)
    goal_impact: GoalImpact = Field(default_factory=GoalImpact)
    overall_assessment: OverallAssessment = Field(default_factory=OverallAssessment)


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------


class RecommendationPriority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RecommendationType(StrEnum):
    ACTION = "action"
    WARNING = "warning"
    SUGGESTION = "suggestion"


class Difficulty(StrEnum):
    EASY = "easy"
    MODERATE = "moderate"
    HARD = "hard"


class DecisionRecommendation(WhatIfBase):
    """Actionable advice derived from a simulated scenario."""

    id: str = Field(default_factory=lambda: new_id("rec"))
    priority: RecommendationPriority
    type: RecommendationType
    title: str
    description: str
    suggested_action: ScenarioChange | None = None
    expected_benefit: str = ""
    difficulty: Difficulty = Difficulty.MODERATE
    time_required: int = Field(default=0, ge=0, description="Minutes.")
    dependencies: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Score
# ---------------------------------------------------------------------------


class Grade(StrEnum):
    """Overall scenario grade from A (best) to F (worst)."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"
    F = "F"


class ScenarioScore(WhatIfBase):
    """Five 0-100 sub-scores, their weighted overall, and a grade."""

    efficiency: float = Field(default=0.0, ge=0.0, le=100.0)
    balance: float = Field(default=0.0, ge=0.0, le=100.0)
    feasibility: float = Field(default=0.0, ge=0.0, le=100.0)
    sustainability: float = Field(default=0.0, ge=0.0, le=100.0)
    goal_alignment: float = Field(default=0.0, ge=0.0, le=100.0)
    overall: float = Field(default=0.0, ge=0.0, le=100.0)
    improvement: float = -50.0
    grade: Grade = Grade.F


# ---------------------------------------------------------------------------
# WhatIfScenario
# ---------------------------------------------------------------------------


class WhatIfScenario(WhatIfBase):
    """A named what-if experiment: baseline + changes + simulated outcome."""

    id: str = Field(default_factory=lambda: new_id("scenario"))
    name: str = Field(..., min_length=1, max_length=500)
    description: str = ""
    created_at: UTCTimestamp = Field(default_factory=utc_now)
    baseline_state: SystemState
    changes: list[ScenarioChange] = Field(default_factory=list)
    simulated_state: SystemState | None = None
    impact: ImpactAnalysis = Field(default_factory=ImpactAnalysis)
    recommendations: list[DecisionRecommendation] = Field(default_factory=list)
    score: ScenarioScore = Field(default_factory=ScenarioScore)
    simulation_mode: SimulationMode | None = None
    status: ScenarioStatus = ScenarioStatus.DRAFT
    applied_at: UTCTimestamp | None = None

    def can_transition_to(self, new_status: ScenarioStatus) -> bool:
        return new_status in VALID_SCENARIO_TRANSITIONS.get(self.status, frozenset())

    @property
    def is_simulated(self) -> bool:
        """True once at least one run has completed and not been invalidated."""
        return self.status in (ScenarioStatus.SIMULATED, ScenarioStatus.APPLIED)
