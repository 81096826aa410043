"""Rule-based decision recommendations for a simulated scenario."""

from __future__ import annotations

from collections.abc import Sequence

from whatif.engine.config import SimulationConfig
from whatif.models.changes import ScenarioChange
from whatif.models.scenario import (
    DecisionRecommendation,
    Difficulty,
    ImpactAnalysis,
    RecommendationPriority,
    RecommendationType,
)
from whatif.models.state import SystemState

_PRIORITY_ORDER = {
    RecommendationPriority.HIGH: 0,
    RecommendationPriority.MEDIUM: 1,
    RecommendationPriority.LOW: 2,
}

# Productivity drop (percent) that triggers a suggestion.
PRODUCTIVITY_DROP_PERCENT = -10.0


class RecommendationEngine:
    """Derives DecisionRecommendations from a simulated state and its impact."""

    def __init__(self, config: SimulationConfig | None = None) -> None:
        self._config = config or SimulationConfig()

    def recommend(
        self,
        simulated: SystemState,
        impact: ImpactAnalysis,
        suggestions: Sequence[ScenarioChange] = (),
    ) -> list[DecisionRecommendation]:
        """Return recommendations sorted high -> medium -> low (stable)."""
        recs: list[DecisionRecommendation] = []

        if simulated.conflicts:
            recs.append(DecisionRecommendation(
                id="resolve_conflicts",
                priority=RecommendationPriority.HIGH,
                type=RecommendationType.WARNING,
                title="Resolve time conflicts",
                description=f"{len(simulated.conflicts)} time conflict(s) remain in the schedule",
                expected_benefit="Avoid double-booking and keep the day executable",
                difficulty=Difficulty.MODERATE,
                time_required=30,
                dependencies=[c.id for c in simulated.conflicts],
            ))

        if simulated.metrics.stress_level > self._config.stress_risk_threshold:
            recs.append(DecisionRecommendation(
                id="reduce_stress",
                priority=RecommendationPriority.HIGH,
                type=RecommendationType.WARNING,
                title="Lower the stress level",
                description="Stress is too high; reduce workload or schedule more rest",
                expected_benefit="Protect health and sustain long-term productivity",
                difficulty=Difficulty.EASY,
                time_required=60,
            ))

        if impact.productivity_impact.change_percent < PRODUCTIVITY_DROP_PERCENT:
            recs.append(DecisionRecommendation(
                id="improve_productivity",
                priority=RecommendationPriority.MEDIUM,
                type=RecommendationType.SUGGESTION,
                title="Recover productivity",
                description="The simulation shows a productivity drop; rearrange tasks",
                expected_benefit="Win back focus time lost to this plan",
                difficulty=Difficulty.MODERATE,
                time_required=45,
            ))

        if impact.goal_impact.deadline_risk:
            recs.append(DecisionRecommendation(
                id="deadline_management",
                priority=RecommendationPriority.HIGH,
                type=RecommendationType.ACTION,
                title="Manage deadline risk",
                description="More tasks end up overdue under this plan; adjust now",
                expected_benefit="Deliver the key tasks on time",
                difficulty=Difficulty.HARD,
                time_required=90,
            ))

        for change in suggestions:
            recs.append(DecisionRecommendation(
                id=f"suggestion-{change.id}",
                priority=RecommendationPriority.LOW,
                type=RecommendationType.SUGGESTION,
                title=f"Suggested {change.type.value}",
                description=change.description or f"Suggested {change.type.value} of {change.item_ids}",
                suggested_action=change,
                expected_benefit=change.expected_impact,
                difficulty=Difficulty.EASY,
                time_required=5,
            ))

        return sorted(recs, key=lambda r: _PRIORITY_ORDER[r.priority])
