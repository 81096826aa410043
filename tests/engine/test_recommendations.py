"""Tests for RecommendationEngine rules and ordering."""

from whatif.engine.recommendations import RecommendationEngine
from whatif.models.changes import ChangeTarget, ChangeType, RemoveAction, ScenarioChange
from whatif.models.scenario import (
    GoalImpact,
    ImpactAnalysis,
    ProductivityImpact,
    RecommendationPriority,
    RecommendationType,
)
from whatif.models.state import SystemMetrics, SystemState


class TestRecommendationEngine:
    def test_calm_outcome_has_no_recommendations(self) -> None:
        assert RecommendationEngine().recommend(SystemState(), ImpactAnalysis()) == []

    def test_remaining_conflicts_warned(self, standup_state, engine) -> None:
        derived = engine.derive_state(standup_state)
        (rec,) = RecommendationEngine().recommend(derived, ImpactAnalysis())
        assert rec.id == "resolve_conflicts"
        assert rec.type == RecommendationType.WARNING
        assert rec.dependencies == ["conflict-design-review-standup"]

    def test_stress_and_productivity_drop(self) -> None:
        state = SystemState(metrics=SystemMetrics(stress_level=8))
        impact = ImpactAnalysis(productivity_impact=ProductivityImpact(change_percent=-25))
        ids = [r.id for r in RecommendationEngine().recommend(state, impact)]
        assert ids == ["reduce_stress", "improve_productivity"]

    def test_sorted_high_before_low(self) -> None:
        suggestion = ScenarioChange(
            id="s1", type=ChangeType.REMOVE, target=ChangeTarget.EVENT,
            action=RemoveAction(item_id="e1"), description="Drop e1",
        )
        impact = ImpactAnalysis(
            productivity_impact=ProductivityImpact(change_percent=-50),
            goal_impact=GoalImpact(deadline_risk=True),
        )
        recs = RecommendationEngine().recommend(SystemState(), impact, [suggestion])
        assert [r.id for r in recs] == [
            "deadline_management", "improve_productivity", "suggestion-s1",
        ]
        assert [r.priority for r in recs] == [
            RecommendationPriority.HIGH, RecommendationPriority.MEDIUM, RecommendationPriority.LOW,
        ]
        assert recs[-1].suggested_action == suggestion
        assert recs[-1].description == "Drop e1"
