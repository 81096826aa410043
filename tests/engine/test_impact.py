"""Tests for ImpactAnalyzer and per-change impact."""

import pytest

from whatif.engine.impact import (
    ImpactAnalyzer,
    change_impact,
    recommendation_for,
    skipped_impact,
)
from whatif.models.changes import (
    ChangeTarget,
    ChangeType,
    EffectType,
    ImpactScope,
    RemoveAction,
    RescheduleAction,
    RiskLevel,
    ScenarioChange,
)
from whatif.models.scenario import (
    ConflictImpact,
    ProductivityImpact,
    Recommendation,
    StressImpact,
    TimeImpact,
)
from whatif.models.state import SystemMetrics, SystemState


def _state(**metrics) -> SystemState:
    return SystemState(metrics=SystemMetrics(**metrics))


class TestRecommendationBuckets:
    @pytest.mark.parametrize(
        ("score", "expected"),
        [
            (95, Recommendation.STRONGLY_RECOMMEND),
            (80, Recommendation.RECOMMEND),
            (61, Recommendation.RECOMMEND),
            (50, Recommendation.NEUTRAL),
            (40, Recommendation.NOT_RECOMMEND),
            (20, Recommendation.STRONGLY_AGAINST),
            (0, Recommendation.STRONGLY_AGAINST),
        ],
    )
    def test_thresholds(self, score, expected) -> None:
        assert recommendation_for(score) == expected


class TestImpactScore:
    def test_neutral_is_fifty(self) -> None:
        score = ImpactAnalyzer.impact_score(
            TimeImpact(), ConflictImpact(), ProductivityImpact(), StressImpact(),
        )
        assert score == 50

    def test_components(self) -> None:
        score = ImpactAnalyzer.impact_score(
            TimeImpact(saved_hours=1),
            ConflictImpact(resolved_conflicts=1),
            ProductivityImpact(change_percent=4),
            StressImpact(change=-0.5),
        )
        assert score == pytest.approx(50 + 5 + 10 + 4 + 2.5)

    def test_clamped(self) -> None:
        high = ImpactAnalyzer.impact_score(
            TimeImpact(saved_hours=20), ConflictImpact(), ProductivityImpact(), StressImpact(),
        )
        low = ImpactAnalyzer.impact_score(
            TimeImpact(), ConflictImpact(new_conflicts=10), ProductivityImpact(), StressImpact(),
        )
        assert (high, low) == (100, 0)


class TestImpactAnalyzer:
    def test_identical_states_are_neutral(self) -> None:
        state = _state(total_scheduled_hours=5, productivity_score=40, stress_level=2)
        analysis = ImpactAnalyzer().analyze(state, state)
        assert analysis.time_impact.net_change == 0
        assert analysis.productivity_impact.change_percent == 0
        assert analysis.overall_assessment.impact_score == 50
        assert analysis.overall_assessment.recommendation == Recommendation.NEUTRAL
        assert analysis.overall_assessment.confidence == 75

    def test_saved_hours_and_stress_advice(self) -> None:
        before = _state(total_scheduled_hours=10, productivity_score=40, stress_level=8)
        after = _state(total_scheduled_hours=8, productivity_score=40, stress_level=6)
        analysis = ImpactAnalyzer().analyze(before, after)
        assert analysis.time_impact.saved_hours == 2
        assert analysis.time_impact.added_hours == 0
        assert analysis.stress_impact.change == -2
        assert analysis.stress_impact.recommendation == "Stress is moderate"

    def test_zero_productivity_baseline_counts_as_full_gain(self) -> None:
        analysis = ImpactAnalyzer().analyze(
            _state(productivity_score=0), _state(productivity_score=30),
        )
        assert analysis.productivity_impact.change_percent == 100
        assert analysis.time_impact.efficiency_gain == 100

    def test_achievability_without_tasks(self) -> None:
        analysis = ImpactAnalyzer().analyze(_state(), _state())
        assert analysis.goal_impact.achievability == 100

    def test_achievability_and_deadline_risk(self) -> None:
        analysis = ImpactAnalyzer().analyze(
            _state(total_tasks=4, overdue_tasks=0),
            _state(total_tasks=4, overdue_tasks=1),
        )
        assert analysis.goal_impact.achievability == 75
        assert analysis.goal_impact.deadline_risk

    def test_conflicts_resolved(self, standup_state, engine) -> None:
        baseline = engine.derive_state(standup_state)
        resolved = engine.derive_state(standup_state.model_copy(
            update={"events": standup_state.events[1:]},
        ))
        analysis = ImpactAnalyzer().analyze(baseline, resolved)
        assert analysis.conflict_impact.resolved_conflicts == 1
        assert analysis.conflict_impact.net_change == -1


class TestChangeImpact:
    def test_remove_frees_time(self, standup_state, engine) -> None:
        change = ScenarioChange(
            type=ChangeType.REMOVE, target=ChangeTarget.EVENT,
            action=RemoveAction(item_id="standup"),
        )
        before = engine.derive_state(standup_state)
        after = engine.derive_state(standup_state.model_copy(
            update={"events": standup_state.events[1:]},
        ))
        impact = change_impact(before, after, change)
        assert impact.applied
        assert impact.direct_effects[0].type == EffectType.POSITIVE
        assert impact.direct_effects[0].magnitude == 5
        assert impact.cascade_effects[0].description == "Removes conflicts"
        assert impact.scope == ImpactScope.MODERATE
        assert impact.risk_level == RiskLevel.LOW

    def test_no_op_has_no_effects(self, standup_state, engine, day) -> None:
        change = ScenarioChange(
            type=ChangeType.RESCHEDULE, target=ChangeTarget.EVENT,
            action=RescheduleAction(item_id="standup", new_time=day),
        )
        state = engine.derive_state(standup_state)
        impact = change_impact(state, state, change)
        assert impact.direct_effects == []
        assert impact.cascade_effects == []
        assert impact.scope == ImpactScope.MINIMAL
        assert impact.impact_score == 0

    def test_skipped(self) -> None:
        impact = skipped_impact()
        assert not impact.applied
        assert impact.direct_effects == []
