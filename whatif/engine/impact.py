"""Impact analysis: baseline vs simulated, whole-scenario and per change.

``ImpactAnalyzer.analyze`` diffs two fully derived states into an
ImpactAnalysis with a five-bucket recommendation. ``change_impact``
is the cheap per-change diff the engine records on each
``ScenarioChange.actual_impact``.
"""

from __future__ import annotations

from whatif.engine.config import SimulationConfig
from whatif.models.changes import (
    ChangeImpact,
    ChangeType,
    Effect,
    EffectType,
    ImpactScope,
    RiskLevel,
    ScenarioChange,
)
from whatif.models.scenario import (
    ConflictImpact,
    GoalImpact,
    ImpactAnalysis,
    OverallAssessment,
    ProductivityImpact,
    Recommendation,
    StressImpact,
    TimeImpact,
)
from whatif.models.state import SystemState


def _percent_change(old: float, new: float) -> float:
    """Relative change in percent; a zero baseline counts as +100% unless unchanged."""
    if old == 0:
        return 0.0 if new == 0 else 100.0
    return (new - old) / old * 100.0


def recommendation_for(score: float) -> Recommendation:
    """Five-bucket threshold of an impact score."""
    if score > 80:
        return Recommendation.STRONGLY_RECOMMEND
    if score > 60:
        return Recommendation.RECOMMEND
    if score > 40:
        return Recommendation.NEUTRAL
    if score > 20:
        return Recommendation.NOT_RECOMMEND
    return Recommendation.STRONGLY_AGAINST


class ImpactAnalyzer:
    """Turns a (baseline, simulated) pair into an ImpactAnalysis."""

    def __init__(self, config: SimulationConfig | None = None) -> None:
        self._config = config or SimulationConfig()

    def analyze(self, baseline: SystemState, simulated: SystemState) -> ImpactAnalysis:
        before, after = baseline.metrics, simulated.metrics

        hours_delta = after.total_scheduled_hours - before.total_scheduled_hours
        productivity_percent = _percent_change(before.productivity_score, after.productivity_score)
        time_impact = TimeImpact(
            saved_hours=max(0.0, -hours_delta),
            added_hours=max(0.0, hours_delta),
            net_change=hours_delta,
            efficiency_gain=productivity_percent,
        )

        conflict_delta = len(simulated.conflicts) - len(baseline.conflicts)
        conflict_impact = ConflictImpact(
            resolved_conflicts=max(0, -conflict_delta),
            new_conflicts=max(0, conflict_delta),
            net_change=conflict_delta,
        )

        productivity_impact = ProductivityImpact(
            old_score=before.productivity_score,
            new_score=after.productivity_score,
            change=after.productivity_score - before.productivity_score,
            change_percent=productivity_percent,
        )

        stress_impact = StressImpact(
            old_level=before.stress_level,
            new_level=after.stress_level,
            change=after.stress_level - before.stress_level,
            recommendation=self._stress_advice(after.stress_level),
        )

        goal_impact = GoalImpact(
            progress_change=after.completion_rate - before.completion_rate,
            deadline_risk=after.overdue_tasks > before.overdue_tasks,
            achievability=(
                100.0 - after.overdue_tasks / after.total_tasks * 100.0
                if after.total_tasks
                else 100.0
            ),
        )

        score = self.impact_score(time_impact, conflict_impact, productivity_impact, stress_impact)
        overall = OverallAssessment(
            recommendation=recommendation_for(score),
            confidence=min(95.0, 50.0 + score / 2.0),
            reasoning=self._reasoning(score, time_impact, productivity_impact),
            impact_score=score,
        )

        return ImpactAnalysis(
            time_impact=time_impact,
            conflict_impact=conflict_impact,
            productivity_impact=productivity_impact,
            stress_impact=stress_impact,
            goal_impact=goal_impact,
            overall_assessment=overall,
        )

    @staticmethod
    def impact_score(
        time_impact: TimeImpact,
        conflict_impact: ConflictImpact,
        productivity_impact: ProductivityImpact,
        stress_impact: StressImpact,
    ) -> float:
        """Composite 0-100 score around a neutral 50."""
        score = 50.0
        score += time_impact.saved_hours * 5.0
        score -= time_impact.added_hours * 3.0
        score += conflict_impact.resolved_conflicts * 10.0
        score -= conflict_impact.new_conflicts * 15.0
        score += productivity_impact.change_percent
        score -= stress_impact.change * 5.0
        return max(0.0, min(100.0, score))

    def _stress_advice(self, level: float) -> str:
        if level > self._config.stress_risk_threshold:
            return "Stress is high: reduce load or add recovery time"
        if level > 5:
            return "Stress is moderate"
        return "Stress is low"

    @staticmethod
    def _reasoning(score: float, time_impact: TimeImpact, productivity: ProductivityImpact) -> str:
        if score > 80:
            return (
                f"Significant improvement: saves {time_impact.saved_hours:.1f}h, "
                f"productivity {productivity.change_percent:+.1f}%"
            )
        if score > 60:
            return "Moderate improvement: better use of time and higher productivity"
        if score > 40:
            return "Slight improvement: some metrics improve but the overall effect is limited"
        return "Reconsider: this plan is likely to have a negative effect"


# ---------------------------------------------------------------------------
# Per-change impact
# ---------------------------------------------------------------------------


def _scope(effect_count: int) -> ImpactScope:
    if effect_count > 5:
        return ImpactScope.CRITICAL
    if effect_count > 3:
        return ImpactScope.SIGNIFICANT
    if effect_count > 1:
        return ImpactScope.MODERATE
    return ImpactScope.MINIMAL


def _risk_level(negative_count: int) -> RiskLevel:
    if negative_count > 3:
        return RiskLevel.CRITICAL
    if negative_count > 2:
        return RiskLevel.HIGH
    if negative_count > 1:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def _magnitude(value: float) -> int:
    return max(1, min(10, round(value)))


def change_impact(before: SystemState, after: SystemState, change: ScenarioChange) -> ChangeImpact:
    """Diff the states immediately before and after a single change.

    Both states must have conflicts and metrics derived.
    """
    direct: list[Effect] = []
    cascade: list[Effect] = []

    if change.type == ChangeType.REMOVE:
        direct.append(Effect(
            type=EffectType.POSITIVE,
            category="time",
            description="Frees up time",
            magnitude=5,
            affected=change.item_ids,
        ))
    else:
        hours_delta = after.metrics.total_scheduled_hours - before.metrics.total_scheduled_hours
        if hours_delta:
            direct.append(Effect(
                type=EffectType.NEGATIVE if hours_delta > 0 else EffectType.POSITIVE,
                category="time",
                description=f"Scheduled time {hours_delta:+.1f}h",
                magnitude=_magnitude(abs(hours_delta) * 2),
                affected=change.item_ids,
            ))

    conflict_delta = len(after.conflicts) - len(before.conflicts)
    if conflict_delta:
        cascade.append(Effect(
            type=EffectType.NEGATIVE if conflict_delta > 0 else EffectType.POSITIVE,
            category="conflict",
            description="Adds conflicts" if conflict_delta > 0 else "Removes conflicts",
            magnitude=_magnitude(abs(conflict_delta) * 2),
            affected=[c.id for c in after.conflicts],
        ))

    effects = direct + cascade
    negatives = sum(1 for e in effects if e.type == EffectType.NEGATIVE)
    return ChangeImpact(
        applied=True,
        direct_effects=direct,
        cascade_effects=cascade,
        scope=_scope(len(effects)),
        impact_score=float(sum(e.magnitude for e in effects)),
        risk_level=_risk_level(negatives),
    )


def skipped_impact() -> ChangeImpact:
    """Zero impact for a change whose target item does not exist."""
    return ChangeImpact(applied=False)
