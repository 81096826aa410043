"""Risk assessment: three independent rules over a derived state.

Each rule yields at most one Risk. Rules read ``state.metrics``, so the
state's metrics must already be recomputed.
"""

from __future__ import annotations

from whatif.engine.config import SimulationConfig
from whatif.models.state import Risk, RiskCategory, SystemState


class RiskAssessor:
    """Deadline, overload and health rules."""

    def __init__(self, config: SimulationConfig | None = None) -> None:
        self._config = config or SimulationConfig()

    def assess(self, state: SystemState) -> list[Risk]:
        risks: list[Risk] = []
        for rule in (self._deadline_risk, self._overload_risk, self._health_risk):
            risk = rule(state)
            if risk is not None:
                risks.append(risk)
        return risks

    # ---------------------------------------------------------------
    # Rules
    # ---------------------------------------------------------------

    @staticmethod
    def _deadline_risk(state: SystemState) -> Risk | None:
        overdue = [t for t in state.tasks if t.is_overdue(state.as_of)]
        if not overdue:
            return None
        return Risk(
            id="deadline_risk",
            category=RiskCategory.DEADLINE,
            probability=0.8,
            impact=8,
            description=f"{len(overdue)} task(s) are past their due date",
            mitigation="Reprioritise or renegotiate the overdue deadlines",
        )

    def _overload_risk(self, state: SystemState) -> Risk | None:
        hours = state.metrics.total_scheduled_hours
        if hours <= self._config.max_daily_hours:
            return None
        return Risk(
            id="overload_risk",
            category=RiskCategory.OVERLOAD,
            probability=0.9,
            impact=7,
            description=(
                f"{hours:.1f}h scheduled exceeds the "
                f"{self._config.max_daily_hours:g}h daily limit"
            ),
            mitigation="Delegate or drop lower-priority commitments",
        )

    def _health_risk(self, state: SystemState) -> Risk | None:
        stress = state.metrics.stress_level
        if stress <= self._config.stress_risk_threshold:
            return None
        return Risk(
            id="health_risk",
            category=RiskCategory.HEALTH,
            probability=0.7,
            impact=9,
            description=f"Stress level {stress:.1f}/10 is unsustainable",
            mitigation="Add breaks and reduce the task load",
        )
