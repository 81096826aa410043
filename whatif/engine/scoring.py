"""Scenario scoring: five 0-100 sub-scores, weighted overall, grade.

Sub-scores:
    efficiency      50 + productivity delta
    balance         50 + work-life-balance delta
    feasibility     100 - 10*conflicts - 5*risks
    sustainability  100 - 10*stress
    goal_alignment  completion rate (absolute)

``improvement`` is measured against a fixed neutral 50, not against a
score of the baseline itself.
"""

from __future__ import annotations

from whatif.engine.cloner import StateCloner
from whatif.engine.config import SimulationConfig
from whatif.engine.conflicts import ConflictDetector
from whatif.engine.errors import ScenarioStateError
from whatif.engine.metrics import MetricsCalculator
from whatif.models.scenario import Grade, ScenarioScore, SimulationMode, WhatIfScenario
from whatif.models.state import SystemState

SCORE_WEIGHTS: dict[str, float] = {
    "efficiency": 0.3,
    "balance": 0.2,
    "feasibility": 0.2,
    "sustainability": 0.15,
    "goal_alignment": 0.15,
}

NEUTRAL_SCORE = 50.0

# (lower bound inclusive, grade), checked top-down.
GRADE_THRESHOLDS: list[tuple[float, Grade]] = [
    (90.0, Grade.A),
    (80.0, Grade.B),
    (70.0, Grade.C),
    (60.0, Grade.D),
]


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, value))


def grade_for(overall: float) -> Grade:
    for threshold, grade in GRADE_THRESHOLDS:
        if overall >= threshold:
            return grade
    return Grade.F


class ScoringEngine:
    """Scores a simulated scenario."""

    def __init__(
        self,
        config: SimulationConfig | None = None,
        *,
        cloner: StateCloner | None = None,
    ) -> None:
        self._cloner = cloner or StateCloner()
        self._detector = ConflictDetector()
        self._metrics = MetricsCalculator(config)

    def score(self, scenario: WhatIfScenario) -> ScenarioScore:
        """Score ``scenario`` against a freshly derived baseline.

        The stored baseline is re-derived with the fidelity of the run
        that produced ``simulated_state``, so the result equals the
        score committed by that run.
        """
        if scenario.simulated_state is None:
            msg = f"Scenario {scenario.id} has not been simulated"
            raise ScenarioStateError(msg)
        quick = scenario.simulation_mode == SimulationMode.QUICK
        baseline = self.derive_baseline(scenario.baseline_state, quick=quick)
        return self.score_states(baseline, scenario.simulated_state)

    def derive_baseline(self, state: SystemState, *, quick: bool = False) -> SystemState:
        """Clone ``state`` with conflicts and metrics recomputed."""
        baseline = self._cloner.clone(state)
        if quick:
            baseline.conflicts = self._detector.detect_quick(baseline)
        else:
            baseline.conflicts = self._detector.detect(baseline)
        baseline.metrics = self._metrics.compute(baseline, quick=quick)
        return baseline

    def score_states(self, baseline: SystemState, simulated: SystemState) -> ScenarioScore:
        before, after = baseline.metrics, simulated.metrics
        subscores = {
            "efficiency": _clamp(
                NEUTRAL_SCORE + after.productivity_score - before.productivity_score
            ),
            "balance": _clamp(
                NEUTRAL_SCORE + after.work_life_balance - before.work_life_balance
            ),
            "feasibility": _clamp(
                100.0 - 10.0 * len(simulated.conflicts) - 5.0 * len(simulated.risks)
            ),
            "sustainability": _clamp(100.0 - 10.0 * after.stress_level),
            "goal_alignment": _clamp(after.completion_rate),
        }
        overall = _clamp(sum(subscores[name] * w for name, w in SCORE_WEIGHTS.items()))
        return ScenarioScore(
            **subscores,
            overall=overall,
            improvement=overall - NEUTRAL_SCORE,
            grade=grade_for(overall),
        )
