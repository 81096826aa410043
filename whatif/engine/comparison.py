"""Multi-criteria comparison of simulated scenarios.

Five fixed dimensions, each read from the scenario's own ScenarioScore:

    efficiency        0.30  score.efficiency
    balance           0.20  score.balance
    feasibility       0.20  score.feasibility
    stress_management 0.15  score.sustainability
    goal_achievement  0.15  score.goal_alignment

Ties (per dimension and overall) go to the earliest scenario in the
input order.
"""

from __future__ import annotations

from collections.abc import Sequence

from whatif.engine.config import SimulationConfig
from whatif.engine.errors import ComparisonPreconditionError
from whatif.models.results import (
    BreakEvenPoint,
    ComparisonDimension,
    CriticalFactor,
    DecisionMatrix,
    RiskTolerance,
    ScenarioComparison,
    SensitivityAnalysis,
)
from whatif.models.scenario import WhatIfScenario

# (dimension name, weight, ScenarioScore field)
DIMENSIONS: list[tuple[str, float, str]] = [
    ("efficiency", 0.3, "efficiency"),
    ("balance", 0.2, "balance"),
    ("feasibility", 0.2, "feasibility"),
    ("stress_management", 0.15, "sustainability"),
    ("goal_achievement", 0.15, "goal_alignment"),
]

COMPLETION_RATE_THRESHOLD = 70.0
STRESS_THRESHOLD = 6.0
MAX_ACCEPTABLE_RISK = 7.0


def _first_max(values: Sequence[float]) -> int:
    best = 0
    for i, value in enumerate(values):
        if value > values[best]:
            best = i
    return best


class ComparisonEngine:
    """Ranks two or more already-simulated scenarios."""

    def __init__(self, config: SimulationConfig | None = None) -> None:
        self._config = config or SimulationConfig()

    def compare(self, scenarios: Sequence[WhatIfScenario]) -> ScenarioComparison:
        """Compare scenarios across the five dimensions.

        Raises:
            ComparisonPreconditionError: Fewer than two scenarios, or any
                scenario that has not been simulated.
        """
        if len(scenarios) < 2:
            msg = f"Need at least 2 scenarios to compare, got {len(scenarios)}"
            raise ComparisonPreconditionError(msg)
        unsimulated = [s.id for s in scenarios if not s.is_simulated or s.simulated_state is None]
        if unsimulated:
            msg = f"Scenarios must be simulated before comparison: {unsimulated}"
            raise ComparisonPreconditionError(msg)

        matrix_rows = [
            [float(getattr(s.score, field)) for _, _, field in DIMENSIONS]
            for s in scenarios
        ]
        weights = [weight for _, weight, _ in DIMENSIONS]

        dimensions: list[ComparisonDimension] = []
        for col, (name, weight, _) in enumerate(DIMENSIONS):
            column = [row[col] for row in matrix_rows]
            dimensions.append(ComparisonDimension(
                name=name,
                weight=weight,
                scores={s.id: column[i] for i, s in enumerate(scenarios)},
                winner=scenarios[_first_max(column)].id,
            ))

        weighted = [sum(v * w for v, w in zip(row, weights)) for row in matrix_rows]
        winner = scenarios[_first_max(weighted)]
        order = sorted(range(len(scenarios)), key=lambda i: -weighted[i])

        matrix = DecisionMatrix(
            criteria=[name for name, _, _ in DIMENSIONS],
            alternatives=[s.name for s in scenarios],
            scores=matrix_rows,
            weights=weights,
            weighted_scores=weighted,
            ranking=[scenarios[i].name for i in order],
        )

        return ScenarioComparison(
            scenarios=list(scenarios),
            dimensions=dimensions,
            winner=winner,
            decision_matrix=matrix,
            sensitivity_analysis=self.sensitivity(winner),
        )

    def sensitivity(self, scenario: WhatIfScenario) -> SensitivityAnalysis:
        """Threshold checks on one simulated scenario."""
        state = scenario.simulated_state
        if state is None:
            msg = f"Scenario {scenario.id} has no simulated state"
            raise ComparisonPreconditionError(msg)
        metrics = state.metrics

        factors = [
            CriticalFactor(
                factor="completion_rate",
                impact=8,
                threshold=COMPLETION_RATE_THRESHOLD,
                current_value=metrics.completion_rate,
                within_threshold=metrics.completion_rate >= COMPLETION_RATE_THRESHOLD,
                recommendation=f"Keep the completion rate at or above {COMPLETION_RATE_THRESHOLD:g}%",
            ),
            CriticalFactor(
                factor="stress_level",
                impact=7,
                threshold=STRESS_THRESHOLD,
                current_value=metrics.stress_level,
                within_threshold=metrics.stress_level <= STRESS_THRESHOLD,
                recommendation=f"Keep stress at or below {STRESS_THRESHOLD:g}/10",
            ),
        ]

        limit = self._config.max_daily_hours
        break_even = BreakEvenPoint(
            variable="total_scheduled_hours",
            current_value=metrics.total_scheduled_hours,
            break_even_value=limit,
            margin=limit - metrics.total_scheduled_hours,
        )

        current_risk = max((r.score for r in state.risks), default=0.0)
        tolerance = RiskTolerance(
            acceptable=current_risk <= MAX_ACCEPTABLE_RISK,
            max_risk=MAX_ACCEPTABLE_RISK,
            current_risk=current_risk,
            buffer=MAX_ACCEPTABLE_RISK - current_risk,
        )

        return SensitivityAnalysis(
            critical_factors=factors,
            break_even_points=[break_even],
            risk_tolerance=tolerance,
        )
