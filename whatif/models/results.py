"""Simulation output models: SimulationResult, visualizations, comparisons."""

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import Field

from whatif.models.changes import ScenarioChange
from whatif.models.common import UTCTimestamp, WhatIfBase, utc_now
from whatif.models.scenario import SimulationMode, WhatIfScenario


class LogLevel(StrEnum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class SimulationLog(WhatIfBase):
    """One entry of a run's user-facing log trail."""

    timestamp: UTCTimestamp = Field(default_factory=utc_now)
    level: LogLevel
    message: str
    data: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Visualization payloads (chart-ready)
# ---------------------------------------------------------------------------


class TimelineEvent(WhatIfBase):
    id: str
    title: str
    start: datetime
    end: datetime
    category: str
    priority: str
    is_conflict: bool = False


class FreeSlot(WhatIfBase):
    start: datetime
    end: datetime
    duration: float = Field(..., description="Minutes.")


class TimelineData(WhatIfBase):
    events: list[TimelineEvent] = Field(default_factory=list)
    free_slots: list[FreeSlot] = Field(default_factory=list)


class TimelineComparison(WhatIfBase):
    before: TimelineData = Field(default_factory=TimelineData)
    after: TimelineData = Field(default_factory=TimelineData)


class MetricBars(WhatIfBase):
    labels: list[str] = Field(default_factory=list)
    before: list[float] = Field(default_factory=list)
    after: list[float] = Field(default_factory=list)


class CategoryDistribution(WhatIfBase):
    categories: list[str] = Field(default_factory=list)
    before: list[float] = Field(default_factory=list)
    after: list[float] = Field(default_factory=list)


class ConflictHeatmap(WhatIfBase):
    days: list[str] = Field(default_factory=list)
    hours: list[int] = Field(default_factory=list)
    intensity: list[list[int]] = Field(default_factory=list)


class VisualizationData(WhatIfBase):
    timeline: TimelineComparison = Field(default_factory=TimelineComparison)
    metrics: MetricBars = Field(default_factory=MetricBars)
    distribution: CategoryDistribution = Field(default_factory=CategoryDistribution)
    conflict_heatmap: ConflictHeatmap = Field(default_factory=ConflictHeatmap)


# ---------------------------------------------------------------------------
# Monte Carlo summary
# ---------------------------------------------------------------------------


class MetricSpread(WhatIfBase):
    """Distribution of one metric across Monte Carlo trials."""

    mean: float
    std: float
    minimum: float
    maximum: float
    p5: float
    p95: float


class MonteCarloSummary(WhatIfBase):
    iterations: int = Field(..., ge=1)
    seed: int | None = None
    perturbation: float
    spreads: dict[str, MetricSpread] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# SimulationResult
# ---------------------------------------------------------------------------


class SimulationResult(WhatIfBase):
    """Outcome of one ``SimulationEngine.run`` call."""

    scenario: WhatIfScenario
    mode: SimulationMode
    success: bool
    logs: list[SimulationLog] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] | None = None
    execution_time: float = Field(default=0.0, ge=0.0, description="Milliseconds.")
    visualizations: VisualizationData = Field(default_factory=VisualizationData)
    suggested_changes: list[ScenarioChange] = Field(default_factory=list)
    degraded: bool = False
    monte_carlo: MonteCarloSummary | None = None


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------


class ComparisonDimension(WhatIfBase):
    name: str
    weight: float = Field(..., ge=0.0, le=1.0)
    scores: dict[str, float] = Field(default_factory=dict)
    winner: str = ""


class DecisionMatrix(WhatIfBase):
    """Criteria x alternatives audit table."""

    criteria: list[str]
    alternatives: list[str]
    scores: list[list[float]]
    weights: list[float]
    weighted_scores: list[float]
    ranking: list[str]


class CriticalFactor(WhatIfBase):
    factor: str
    impact: float
    threshold: float
    current_value: float
    within_threshold: bool
    recommendation: str


class BreakEvenPoint(WhatIfBase):
    variable: str
    current_value: float
    break_even_value: float
    margin: float


class RiskTolerance(WhatIfBase):
    acceptable: bool
    max_risk: float
    current_risk: float
    buffer: float


class SensitivityAnalysis(WhatIfBase):
    critical_factors: list[CriticalFactor] = Field(default_factory=list)
    break_even_points: list[BreakEvenPoint] = Field(default_factory=list)
    risk_tolerance: RiskTolerance


class ScenarioComparison(WhatIfBase):
    """Multi-criteria ranking of already-simulated scenarios."""

    scenarios: list[WhatIfScenario]
    dimensions: list[ComparisonDimension]
    winner: WhatIfScenario
    decision_matrix: DecisionMatrix
    sensitivity_analysis: SensitivityAnalysis
