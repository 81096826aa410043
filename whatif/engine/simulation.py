"""Simulation engine: runs a WhatIfScenario in one of four modes.

Run lifecycle (per scenario id, at most one run at a time):

    draft/simulated --run--> running --ok--> simulated
                                     --error--> unchanged (failed result)

Every stage works on clones. Results are assembled in locals and
committed onto the scenario in one step at the very end, so a failed
run leaves ``simulated_state``, ``impact``, ``score`` and ``status``
exactly as they were.

Modes:
    QUICK        adjacent-pair conflicts, fixed fragmentation estimate
    STANDARD     full derivation
    DEEP         STANDARD + suggestion provider + second convergence pass;
                 provider timeout degrades to the STANDARD result
    MONTE_CARLO  STANDARD repeated on perturbed baselines, metrics averaged
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any

import numpy as np
from pydantic import ValidationError

from whatif.agents.suggestions import HeuristicSuggestionProvider, SuggestionProvider
from whatif.engine.applier import ChangeApplier
from whatif.engine.cloner import StateCloner
from whatif.engine.config import SimulationConfig
from whatif.engine.conflicts import ConflictDetector
from whatif.engine.errors import (
    ChangeValidationError,
    ItemNotFoundError,
    ProviderTimeoutError,
    ScenarioStateError,
    WhatIfError,
)
from whatif.engine.impact import ImpactAnalyzer, change_impact, skipped_impact
from whatif.engine.metrics import MetricsCalculator
from whatif.engine.monte_carlo import MonteCarloSimulator
from whatif.engine.recommendations import RecommendationEngine
from whatif.engine.risks import RiskAssessor
from whatif.engine.scoring import ScoringEngine
from whatif.engine.visualization import VisualizationBuilder
from whatif.models.changes import ChangeImpact, ScenarioChange
from whatif.models.results import (
    LogLevel,
    MonteCarloSummary,
    SimulationLog,
    SimulationResult,
    VisualizationData,
)
from whatif.models.scenario import (
    DecisionRecommendation,
    ImpactAnalysis,
    ScenarioScore,
    ScenarioStatus,
    SimulationMode,
    WhatIfScenario,
)
from whatif.models.state import SystemMetrics, SystemState

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


# ---------------------------------------------------------------------------
# Internal result holders
# ---------------------------------------------------------------------------


class _LogTrail:
    """User-facing run log, mirrored to the module logger."""

    def __init__(self, scenario_id: str) -> None:
        self._scenario_id = scenario_id
        self.entries: list[SimulationLog] = []

    def _add(self, level: LogLevel, message: str, data: dict[str, Any] | None) -> None:
        self.entries.append(SimulationLog(level=level, message=message, data=data))
        logger.log(_LOG_LEVELS[level], "[%s] %s", self._scenario_id, message)

    def info(self, message: str, data: dict[str, Any] | None = None) -> None:
        self._add(LogLevel.INFO, message, data)

    def warning(self, message: str, data: dict[str, Any] | None = None) -> None:
        self._add(LogLevel.WARNING, message, data)

    def error(self, message: str, data: dict[str, Any] | None = None) -> None:
        self._add(LogLevel.ERROR, message, data)

    @property
    def warnings(self) -> list[str]:
        return [e.message for e in self.entries if e.level == LogLevel.WARNING]


@dataclass
class _Pass:
    """One application of a change list to a state."""

    state: SystemState
    impacts: list[ChangeImpact] = field(default_factory=list)


@dataclass
class _Outcome:
    """Everything a successful run commits, built before any commit."""

    state: SystemState
    mode: SimulationMode
    change_impacts: list[ChangeImpact]
    impact: ImpactAnalysis
    recommendations: list[DecisionRecommendation]
    score: ScenarioScore
    visualizations: VisualizationData
    suggested_changes: list[ScenarioChange] = field(default_factory=list)
    degraded: bool = False
    monte_carlo: MonteCarloSummary | None = None


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class SimulationEngine:
    """Runs scenarios; collaborators are injected, none are global."""

    def __init__(
        self,
        config: SimulationConfig | None = None,
        *,
        suggestion_provider: SuggestionProvider | None = None,
        cloner: StateCloner | None = None,
        seed: int | None = None,
    ) -> None:
        self._config = config or SimulationConfig()
        self._cloner = cloner or StateCloner()
        self._applier = ChangeApplier(self._cloner)
        self._detector = ConflictDetector()
        self._metrics = MetricsCalculator(self._config)
        self._risks = RiskAssessor(self._config)
        self._impact = ImpactAnalyzer(self._config)
        self._scoring = ScoringEngine(self._config, cloner=self._cloner)
        self._recommender = RecommendationEngine(self._config)
        self._visualizer = VisualizationBuilder(self._config)
        self._monte_carlo = MonteCarloSimulator(self._config)
        self._provider = suggestion_provider or HeuristicSuggestionProvider()
        self._seed = seed
        self._running: set[str] = set()

    @property
    def config(self) -> SimulationConfig:
        return self._config

    def is_running(self, scenario_id: str) -> bool:
        return scenario_id in self._running

    # ---------------------------------------------------------------
    # Derivation
    # ---------------------------------------------------------------

    def derive_state(self, state: SystemState, *, quick: bool = False) -> SystemState:
        """Clone ``state`` and recompute conflicts, metrics, distribution, risks."""
        derived = self._cloner.clone(state)
        self._derive(derived, quick=quick)
        return derived

    def _refresh(self, state: SystemState, *, quick: bool) -> None:
        """Conflicts and metrics only; enough for a per-change diff."""
        if quick:
            state.conflicts = self._detector.detect_quick(state)
        else:
            state.conflicts = self._detector.detect(state)
        state.metrics = self._metrics.compute(state, quick=quick)

    def _derive(self, state: SystemState, *, quick: bool) -> None:
        self._refresh(state, quick=quick)
        state.time_distribution = self._metrics.distribution(state)
        state.risks = self._risks.assess(state)

    # ---------------------------------------------------------------
    # Public entry point
    # ---------------------------------------------------------------

    async def run(
        self,
        scenario: WhatIfScenario,
        mode: SimulationMode = SimulationMode.STANDARD,
        *,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> SimulationResult:
        """Simulate ``scenario`` and commit the outcome onto it.

        Never raises for recoverable problems: validation, serialization,
        illegal status, concurrent runs and cancellation come back as a
        result with ``success=False`` and the scenario untouched.

        Args:
            scenario: Scenario to simulate; mutated only on success.
            mode: Simulation fidelity.
            seed: Monte Carlo seed; falls back to the engine's seed.
            rng: Monte Carlo generator; overrides ``seed`` when given.
            cancel_event: Monte Carlo cooperative cancellation flag.
        """
        started = time.perf_counter()
        trail = _LogTrail(scenario.id)
        trail.info(
            f"Starting {mode.value} simulation",
            {"changes": len(scenario.changes)},
        )

        if scenario.id in self._running:
            exc = ScenarioStateError(f"Scenario {scenario.id} is already being simulated")
            return self._failure(scenario, mode, trail, exc, started)

        self._running.add(scenario.id)
        try:
            outcome = await self._simulate(scenario, mode, trail, seed, rng, cancel_event)
        except (WhatIfError, ValidationError) as exc:
            return self._failure(scenario, mode, trail, exc, started)
        finally:
            self._running.discard(scenario.id)

        self._commit(scenario, outcome)
        trail.info(
            "Simulation completed",
            {
                "conflicts": len(outcome.state.conflicts),
                "overall": round(outcome.score.overall, 2),
                "grade": outcome.score.grade.value,
            },
        )
        return SimulationResult(
            scenario=scenario,
            mode=mode,
            success=True,
            logs=trail.entries,
            warnings=trail.warnings,
            execution_time=_elapsed_ms(started),
            visualizations=outcome.visualizations,
            suggested_changes=outcome.suggested_changes,
            degraded=outcome.degraded,
            monte_carlo=outcome.monte_carlo,
        )

    # ---------------------------------------------------------------
    # Pipeline
    # ---------------------------------------------------------------

    async def _simulate(
        self,
        scenario: WhatIfScenario,
        mode: SimulationMode,
        trail: _LogTrail,
        seed: int | None,
        rng: np.random.Generator | None,
        cancel_event: asyncio.Event | None,
    ) -> _Outcome:
        if not scenario.can_transition_to(ScenarioStatus.SIMULATED):
            msg = f"Scenario {scenario.id} is {scenario.status.value} and cannot be simulated"
            raise ScenarioStateError(msg)

        quick = mode == SimulationMode.QUICK
        baseline = self.derive_state(scenario.baseline_state, quick=quick)
        first = self._apply_changes(baseline, scenario.changes, quick=quick, trail=trail)
        state = first.state
        self._derive(state, quick=quick)

        suggestions: list[ScenarioChange] = []
        degraded = False
        summary: MonteCarloSummary | None = None

        if mode == SimulationMode.DEEP:
            suggestions, degraded = await self._consult_provider(scenario, state, trail)
            if suggestions:
                state = self._apply_suggestions(state, suggestions, trail)
                self._derive(state, quick=False)
        elif mode == SimulationMode.MONTE_CARLO:
            summary = await self._run_monte_carlo(
                scenario, baseline, state, trail, seed, rng, cancel_event,
            )

        impact = self._impact.analyze(baseline, state)
        return _Outcome(
            state=state,
            change_impacts=first.impacts,
            impact=impact,
            recommendations=self._recommender.recommend(state, impact, suggestions),
            mode=mode,
            score=self._scoring.score_states(baseline, state),
            visualizations=self._visualizer.build(baseline, state),
            suggested_changes=suggestions,
            degraded=degraded,
            monte_carlo=summary,
        )

    def _apply_changes(
        self,
        baseline: SystemState,
        changes: list[ScenarioChange],
        *,
        quick: bool,
        trail: _LogTrail | None,
    ) -> _Pass:
        """Apply ``changes`` in order, diffing each against its predecessor."""
        state = self._cloner.clone(baseline)
        self._refresh(state, quick=quick)
        result = _Pass(state=state)

        for change in changes:
            try:
                after = self._applier.apply_checked(state, change)
            except ItemNotFoundError as exc:
                if trail is not None:
                    trail.warning(
                        f"Skipped change {change.id}: {exc}",
                        {"change_id": change.id, "type": change.type.value},
                    )
                result.impacts.append(skipped_impact())
                continue
            self._refresh(after, quick=quick)
            result.impacts.append(change_impact(state, after, change))
            state = after

        result.state = state
        return result

    # ---------------------------------------------------------------
    # DEEP
    # ---------------------------------------------------------------

    async def _query_provider(
        self,
        scenario: WhatIfScenario,
        state: SystemState,
    ) -> list[ScenarioChange]:
        timeout = self._config.provider_timeout_seconds
        try:
            return await asyncio.wait_for(
                self._provider.suggest(scenario, self._cloner.clone(state)),
                timeout=timeout,
            )
        except TimeoutError as exc:
            msg = f"Suggestion provider exceeded {timeout:g}s"
            raise ProviderTimeoutError(msg) from exc

    async def _consult_provider(
        self,
        scenario: WhatIfScenario,
        state: SystemState,
        trail: _LogTrail,
    ) -> tuple[list[ScenarioChange], bool]:
        """Return ``(suggestions, degraded)``. Fails open on any provider error."""
        if not self._config.enable_ai_suggestions:
            trail.info("Suggestions disabled; DEEP run uses the standard pass only")
            return [], False
        try:
            suggestions = await self._query_provider(scenario, state)
        except ProviderTimeoutError as exc:
            trail.warning(f"{exc}; falling back to the standard result")
            return [], True
        except Exception as exc:  # noqa: BLE001
            trail.warning(f"Suggestion provider failed: {exc}", {"error": type(exc).__name__})
            return [], False
        trail.info(f"Provider suggested {len(suggestions)} change(s)")
        limit = self._config.suggestion_limit
        if limit is not None and len(suggestions) > limit:
            trail.info(
                f"Keeping the first {limit} suggestion(s)",
                {"suggestion_level": self._config.suggestion_level.value},
            )
            suggestions = suggestions[:limit]
        return list(suggestions), False

    def _apply_suggestions(
        self,
        state: SystemState,
        suggestions: list[ScenarioChange],
        trail: _LogTrail,
    ) -> SystemState:
        for change in suggestions:
            try:
                state = self._applier.apply_checked(state, change)
            except (ItemNotFoundError, ChangeValidationError) as exc:
                trail.warning(f"Ignored suggestion {change.id}: {exc}")
        return state

    # ---------------------------------------------------------------
    # MONTE_CARLO
    # ---------------------------------------------------------------

    async def _run_monte_carlo(
        self,
        scenario: WhatIfScenario,
        baseline: SystemState,
        state: SystemState,
        trail: _LogTrail,
        seed: int | None,
        rng: np.random.Generator | None,
        cancel_event: asyncio.Event | None,
    ) -> MonteCarloSummary:
        """Replace ``state.metrics`` by trial averages; return the spread summary."""
        if rng is None:
            for candidate in (seed, self._seed, self._config.monte_carlo_seed):
                if candidate is not None:
                    seed = candidate
                    break
            rng = np.random.default_rng(seed)
        else:
            seed = None

        changes = list(scenario.changes)

        def trial(perturbed: SystemState) -> SystemMetrics:
            trial_pass = self._apply_changes(perturbed, changes, quick=False, trail=None)
            return trial_pass.state.metrics

        trials = await self._monte_carlo.run_trials(
            baseline, trial, rng=rng, cancel_event=cancel_event,
        )
        state.metrics = self._monte_carlo.aggregate(trials)
        state.risks = self._risks.assess(state)
        trail.info(
            f"Aggregated {len(trials)} Monte Carlo trials",
            {"seed": seed, "perturbation": self._config.monte_carlo_perturbation},
        )
        return self._monte_carlo.summarize(trials, seed)

    # ---------------------------------------------------------------
    # Commit / failure
    # ---------------------------------------------------------------

    @staticmethod
    def _commit(scenario: WhatIfScenario, outcome: _Outcome) -> None:
        for change, impact in zip(scenario.changes, outcome.change_impacts):
            change.actual_impact = impact
        scenario.simulated_state = outcome.state
        scenario.simulation_mode = outcome.mode
        scenario.impact = outcome.impact
        scenario.recommendations = outcome.recommendations
        scenario.score = outcome.score
        scenario.status = ScenarioStatus.SIMULATED

    @staticmethod
    def _failure(
        scenario: WhatIfScenario,
        mode: SimulationMode,
        trail: _LogTrail,
        exc: Exception,
        started: float,
    ) -> SimulationResult:
        trail.error(f"Simulation failed: {exc}", {"error": type(exc).__name__})
        return SimulationResult(
            scenario=scenario,
            mode=mode,
            success=False,
            logs=trail.entries,
            warnings=trail.warnings,
            errors=[str(exc)],
            execution_time=_elapsed_ms(started),
        )


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000.0
