"""Monte Carlo perturbation of a scenario's baseline.

Each trial stretches or shrinks every baseline event's duration by a
factor drawn uniformly from ``[1 - p, 1 + p]`` (``p`` defaults to 0.2),
runs the full simulation pass on the perturbed baseline, and keeps the
resulting metrics. All factors are drawn up front from one injected
``numpy.random.Generator`` so results do not depend on trial scheduling.

Trials are independent: each reads the shared baseline and works on its
own clone. They run on worker threads in chunks of
``monte_carlo_concurrency``; cancellation is checked between chunks.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

import numpy as np

from whatif.engine.config import SimulationConfig
from whatif.engine.errors import SimulationCancelledError
from whatif.models.results import MetricSpread, MonteCarloSummary
from whatif.models.state import SystemMetrics, SystemState

logger = logging.getLogger(__name__)

# Metrics that count things; averaged values are rounded back to ints.
COUNT_METRICS = frozenset({"total_tasks", "completed_tasks", "pending_tasks", "overdue_tasks"})

TrialFn = Callable[[SystemState], SystemMetrics]


class MonteCarloSimulator:
    """Runs perturbed trials and aggregates their metrics."""

    def __init__(self, config: SimulationConfig | None = None) -> None:
        self._config = config or SimulationConfig()

    def draw_factors(
        self,
        rng: np.random.Generator,
        iterations: int,
        event_count: int,
    ) -> np.ndarray:
        """Duration factors, shape ``(iterations, event_count)``."""
        p = self._config.monte_carlo_perturbation
        return rng.uniform(1.0 - p, 1.0 + p, size=(iterations, event_count))

    @staticmethod
    def perturb(baseline: SystemState, factors: np.ndarray) -> SystemState:
        """Copy of ``baseline`` with each event's duration scaled by its factor."""
        state = baseline.model_copy(deep=True)
        state.events = [
            event.model_copy(update={
                "end_time": event.start_time + event.duration * float(factor),
            })
            for event, factor in zip(state.events, factors)
        ]
        return state

    async def run_trials(
        self,
        baseline: SystemState,
        trial: TrialFn,
        *,
        rng: np.random.Generator,
        iterations: int | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> list[SystemMetrics]:
        """Run ``iterations`` trials of ``trial`` on perturbed baselines.

        Raises:
            SimulationCancelledError: ``cancel_event`` was set between chunks.
        """
        n = iterations or self._config.monte_carlo_iterations
        factors = self.draw_factors(rng, n, len(baseline.events))
        chunk = self._config.monte_carlo_concurrency

        results: list[SystemMetrics] = []
        for offset in range(0, n, chunk):
            if cancel_event is not None and cancel_event.is_set():
                msg = f"Monte Carlo cancelled after {len(results)} of {n} trials"
                raise SimulationCancelledError(msg)
            batch = factors[offset:offset + chunk]
            results.extend(await asyncio.gather(*(
                asyncio.to_thread(trial, self.perturb(baseline, row))
                for row in batch
            )))
        logger.debug("Completed %d Monte Carlo trials", len(results))
        return results

    # ---------------------------------------------------------------
    # Aggregation
    # ---------------------------------------------------------------

    @staticmethod
    def _matrix(trials: list[SystemMetrics]) -> tuple[list[str], np.ndarray]:
        names = list(SystemMetrics.model_fields)
        values = np.array(
            [[float(getattr(m, name)) for name in names] for m in trials],
            dtype=float,
        )
        return names, values

    def aggregate(self, trials: list[SystemMetrics]) -> SystemMetrics:
        """Average every metric across trials."""
        if not trials:
            msg = "Cannot aggregate zero Monte Carlo trials"
            raise ValueError(msg)
        names, values = self._matrix(trials)
        means = values.mean(axis=0)
        averaged: dict[str, float | int] = {}
        for name, mean in zip(names, means):
            averaged[name] = int(round(mean)) if name in COUNT_METRICS else float(mean)
        return SystemMetrics(**averaged)

    def summarize(self, trials: list[SystemMetrics], seed: int | None) -> MonteCarloSummary:
        names, values = self._matrix(trials)
        p5, p95 = np.percentile(values, [5, 95], axis=0)
        spreads = {
            name: MetricSpread(
                mean=float(values[:, i].mean()),
                std=float(values[:, i].std()),
                minimum=float(values[:, i].min()),
                maximum=float(values[:, i].max()),
                p5=float(p5[i]),
                p95=float(p95[i]),
            )
            for i, name in enumerate(names)
        }
        return MonteCarloSummary(
            iterations=len(trials),
            seed=seed,
            perturbation=self._config.monte_carlo_perturbation,
            spreads=spreads,
        )
