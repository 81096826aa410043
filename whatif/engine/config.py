"""Simulation configuration.

Provides the thresholds, free-slot window, Monte Carlo parameters and
DEEP-mode limits used by the engine. Defaults match the
personal-productivity calendar the simulator was built for and can be
overridden per call site or from environment settings
(``whatif.config.settings``).
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field, model_validator

from whatif.models.common import WhatIfBase


class SuggestionLevel(StrEnum):
    """How many DEEP-mode suggestions a provider may propose per run."""

    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"


# None means unlimited.
SUGGESTION_LIMITS: dict[SuggestionLevel, int | None] = {
    SuggestionLevel.CONSERVATIVE: 1,
    SuggestionLevel.MODERATE: 3,
    SuggestionLevel.AGGRESSIVE: None,
}


class SimulationConfig(WhatIfBase):
    """Tunables for the simulation engine and its calculators."""

    # Constraints
    max_daily_hours: float = Field(default=10.0, gt=0.0)

    # Metric heuristics
    focus_block_hours: float = Field(default=1.5, gt=0.0)
    fragmentation_gap_minutes: float = Field(default=30.0, gt=0.0)
    long_day_hours: float = Field(default=10.0, gt=0.0)
    stress_risk_threshold: float = Field(default=7.0, ge=0.0, le=10.0)

    # Free-slot window for timelines
    day_start_hour: int = Field(default=8, ge=0, le=23)
    day_end_hour: int = Field(default=22, ge=1, le=24)
    min_free_slot_minutes: float = Field(default=30.0, ge=0.0)

    # Monte Carlo
    monte_carlo_iterations: int = Field(default=100, ge=1)
    monte_carlo_perturbation: float = Field(default=0.2, ge=0.0, lt=1.0)
    monte_carlo_concurrency: int = Field(default=8, ge=1)
    monte_carlo_seed: int | None = None

    # DEEP mode
    enable_ai_suggestions: bool = True
    suggestion_level: SuggestionLevel = SuggestionLevel.MODERATE
    provider_timeout_seconds: float = Field(default=5.0, gt=0.0)

    @property
    def suggestion_limit(self) -> int | None:
        return SUGGESTION_LIMITS[self.suggestion_level]

    @model_validator(mode="after")
    def _day_window_ordered(self) -> SimulationConfig:
        if self.day_end_hour <= self.day_start_hour:
            msg = "day_end_hour must be after day_start_hour"
            raise ValueError(msg)
        return self
