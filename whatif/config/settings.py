"""What-If Simulator settings loaded from environment variables."""

from enum import StrEnum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from whatif.engine.config import SimulationConfig


class Environment(StrEnum):
    """Deployment environment."""

    DEV = "dev"
    STAGING = "staging"
    PROD = "prod"


class LogLevel(StrEnum):
    """Supported log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Settings(BaseSettings):
    """Process-wide settings loaded from environment variables / .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Logging ---
    LOG_LEVEL: LogLevel = Field(
        default=LogLevel.INFO,
        description="Application log level.",
    )

    # --- Environment ---
    ENVIRONMENT: Environment = Field(
        default=Environment.DEV,
        description="Deployment environment (dev/staging/prod).",
    )

    # --- Simulation defaults ---
    MAX_DAILY_HOURS: float = Field(
        default=10.0,
        gt=0.0,
        description="Scheduled hours above which overload risk is raised.",
    )
    MONTE_CARLO_ITERATIONS: int = Field(
        default=100,
        ge=1,
        description="Trials per MONTE_CARLO run.",
    )
    MONTE_CARLO_SEED: int | None = Field(
        default=None,
        description="Fixed Monte Carlo seed; unset seeds from system entropy.",
    )
    PROVIDER_TIMEOUT_SECONDS: float = Field(
        default=5.0,
        gt=0.0,
        description="Time budget for the DEEP-mode suggestion provider.",
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.ENVIRONMENT == Environment.PROD

    def simulation_config(self) -> SimulationConfig:
        """Engine configuration seeded from these settings."""
        return SimulationConfig(
            max_daily_hours=self.MAX_DAILY_HOURS,
            monte_carlo_iterations=self.MONTE_CARLO_ITERATIONS,
            monte_carlo_seed=self.MONTE_CARLO_SEED,
            provider_timeout_seconds=self.PROVIDER_TIMEOUT_SECONDS,
        )


def get_settings() -> Settings:
    """Factory function for dependency injection."""
    return Settings()
