"""Tests for RiskAssessor rules."""

from whatif.engine.config import SimulationConfig
from whatif.engine.risks import RiskAssessor
from whatif.models.state import RiskCategory, SystemMetrics, SystemState


class TestRiskAssessor:
    def test_calm_state_has_no_risks(self, day) -> None:
        assert RiskAssessor().assess(SystemState(timestamp=day)) == []

    def test_overdue_task_raises_deadline_risk(self, make_task, day) -> None:
        state = SystemState(timestamp=day.replace(hour=12), tasks=[make_task("t1", due_hour=9)])
        (risk,) = RiskAssessor().assess(state)
        assert risk.id == "deadline_risk"
        assert risk.category == RiskCategory.DEADLINE
        assert risk.probability == 0.8
        assert risk.impact == 8

    def test_overload_above_max_daily_hours(self, day) -> None:
        state = SystemState(timestamp=day, metrics=SystemMetrics(total_scheduled_hours=11))
        (risk,) = RiskAssessor().assess(state)
        assert risk.id == "overload_risk"
        assert risk.score == 0.9 * 7

    def test_overload_at_limit_is_fine(self, day) -> None:
        state = SystemState(timestamp=day, metrics=SystemMetrics(total_scheduled_hours=10))
        assert RiskAssessor().assess(state) == []

    def test_health_risk_above_threshold(self, day) -> None:
        state = SystemState(timestamp=day, metrics=SystemMetrics(stress_level=7.5))
        (risk,) = RiskAssessor().assess(state)
        assert risk.id == "health_risk"
        assert risk.impact == 9

    def test_thresholds_come_from_config(self, day) -> None:
        config = SimulationConfig(max_daily_hours=4, stress_risk_threshold=2)
        state = SystemState(
            timestamp=day,
            metrics=SystemMetrics(total_scheduled_hours=5, stress_level=3),
        )
        ids = [r.id for r in RiskAssessor(config).assess(state)]
        assert ids == ["overload_risk", "health_risk"]
