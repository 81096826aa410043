"""Scenario repository: ABC and in-memory implementation.

Holds scenarios keyed by id plus one "active" pointer (the scenario the
user is currently editing). The repository is owned explicitly by the
service that needs it; there is no process-wide instance.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from whatif.engine.errors import ScenarioNotFoundError
from whatif.models.scenario import ScenarioStatus, WhatIfScenario


class ScenarioRepository(ABC):
    """Storage contract for WhatIfScenario aggregates."""

    @abstractmethod
    def save(self, scenario: WhatIfScenario) -> None: ...

    @abstractmethod
    def get(self, scenario_id: str) -> WhatIfScenario | None: ...

    @abstractmethod
    def delete(self, scenario_id: str) -> None: ...

    @abstractmethod
    def list_all(self) -> list[WhatIfScenario]: ...

    @abstractmethod
    def get_active(self) -> WhatIfScenario | None: ...

    @abstractmethod
    def set_active(self, scenario_id: str | None) -> None: ...

    def require(self, scenario_id: str) -> WhatIfScenario:
        """Like ``get`` but raises ScenarioNotFoundError."""
        scenario = self.get(scenario_id)
        if scenario is None:
            raise ScenarioNotFoundError(scenario_id)
        return scenario

    def list_by_status(self, status: ScenarioStatus) -> list[WhatIfScenario]:
        return [s for s in self.list_all() if s.status == status]


class InMemoryScenarioRepository(ScenarioRepository):
    """Dict-backed repository, insertion ordered."""

    def __init__(self) -> None:
        self._scenarios: dict[str, WhatIfScenario] = {}
        self._active_id: str | None = None

    def save(self, scenario: WhatIfScenario) -> None:
        self._scenarios[scenario.id] = scenario

    def get(self, scenario_id: str) -> WhatIfScenario | None:
        return self._scenarios.get(scenario_id)

    def delete(self, scenario_id: str) -> None:
        if scenario_id not in self._scenarios:
            raise ScenarioNotFoundError(scenario_id)
        del self._scenarios[scenario_id]
        if self._active_id == scenario_id:
            self._active_id = None

    def list_all(self) -> list[WhatIfScenario]:
        return list(self._scenarios.values())

    def get_active(self) -> WhatIfScenario | None:
        if self._active_id is None:
            return None
        return self._scenarios.get(self._active_id)

    def set_active(self, scenario_id: str | None) -> None:
        if scenario_id is not None and scenario_id not in self._scenarios:
            raise ScenarioNotFoundError(scenario_id)
        self._active_id = scenario_id
