"""Exception hierarchy for the simulation engine.

``ItemNotFoundError`` and ``ProviderTimeoutError`` are recovered from
inside a run (skipped change / degraded DEEP run). The rest surface to
the caller, as a failed ``SimulationResult`` when raised during a run.
"""


class WhatIfError(Exception):
    """Base class for all simulator errors."""


class ChangeValidationError(WhatIfError, ValueError):
    """A change payload is malformed or contradicts its target."""


class ItemNotFoundError(WhatIfError, KeyError):
    """A change references an item id absent from the state."""

    def __init__(self, item_id: str) -> None:
        super().__init__(item_id)
        self.item_id = item_id

    def __str__(self) -> str:
        return f"Item {self.item_id!r} not found"


class ComparisonPreconditionError(WhatIfError, ValueError):
    """Fewer than two simulated scenarios were passed to a comparison."""


class StateSerializationError(WhatIfError):
    """A state holds values that cannot be cloned faithfully."""


class ProviderTimeoutError(WhatIfError, TimeoutError):
    """The suggestion provider exceeded its time budget."""


class ScenarioStateError(WhatIfError, ValueError):
    """The requested operation is illegal in the scenario's current status."""


class ScenarioNotFoundError(WhatIfError, KeyError):
    """No scenario with the given id is stored."""

    def __init__(self, scenario_id: str) -> None:
        super().__init__(scenario_id)
        self.scenario_id = scenario_id

    def __str__(self) -> str:
        return f"Scenario {self.scenario_id!r} not found"


class SimulationCancelledError(WhatIfError):
    """A Monte Carlo run was cancelled between trials."""


class ChangeNotFoundError(WhatIfError, KeyError):
    """A scenario holds no change with the given id."""

    def __init__(self, scenario_id: str, change_id: str) -> None:
        super().__init__(change_id)
        self.scenario_id = scenario_id
        self.change_id = change_id

    def __str__(self) -> str:
        return f"Change {self.change_id!r} not found in scenario {self.scenario_id!r}"


class PresetNotFoundError(WhatIfError, KeyError):
    """No preset with the given id is registered."""

    def __init__(self, preset_id: str) -> None:
        super().__init__(preset_id)
        self.preset_id = preset_id

    def __str__(self) -> str:
        return f"Preset {self.preset_id!r} not found"
