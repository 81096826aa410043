"""State cloning.

Produces structurally equal, fully independent copies of a SystemState
so simulation never mutates the baseline. Pydantic's deep copy keeps
datetimes and enum-keyed dicts exactly as they are; before copying, the
state is dumped to JSON so that behaviour accidentally placed
inside free-form fields (automation configs, modify payloads) fails
loudly instead of being shared by reference.
"""

from __future__ import annotations

from whatif.engine.errors import StateSerializationError
from whatif.models.state import SystemState


class StateCloner:
    """Type-aware structural cloner for SystemState."""

    def clone(self, state: SystemState) -> SystemState:
        """Return a deep copy sharing no mutable references with ``state``.

        Raises:
            StateSerializationError: If the state holds non-serializable
                values (functions, open handles, ...).
        """
        self.ensure_serializable(state)
        return state.model_copy(deep=True)

    @staticmethod
    def ensure_serializable(state: SystemState) -> None:
        try:
            state.model_dump_json()
        except (TypeError, ValueError) as exc:
            msg = f"State at {state.timestamp.isoformat()} cannot be cloned: {exc}"
            raise StateSerializationError(msg) from exc
