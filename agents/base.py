from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from core.types import AgentID

if TYPE_CHECKING:
    from world.world import World


@dataclass
class AgentBase:
    id: AgentID
    kind: str
    tags: dict[str, Any] = field(default_factory=dict)  # arbitrary metadata
    _last_serialized_state: dict[str, Any] = field(default_factory=dict, init=False)

    def decide(self, world: "World", time_budget_s: float) -> None:
        """Update own state and issue requests to the world for one step."""
        raise NotImplementedError

    def after_tick(self, world: "World") -> None:
        """Optional: observe the world once every agent has acted."""
        pass

    def serialize_state(self) -> dict[str, Any]:
        """Full state for UI snapshots."""
        return {"id": self.id, "kind": self.kind, "tags": self.tags.copy()}

    def serialize_diff(self) -> dict[str, Any] | None:
        """Return a small dict for UI delta, or None if no changes."""
        current_state = self.serialize_state()

        # Compare with last serialized state
        if current_state == self._last_serialized_state:
            return None  # No changes

        # Update last serialized state
        self._last_serialized_state = current_state.copy()
        return current_state
