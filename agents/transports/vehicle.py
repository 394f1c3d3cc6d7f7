"""Vehicle agent driven by the role-based dispatch engine."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from agents.base import AgentBase
from agents.dispatch import roles
from core.vehicles.state import VehicleState

if TYPE_CHECKING:
    from world.world import World


@dataclass(kw_only=True)
class Vehicle(AgentBase):
    """Transport agent holding its dispatch record.

    The record is replaced by every decision; position and cargo live in the
    world's road model and parcel registry.
    """

    kind: str = "vehicle"
    state: VehicleState

    def decide(self, world: "World", time_budget_s: float) -> None:
        """Run the dispatch policy of the vehicle's role for one step."""
        self.state = roles.decide(self.state, world.dispatch, time_budget_s)

    def serialize_state(self, world: "World | None" = None) -> dict[str, Any]:
        """Dispatch record plus, when a world is given, position and cargo."""
        data = super().serialize_state()
        data.update(self.state.to_dict())
        if world is not None:
            position = world.road.position(self.id)
            data["node"] = position.node
            data["edge"] = position.edge
            data["offset_m"] = position.offset_m
            data["cargo"] = [parcel.id for parcel in world.pdp.contents(self.id)]
        return data
