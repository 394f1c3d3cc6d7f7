"""DTOs for simulation step results."""

from typing import Any

from pydantic import BaseModel, Field


class FleetStatisticsDTO(BaseModel):
    """Aggregate fleet and parcel figures after a tick.

    Attributes:
        tick: Tick the figures belong to.
        fleet_profit: Sum of the accumulated profit of every vehicle.
        vehicles: Number of vehicles in the world.
        parcels_available: Parcels waiting on the network.
        parcels_in_cargo: Parcels carried by vehicles.
        parcels_at_depot: Parcels stored in depot buffers.
        parcels_delivered: Parcels handed over at their delivery node.
        distance_km: Total distance driven by the fleet.
    """

    tick: int = Field(ge=0, description="Tick number")
    fleet_profit: float = Field(description="Accumulated profit of the whole fleet")
    vehicles: int = Field(ge=0, description="Number of vehicles")
    parcels_available: int = Field(ge=0, description="Parcels waiting on the network")
    parcels_in_cargo: int = Field(ge=0, description="Parcels carried by vehicles")
    parcels_at_depot: int = Field(ge=0, description="Parcels stored at depots")
    parcels_delivered: int = Field(ge=0, description="Parcels delivered so far")
    distance_km: float = Field(ge=0.0, description="Distance driven by the fleet (km)")


class StepResultDTO(BaseModel):
    """DTO for the result of a simulation step.

    Attributes:
        tick: Tick that was executed.
        events: List of world events that occurred during the step.
        agent_diffs: List of agent state changes (None entries for unchanged agents).
        statistics: Fleet statistics after the step.
    """

    tick: int = Field(ge=0, description="Executed tick number")
    events: list[dict[str, Any]] = Field(
        default_factory=list, description="World events from this tick"
    )
    agent_diffs: list[dict[str, Any] | None] = Field(
        default_factory=list, description="Agent state diffs"
    )
    statistics: FleetStatisticsDTO = Field(description="Fleet statistics after this tick")

    def get_agent_diffs(self) -> list[dict[str, Any]]:
        """Get list of non-None agent diffs."""
        return [diff for diff in self.agent_diffs if diff is not None]

    def has_events(self) -> bool:
        """Check if there are any events."""
        return len(self.events) > 0
