"""DTO for vehicle creation parameters."""

import math
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, field_validator

from core.types import AgentID, NodeID, Role

if TYPE_CHECKING:
    from agents.transports.vehicle import Vehicle


class VehicleCreateDTO(BaseModel):
    """DTO for vehicle creation parameters.

    The role is fixed for the lifetime of the vehicle.
    """

    model_config = ConfigDict(frozen=True)

    role: Role = Field(description="Dispatch role of the vehicle")
    capacity: int = Field(default=5, ge=1, description="Rated cargo capacity in parcel units")
    speed_kph: float = Field(default=50.0, gt=0.0, description="Maximum speed in km/h")
    start_node: NodeID | None = Field(default=None, description="Spawn node, if chosen upfront")

    @field_validator("speed_kph")
    @classmethod
    def validate_speed(cls, v: float) -> float:
        """Ensure speed_kph is a finite number."""
        if not math.isfinite(v):
            raise ValueError("speed_kph must be a finite number")
        return v

    def to_vehicle(self, agent_id: AgentID) -> "Vehicle":
        """Create a Vehicle agent from this DTO.

        Args:
            agent_id: Unique agent identifier

        Returns:
            Vehicle in the Seeking state with zero profit
        """
        # Import here to avoid circular dependency
        from agents.transports.vehicle import Vehicle
        from core.vehicles.state import VehicleState

        state = VehicleState(
            id=agent_id, role=self.role, capacity=self.capacity, speed_kph=self.speed_kph
        )
        return Vehicle(id=agent_id, state=state)
