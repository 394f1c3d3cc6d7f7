"""Persistent dispatch state of a vehicle."""

import math
from dataclasses import asdict, dataclass
from typing import Any

from core.fsm import DispatchState
from core.types import AgentID, ParcelID, Role


@dataclass(frozen=True)
class VehicleState:
    """Dispatch record of one vehicle.

    The record is owned by the entity store and replaced by every dispatch
    decision. It is frozen, so the role fixed at creation cannot change.

    Attributes:
        id: Vehicle identifier
        role: Dispatch role (immutable)
        capacity: Rated cargo capacity in parcel units
        speed_kph: Maximum speed in km/h
        commitment: Parcel the vehicle currently pursues, if any
        should_return_to_depot: Set when the nearest parcel did not fit
        profit: Accumulated profit
        committed_credit: Expected profit booked for the current commitment,
            reversed if the commitment is lost
        phase: Dispatch state observed at the end of the last step
    """

    id: AgentID
    role: Role
    capacity: int
    speed_kph: float
    commitment: ParcelID | None = None
    should_return_to_depot: bool = False
    profit: float = 0.0
    committed_credit: float = 0.0
    phase: DispatchState = DispatchState.SEEKING

    def __post_init__(self) -> None:
        """Validate the construction-time configuration."""
        if self.capacity < 1:
            raise ValueError(f"Vehicle {self.id} capacity must be a positive integer")
        if not math.isfinite(self.speed_kph) or self.speed_kph <= 0:
            raise ValueError(f"Vehicle {self.id} speed must be a positive finite number")

    def to_dict(self) -> dict[str, Any]:
        """Serialize state to dictionary."""
        data = asdict(self)
        data["id"] = str(self.id)
        data["role"] = self.role.value
        data["commitment"] = str(self.commitment) if self.commitment is not None else None
        data["phase"] = self.phase.name
        return data
