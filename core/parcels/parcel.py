"""Parcel data structure for delivery items."""

from dataclasses import asdict, dataclass
from typing import Any

from core.types import NodeID, ParcelID, ParcelState


@dataclass
class Parcel:
    """Parcel data structure representing a unit of cargo.

    A parcel waits at its pickup node until a vehicle collects it and is
    finished once a vehicle drops it at its delivery node. Depot-routed
    parcels pass through a depot buffer in between.
    """

    id: ParcelID
    pickup_node: NodeID
    delivery_node: NodeID
    needed_capacity: int  # Cargo units consumed in a container (>= 1)
    pickup_duration_s: float = 0.0
    delivery_duration_s: float = 0.0
    spawn_tick: int = 0
    state: ParcelState = ParcelState.AVAILABLE

    def __post_init__(self) -> None:
        """Validate capacity and service durations."""
        if self.needed_capacity < 1:
            raise ValueError(f"Parcel {self.id} needed capacity must be at least 1")
        if self.pickup_duration_s < 0 or self.delivery_duration_s < 0:
            raise ValueError(f"Parcel {self.id} service durations must be non-negative")

    def to_dict(self) -> dict[str, Any]:
        """Serialize parcel to dictionary."""
        data = asdict(self)
        data["state"] = self.state.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Parcel":
        """Deserialize parcel from dictionary."""
        data = dict(data)
        if isinstance(data.get("state"), str):
            data["state"] = ParcelState(data["state"])
        data["id"] = ParcelID(data["id"])
        data["pickup_node"] = NodeID(int(data["pickup_node"]))
        data["delivery_node"] = NodeID(int(data["delivery_node"]))
        data["needed_capacity"] = int(data["needed_capacity"])
        return cls(**data)

    def is_available(self) -> bool:
        """Check if parcel is still waiting on the network."""
        return self.state == ParcelState.AVAILABLE
