from enum import Enum
from typing import NewType

# IDs
AgentID = NewType("AgentID", str)
BuildingID = NewType("BuildingID", str)
EdgeID = NewType("EdgeID", int)
NodeID = NewType("NodeID", int)
ParcelID = NewType("ParcelID", str)


class Role(str, Enum):
    """Dispatch role assigned to a vehicle at creation."""

    PICKUP = "PICKUP"  # Network -> depot
    DELIVERY = "DELIVERY"  # Depot -> delivery location
    COURIER = "COURIER"  # Door to door, no depot


class ParcelState(str, Enum):
    """Parcel lifecycle state."""

    AVAILABLE = "AVAILABLE"
    IN_CARGO = "IN_CARGO"
    AT_DEPOT = "AT_DEPOT"
    DELIVERED = "DELIVERED"


class ObjectKind(str, Enum):
    """Kinds of objects placed on the road network."""

    VEHICLE = "vehicle"
    PARCEL = "parcel"
