"""Depot building used as a handoff buffer between pickup and delivery vehicles."""

from dataclasses import dataclass
from typing import Any, ClassVar

from core.buildings.base import Building
from core.types import BuildingID


@dataclass
class Depot(Building):
    """Depot that temporarily stores parcels dropped by pickup vehicles.

    The depot only describes the facility. The parcels it holds are tracked by
    the parcel registry, which treats the depot as a container of ``capacity``
    units and keeps its buffer in drop order.
    """

    TYPE: ClassVar[str] = "depot"

    capacity: int = 100
    name: str = ""

    def __post_init__(self) -> None:
        """Validate the storage configuration."""
        if self.capacity <= 0:
            raise ValueError("Depot capacity must be positive")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Depot":
        """Deserialize depot from dictionary."""
        return cls(
            id=BuildingID(data["id"]),
            capacity=int(data.get("capacity", 100)),
            name=str(data.get("name", "")),
        )
