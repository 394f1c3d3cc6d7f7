from dataclasses import dataclass, field

from core.buildings.base import Building
from core.types import BuildingID, NodeID


@dataclass
class Node:
    id: NodeID
    x: float  # metres
    y: float  # metres
    buildings: list[Building] = field(default_factory=list)
    _buildings_by_type: dict[type[Building], list[Building]] = field(
        default_factory=dict, init=False, repr=False
    )

    def add_building(self, building: Building) -> None:
        """Add a building to this node.

        Maintains the flat list and type-indexed dictionary for O(1) lookups.
        """
        self.buildings.append(building)
        self._buildings_by_type.setdefault(type(building), []).append(building)

    def get_buildings_by_type(self, building_type: type[Building]) -> list[Building]:
        """Get all buildings of a specific type at this node.

        Args:
            building_type: The type of building to retrieve (e.g., Depot)

        Returns:
            List of buildings of the specified type (empty list if none found)
        """
        return self._buildings_by_type.get(building_type, [])

    def get_building(self, building_id: BuildingID) -> Building:
        """Get a building by ID."""
        return next(building for building in self.buildings if building.id == building_id)
