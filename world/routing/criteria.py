"""Node matching criteria for nearest-object graph search."""

from collections.abc import Callable, Iterable
from typing import Any, Protocol

from core.buildings.base import Building
from core.types import NodeID
from world.graph.graph import Graph
from world.graph.node import Node


class NodeCriteria(Protocol):
    """Protocol for node matching criteria in graph searches."""

    def matches(self, node: Node, graph: Graph) -> tuple[bool, Any | None]:
        """Check if a node satisfies the criteria.

        Args:
            node: The node to check
            graph: The graph context (for accessing edges, etc.)

        Returns:
            Tuple of (matches, matched_item) where:
            - matches: True if node satisfies criteria
            - matched_item: The object that satisfied the criteria
              (e.g., Building instance, or an object id)
        """
        ...


class BuildingTypeCriteria:
    """Criteria that matches nodes with buildings of a specific type.

    Returns the first matching building accepted by the optional predicate.
    """

    def __init__(
        self,
        building_type: type[Building],
        predicate: Callable[[Building], bool] | None = None,
    ) -> None:
        """Initialize building type criteria.

        Args:
            building_type: Type of building to search for (e.g., Depot)
            predicate: Extra condition the building must satisfy
        """
        self.building_type = building_type
        self.predicate = predicate

    def matches(self, node: Node, _graph: Graph) -> tuple[bool, Any | None]:
        """Check if node has an accepted building of the specified type."""
        for building in node.get_buildings_by_type(self.building_type):
            if self.predicate is None or self.predicate(building):
                return True, building
        return False, None


class RoadObjectCriteria:
    """Criteria that matches nodes holding a road object accepted by a predicate.

    Objects are looked up through a callable so the criteria does not depend on
    how the road model indexes them. Returns the object id.
    """

    def __init__(
        self,
        objects_at: Callable[[NodeID], Iterable[str]],
        predicate: Callable[[str], bool] | None = None,
    ) -> None:
        self.objects_at = objects_at
        self.predicate = predicate

    def matches(self, node: Node, _graph: Graph) -> tuple[bool, Any | None]:
        """Check if any object at the node is accepted."""
        for obj_id in self.objects_at(node.id):
            if self.predicate is None or self.predicate(obj_id):
                return True, obj_id
        return False, None
