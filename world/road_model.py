"""Positions and movement of vehicles and parcels on the road network."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from core.buildings.base import Building
from core.types import AgentID, EdgeID, NodeID, ObjectKind
from world.graph.graph import Graph
from world.routing.criteria import BuildingTypeCriteria, RoadObjectCriteria
from world.routing.navigator import Navigator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Position:
    """A point on the road network.

    Either a node (``edge`` is None) or a point ``offset_m`` metres along an
    edge leaving ``node``.
    """

    node: NodeID
    edge: EdgeID | None = None
    offset_m: float = 0.0

    @property
    def on_edge(self) -> bool:
        return self.edge is not None


@dataclass
class _VehicleTrack:
    position: Position
    speed_kph: float
    destination: NodeID | None = None
    route: list[NodeID] = field(default_factory=list)  # Nodes still to reach
    odometer_m: float = 0.0


class RoadModel:
    """Tracks where every road user is and moves vehicles along shortest routes.

    Vehicles travel at the lower of their own speed and the edge speed limit.
    Parcels waiting for pickup are static objects placed on nodes. A vehicle's
    destination stays declared until it arrives there or it is cleared, and is
    visible to every other vehicle.
    """

    def __init__(self, graph: Graph, navigator: Navigator | None = None) -> None:
        self.graph = graph
        self.navigator = navigator if navigator is not None else Navigator()
        self._vehicles: dict[AgentID, _VehicleTrack] = {}
        self._objects: dict[str, tuple[ObjectKind, NodeID]] = {}
        self._objects_at: dict[NodeID, dict[str, ObjectKind]] = {}  # insertion ordered

    # Registration

    def add_vehicle(self, vehicle_id: AgentID, node: NodeID, speed_kph: float) -> None:
        """Place a vehicle on a node."""
        if vehicle_id in self._vehicles:
            raise ValueError(f"Vehicle {vehicle_id} is already on the road")
        self._require_node(node)
        self._vehicles[vehicle_id] = _VehicleTrack(position=Position(node), speed_kph=speed_kph)

    def add_object(self, obj_id: str, node: NodeID, kind: ObjectKind) -> None:
        """Place a static object (e.g. a parcel waiting for pickup) on a node."""
        if obj_id in self._objects:
            raise ValueError(f"Object {obj_id} is already on the road")
        self._require_node(node)
        self._objects[obj_id] = (kind, node)
        self._objects_at.setdefault(node, {})[obj_id] = kind

    def remove_object(self, obj_id: str) -> None:
        """Take a static object off the road."""
        if obj_id not in self._objects:
            raise ValueError(f"Object {obj_id} is not on the road")
        _, node = self._objects.pop(obj_id)
        at_node = self._objects_at[node]
        del at_node[obj_id]
        if not at_node:
            del self._objects_at[node]

    def contains_object(self, obj_id: str) -> bool:
        """Check whether a vehicle or static object is on the road."""
        return obj_id in self._objects or obj_id in self._vehicles

    # Queries

    def objects_at(self, node: NodeID, kind: ObjectKind | None = None) -> list[str]:
        """Static objects on a node in placement order."""
        return [
            obj_id
            for obj_id, obj_kind in self._objects_at.get(node, {}).items()
            if kind is None or obj_kind == kind
        ]

    def objects_of_kind(self, kind: ObjectKind) -> list[str]:
        """All road users of a kind."""
        if kind == ObjectKind.VEHICLE:
            return list(self._vehicles)
        return [obj_id for obj_id, (obj_kind, _) in self._objects.items() if obj_kind == kind]

    def position(self, obj_id: str) -> Position:
        """Current position of a vehicle or static object."""
        if obj_id in self._vehicles:
            return self._vehicles[obj_id].position
        if obj_id in self._objects:
            return Position(self._objects[obj_id][1])
        raise ValueError(f"Object {obj_id} is not on the road")

    def is_at(self, obj_id: str, node: NodeID) -> bool:
        """Check whether an object stands exactly on a node."""
        return self.position(obj_id) == Position(node)

    def destination_of(self, vehicle_id: AgentID) -> NodeID | None:
        """Declared movement destination of a vehicle."""
        return self._track(vehicle_id).destination

    def destinations_of_kind(self, kind: ObjectKind) -> dict[str, NodeID | None]:
        """Declared destinations of every road user of a kind.

        Only vehicles move, so other kinds yield an empty mapping.
        """
        if kind != ObjectKind.VEHICLE:
            return {}
        return {vehicle_id: track.destination for vehicle_id, track in self._vehicles.items()}

    def clear_destination(self, vehicle_id: AgentID) -> None:
        """Withdraw a vehicle's declared destination and planned route."""
        track = self._track(vehicle_id)
        track.destination = None
        track.route = []

    def odometer_m(self, vehicle_id: AgentID) -> float:
        """Total distance driven by a vehicle."""
        return self._track(vehicle_id).odometer_m

    def distance_m(self, obj_id: str, target: NodeID) -> float:
        """Shortest network distance from an object's position to a node.

        Returns:
            Distance in metres, float('inf') if the node cannot be reached
        """
        origin, initial_cost = self._search_origin(obj_id)
        if origin == target:
            return initial_cost
        return initial_cost + self.navigator.shortest_distance_m(origin, target, self.graph)

    def nearest_object(
        self,
        obj_id: str,
        kind: ObjectKind,
        predicate: Callable[[str], bool] | None = None,
    ) -> str | None:
        """Closest static object of a kind by network distance.

        Args:
            obj_id: Object whose position is the search origin
            kind: Kind of object to look for
            predicate: Extra condition the object must satisfy

        Returns:
            Id of the closest reachable object or None
        """
        origin, initial_cost = self._search_origin(obj_id)
        criteria = RoadObjectCriteria(lambda node: self.objects_at(node, kind), predicate)
        _, matched, _ = self.navigator.find_closest_node(
            origin, self.graph, criteria, initial_cost_m=initial_cost
        )
        return matched

    def nearest_available_parcel(
        self, obj_id: str, predicate: Callable[[str], bool] | None = None
    ) -> str | None:
        """Closest parcel still waiting on the network."""
        return self.nearest_object(obj_id, ObjectKind.PARCEL, predicate)

    def nearest_building(
        self,
        obj_id: str,
        building_type: type[Building],
        predicate: Callable[[Building], bool] | None = None,
    ) -> tuple[Building, NodeID] | None:
        """Closest building of a type by network distance.

        Returns:
            Tuple of (building, node_id) or None if no reachable building matches
        """
        origin, initial_cost = self._search_origin(obj_id)
        criteria = BuildingTypeCriteria(building_type, predicate)
        node_id, building, _ = self.navigator.find_closest_node(
            origin, self.graph, criteria, initial_cost_m=initial_cost
        )
        if node_id is None or building is None:
            return None
        return building, node_id

    # Movement

    def move_toward(self, vehicle_id: AgentID, target: NodeID, time_budget_s: float) -> float:
        """Drive a vehicle toward a node for at most the given time.

        The vehicle declares ``target`` as its destination, follows the
        shortest route and stops part-way along an edge when the budget runs
        out. On arrival the destination is withdrawn.

        Args:
            vehicle_id: Vehicle to move
            target: Destination node
            time_budget_s: Time available for driving

        Returns:
            Unused time in seconds
        """
        track = self._track(vehicle_id)
        if time_budget_s <= 0:
            return time_budget_s

        if track.position == Position(target):
            track.destination = None
            track.route = []
            return time_budget_s

        if track.destination != target or (not track.route and not track.position.on_edge):
            origin, _ = self._search_origin(vehicle_id)
            route = self.navigator.find_route(origin, target, self.graph)
            if not route:
                logger.warning(f"No route from {origin} to {target} for vehicle {vehicle_id}")
                track.destination = None
                track.route = []
                return time_budget_s
            track.destination = target
            track.route = route[1:]

        remaining = time_budget_s
        while remaining > 0:
            position = track.position
            if position.edge is not None:
                edge = self.graph.edges[position.edge]
                speed_mps = min(track.speed_kph, edge.max_speed_kph) / 3.6
                left_m = edge.length_m - position.offset_m
                needed_s = left_m / speed_mps
                if needed_s <= remaining:
                    remaining -= needed_s
                    track.odometer_m += left_m
                    track.position = Position(edge.to_node)
                else:
                    travelled_m = speed_mps * remaining
                    track.odometer_m += travelled_m
                    offset_m = position.offset_m + travelled_m
                    track.position = Position(position.node, edge.id, offset_m)
                    remaining = 0.0
                continue

            if position.node == target or not track.route:
                break

            next_node = track.route.pop(0)
            edge = self.graph.find_edge(position.node, next_node)
            if edge is None:
                # Graph changed under the route
                track.route = []
                track.destination = None
                break
            track.position = Position(position.node, edge.id, 0.0)

        if track.position == Position(target):
            track.destination = None
            track.route = []
        return remaining

    def _track(self, vehicle_id: AgentID) -> _VehicleTrack:
        if vehicle_id not in self._vehicles:
            raise ValueError(f"Vehicle {vehicle_id} is not on the road")
        return self._vehicles[vehicle_id]

    def _search_origin(self, obj_id: str) -> tuple[NodeID, float]:
        """Node a search starts from and the distance needed to get there."""
        position = self.position(obj_id)
        if position.edge is None:
            return position.node, 0.0
        edge = self.graph.edges[position.edge]
        return edge.to_node, max(0.0, edge.length_m - position.offset_m)

    def _require_node(self, node: NodeID) -> None:
        if node not in self.graph.nodes:
            raise ValueError(f"Node {node} does not exist")
