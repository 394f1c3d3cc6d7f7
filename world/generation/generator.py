"""Random courier scenarios: road network, depots, fleet and parcel arrivals."""

import logging

import numpy as np
from scipy.spatial import Delaunay

from core.buildings.depot import Depot
from core.parcels.parcel import Parcel
from core.types import AgentID, BuildingID, EdgeID, NodeID, ParcelID, Role
from world.generation.params import ScenarioParams
from world.graph.graph import Graph
from world.graph.node import Node
from world.sim.dto.vehicle_dto import VehicleCreateDTO
from world.world import World

logger = logging.getLogger(__name__)


class RandomParcelSpawner:
    """Creates parcels between random nodes, one per tick with a fixed probability."""

    def __init__(self, params: ScenarioParams, rng: np.random.Generator) -> None:
        self.params = params
        self.rng = rng
        self.created = 0

    def make_parcel(self, world: World) -> Parcel:
        """Create a parcel with random endpoints and size.

        Pickup and delivery nodes differ whenever the graph has more than one node.
        """
        nodes = list(world.graph.nodes)
        if len(nodes) > 1:
            pickup, delivery = self.rng.choice(nodes, size=2, replace=False)
        else:
            pickup = delivery = nodes[0]
        parcel = Parcel(
            id=ParcelID(f"parcel-{self.created}"),
            pickup_node=NodeID(int(pickup)),
            delivery_node=NodeID(int(delivery)),
            needed_capacity=1 + int(self.rng.integers(self.params.max_parcel_size)),
            pickup_duration_s=self.params.service_duration_s,
            delivery_duration_s=self.params.service_duration_s,
            spawn_tick=world.tick,
        )
        self.created += 1
        return parcel

    def spawn(self, world: World) -> list[Parcel]:
        if self.rng.random() < self.params.new_parcel_prob:
            return [self.make_parcel(world)]
        return []


class ScenarioGenerator:
    """Builds a complete world from scenario parameters."""

    def __init__(self, params: ScenarioParams) -> None:
        """Initialize the scenario generator.

        Args:
            params: Scenario parameters (Pydantic model, validates on instantiation)
        """
        self.params = params
        self.rng = np.random.default_rng(params.seed)

    def generate(self, graph: Graph | None = None) -> World:
        """Generate the road network and populate it.

        Args:
            graph: Road network to populate instead of a generated one (e.g. a
                loaded map)

        Returns:
            World with depots, vehicles and the initial parcels placed on random nodes
        """
        if graph is None:
            graph = self.generate_graph()
        spawner = RandomParcelSpawner(self.params, self.rng)
        world = World(graph, dt_s=self.params.dt_s, parcel_spawner=spawner)
        nodes = list(graph.nodes)

        # Step 1: Depots
        for i in range(self.params.num_depots):
            depot = Depot(
                id=BuildingID(f"depot-{i}"),
                capacity=self.params.depot_capacity,
                name=f"Depot {i}",
            )
            world.add_depot(depot, self._random_node(nodes))

        # Step 2: Fleet
        fleet = [
            (Role.PICKUP, self.params.num_pickup_vehicles),
            (Role.DELIVERY, self.params.num_delivery_vehicles),
            (Role.COURIER, self.params.num_courier_vehicles),
        ]
        for role, count in fleet:
            dto = VehicleCreateDTO(
                role=role,
                capacity=self.params.vehicle_capacity,
                speed_kph=self.params.vehicle_speed_kph,
            )
            for i in range(count):
                vehicle = dto.to_vehicle(AgentID(f"{role.value.lower()}-{i}"))
                world.add_vehicle(vehicle, self._random_node(nodes))

        # Step 3: Initial parcels
        for _ in range(self.params.initial_parcels):
            world.add_parcel(spawner.make_parcel(world))

        logger.info(
            f"Generated scenario: {len(graph.nodes)} nodes, {len(world.depots)} depots, "
            f"{len(world.agents)} vehicles, {self.params.initial_parcels} parcels"
        )
        return world

    def generate_graph(self) -> Graph:
        """Generate a two-way road network over random points.

        Roads follow the Delaunay triangulation of the points, so the network is
        connected and planar. Edge lengths are the Euclidean distance between
        the endpoints.
        """
        p = self.params
        points = self.rng.uniform(
            (0.0, 0.0), (p.map_width_m, p.map_height_m), size=(p.num_nodes, 2)
        )

        graph = Graph()
        for idx, (x, y) in enumerate(points):
            graph.add_node(Node(id=NodeID(idx), x=float(x), y=float(y)))

        # Extract edges from triangulation
        tri = Delaunay(points)
        edge_set: set[tuple[int, int]] = set()
        for simplex in tri.simplices:
            for i in range(3):
                p1, p2 = int(simplex[i]), int(simplex[(i + 1) % 3])
                edge_set.add((min(p1, p2), max(p1, p2)))

        low, high = p.road_speed_kph_range
        edge_id = 0
        for i, j in sorted(edge_set):
            length = float(np.linalg.norm(points[i] - points[j]))
            speed = float(self.rng.uniform(low, high))
            graph.add_road(EdgeID(edge_id), NodeID(i), NodeID(j), length, speed)
            edge_id += 2

        graph.prune_to_largest_component()
        return graph

    def _random_node(self, nodes: list[NodeID]) -> NodeID:
        return NodeID(int(self.rng.choice(nodes)))
