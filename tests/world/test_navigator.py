"""Tests for Navigator routing and nearest-match search."""

import math

from core.buildings.depot import Depot
from core.types import BuildingID, EdgeID, NodeID
from world.graph.edge import Edge
from world.graph.graph import Graph
from world.graph.node import Node
from world.routing.criteria import BuildingTypeCriteria, RoadObjectCriteria
from world.routing.navigator import Navigator


def create_grid_graph() -> Graph:
    """Create a 3x3 grid of two-way roads, 100 m apart.

    Node ids are ``row * 3 + col``.
    """
    graph = Graph()
    for row in range(3):
        for col in range(3):
            graph.add_node(Node(id=NodeID(row * 3 + col), x=col * 100.0, y=row * 100.0))
    edge_id = 0
    for row in range(3):
        for col in range(3):
            node = row * 3 + col
            if col < 2:
                graph.add_road(EdgeID(edge_id), NodeID(node), NodeID(node + 1), 100.0)
                edge_id += 2
            if row < 2:
                graph.add_road(EdgeID(edge_id), NodeID(node), NodeID(node + 3), 100.0)
                edge_id += 2
    return graph


def test_find_route_shortest() -> None:
    """Test A* finds a shortest route across the grid."""
    graph = create_grid_graph()
    route = Navigator().find_route(NodeID(0), NodeID(8), graph)
    assert route[0] == NodeID(0)
    assert route[-1] == NodeID(8)
    assert len(route) == 5
    assert Navigator().route_length_m(route, graph) == 400.0


def test_find_route_same_node() -> None:
    """Test route to the start node is the start node alone."""
    assert Navigator().find_route(NodeID(4), NodeID(4), create_grid_graph()) == [NodeID(4)]


def test_find_route_respects_one_way_roads() -> None:
    """Test that a one-way edge cannot be driven backwards."""
    graph = Graph()
    graph.add_node(Node(id=NodeID(1), x=0.0, y=0.0))
    graph.add_node(Node(id=NodeID(2), x=10.0, y=0.0))
    graph.add_edge(Edge(EdgeID(1), NodeID(1), NodeID(2), 10.0))

    navigator = Navigator()
    assert navigator.find_route(NodeID(1), NodeID(2), graph) == [NodeID(1), NodeID(2)]
    assert navigator.find_route(NodeID(2), NodeID(1), graph) == []
    assert navigator.shortest_distance_m(NodeID(2), NodeID(1), graph) == math.inf


def test_find_route_prefers_short_detour_over_long_edge() -> None:
    """Test that cost is road length, not number of hops."""
    graph = Graph()
    for i, x in enumerate([0.0, 50.0, 100.0]):
        graph.add_node(Node(id=NodeID(i), x=x, y=0.0))
    graph.add_edge(Edge(EdgeID(1), NodeID(0), NodeID(2), 500.0))
    graph.add_edge(Edge(EdgeID(2), NodeID(0), NodeID(1), 50.0))
    graph.add_edge(Edge(EdgeID(3), NodeID(1), NodeID(2), 50.0))

    assert Navigator().find_route(NodeID(0), NodeID(2), graph) == [NodeID(0), NodeID(1), NodeID(2)]


def test_route_length_of_disconnected_route_is_infinite() -> None:
    """Test that a route over missing edges has infinite length."""
    graph = create_grid_graph()
    assert Navigator().route_length_m([NodeID(0), NodeID(8)], graph) == math.inf


def test_find_closest_node_with_building() -> None:
    """Test nearest depot search returns the closest depot by road."""
    graph = create_grid_graph()
    near = Depot(id=BuildingID("near"))
    far = Depot(id=BuildingID("far"))
    graph.nodes[NodeID(1)].add_building(near)
    graph.nodes[NodeID(8)].add_building(far)

    node, item, route = Navigator().find_closest_node(NodeID(0), graph, BuildingTypeCriteria(Depot))
    assert node == NodeID(1)
    assert item is near
    assert route == [NodeID(0), NodeID(1)]


def test_find_closest_node_with_predicate() -> None:
    """Test that the predicate skips rejected buildings."""
    graph = create_grid_graph()
    graph.nodes[NodeID(1)].add_building(Depot(id=BuildingID("full")))
    graph.nodes[NodeID(8)].add_building(Depot(id=BuildingID("free")))

    criteria = BuildingTypeCriteria(Depot, lambda b: b.id != BuildingID("full"))
    node, item, _ = Navigator().find_closest_node(NodeID(0), graph, criteria)
    assert node == NodeID(8)
    assert item is not None and item.id == BuildingID("free")


def test_find_closest_node_start_matches() -> None:
    """Test the start node itself can be the match."""
    graph = create_grid_graph()
    graph.nodes[NodeID(4)].add_building(Depot(id=BuildingID("d")))
    node, _, route = Navigator().find_closest_node(NodeID(4), graph, BuildingTypeCriteria(Depot))
    assert node == NodeID(4)
    assert route == [NodeID(4)]


def test_find_closest_node_no_match() -> None:
    """Test that no match yields a triple of None."""
    graph = create_grid_graph()
    result = Navigator().find_closest_node(NodeID(0), graph, BuildingTypeCriteria(Depot))
    assert result == (None, None, None)


def test_road_object_criteria_returns_object_id() -> None:
    """Test object criteria match objects through the lookup callable."""
    graph = create_grid_graph()
    objects = {NodeID(5): ["p-big", "p-small"], NodeID(2): ["p-far"]}
    criteria = RoadObjectCriteria(lambda n: objects.get(n, []), lambda obj: obj != "p-big")

    node, item, _ = Navigator().find_closest_node(NodeID(4), graph, criteria)
    assert node == NodeID(5)
    assert item == "p-small"


def test_road_object_criteria_without_predicate() -> None:
    """Test object criteria accept any object when no predicate is given."""
    graph = create_grid_graph()
    criteria = RoadObjectCriteria(lambda n: ["x"] if n == NodeID(3) else [])
    matches, item = criteria.matches(graph.nodes[NodeID(3)], graph)
    assert matches is True
    assert item == "x"
    assert criteria.matches(graph.nodes[NodeID(4)], graph) == (False, None)
