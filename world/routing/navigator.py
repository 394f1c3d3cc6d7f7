"""Shortest-path services for vehicles navigating the road network."""

import heapq
import math
from typing import Any

from core.types import NodeID
from world.graph.edge import Edge
from world.graph.graph import Graph
from world.routing.criteria import NodeCriteria


class Navigator:
    """Provides A* routing and Dijkstra nearest-match search by road length.

    Costs are edge lengths in metres, so routes are shortest paths along the
    network geometry and node coordinates are assumed to be in metres.
    """

    def find_route(self, start: NodeID, goal: NodeID, graph: Graph) -> list[NodeID]:
        """Find the shortest route from start to goal using A*.

        Args:
            start: Starting node ID
            goal: Destination node ID
            graph: Graph to navigate

        Returns:
            List of NodeIDs forming the path from start to goal (inclusive).
            Empty list if no path exists.

        Notes:
            - Cost function: edge.length_m
            - Heuristic: Euclidean distance between node coordinates
        """
        # Edge case: start equals goal
        if start == goal:
            return [start]

        # Validate nodes exist
        if start not in graph.nodes or goal not in graph.nodes:
            return []

        goal_node = graph.nodes[goal]

        def heuristic(node_id: NodeID) -> float:
            """Straight-line distance to the goal."""
            node = graph.nodes[node_id]
            return math.hypot(node.x - goal_node.x, node.y - goal_node.y)

        # Priority queue: (f_score, counter, node_id)
        counter = 0  # Tie-breaker for equal f_scores
        open_set: list[tuple[float, int, NodeID]] = [(heuristic(start), counter, start)]
        counter += 1

        g_score: dict[NodeID, float] = {start: 0.0}
        came_from: dict[NodeID, NodeID] = {}
        closed: set[NodeID] = set()

        while open_set:
            _, _, current = heapq.heappop(open_set)
            if current in closed:
                continue
            closed.add(current)

            if current == goal:
                return self._reconstruct(came_from, current)

            current_g = g_score[current]
            for edge in graph.get_outgoing_edges(current):
                neighbor = edge.to_node
                if neighbor in closed:
                    continue

                tentative_g = current_g + self._calculate_edge_cost(edge)
                if neighbor not in g_score or tentative_g < g_score[neighbor]:
                    came_from[neighbor] = current
                    g_score[neighbor] = tentative_g
                    heapq.heappush(open_set, (tentative_g + heuristic(neighbor), counter, neighbor))
                    counter += 1

        # No path found
        return []

    def route_length_m(self, route: list[NodeID], graph: Graph) -> float:
        """Calculate the length of a route in metres.

        Args:
            route: List of node IDs forming the route
            graph: Graph containing the nodes and edges

        Returns:
            Total length in metres, infinity if two consecutive nodes are not joined
        """
        total = 0.0
        for from_node, to_node in zip(route, route[1:]):
            edge = graph.find_edge(from_node, to_node)
            if edge is None:
                return math.inf
            total += self._calculate_edge_cost(edge)
        return total

    def shortest_distance_m(self, start: NodeID, goal: NodeID, graph: Graph) -> float:
        """Shortest network distance between two nodes.

        Returns:
            Distance in metres. Returns float('inf') if no route exists.
        """
        route = self.find_route(start, goal, graph)
        if not route:
            return math.inf
        return self.route_length_m(route, graph)

    def find_closest_node(
        self,
        start: NodeID,
        graph: Graph,
        criteria: NodeCriteria,
        initial_cost_m: float = 0.0,
    ) -> tuple[NodeID | None, Any | None, list[NodeID] | None]:
        """Find the closest node that satisfies the given criteria using Dijkstra.

        Performs a single shortest-path tree expansion from start, stopping at
        the first node that matches the criteria. Nodes that cannot be reached
        are never returned.

        Args:
            start: Starting node ID
            graph: Graph to navigate
            criteria: Node matching criteria
            initial_cost_m: Distance already needed to reach start (e.g. the rest
                of the edge a vehicle is driving on)

        Returns:
            Tuple of (node_id, matched_item, route) or (None, None, None) if no match found
            - node_id: The closest matching node
            - matched_item: The object that satisfied the criteria
            - route: List of NodeIDs from start to node_id (inclusive)

        Complexity:
            O(E log V) in worst case, typically much faster as it stops at first match
        """
        if start not in graph.nodes:
            return None, None, None

        # Priority queue: (cost_from_start, counter, node_id)
        counter = 0
        open_set: list[tuple[float, int, NodeID]] = [(initial_cost_m, counter, start)]
        counter += 1

        cost_from_start: dict[NodeID, float] = {start: initial_cost_m}
        prev: dict[NodeID, NodeID] = {}
        visited: set[NodeID] = set()

        while open_set:
            current_cost, _, current = heapq.heappop(open_set)

            if current in visited:
                continue
            visited.add(current)

            matches, matched_item = criteria.matches(graph.nodes[current], graph)
            if matches:
                return current, matched_item, self._reconstruct(prev, current)

            for edge in graph.get_outgoing_edges(current):
                neighbor = edge.to_node

                if neighbor in visited:
                    continue

                tentative_cost = current_cost + self._calculate_edge_cost(edge)
                if neighbor not in cost_from_start or tentative_cost < cost_from_start[neighbor]:
                    cost_from_start[neighbor] = tentative_cost
                    prev[neighbor] = current
                    heapq.heappush(open_set, (tentative_cost, counter, neighbor))
                    counter += 1

        # No matching node found
        return None, None, None

    @staticmethod
    def _reconstruct(came_from: dict[NodeID, NodeID], current: NodeID) -> list[NodeID]:
        path = [current]
        while current in came_from:
            current = came_from[current]
            path.append(current)
        path.reverse()
        return path

    def _calculate_edge_cost(self, edge: Edge) -> float:
        """Cost to traverse an edge (its length in metres)."""
        return edge.length_m
