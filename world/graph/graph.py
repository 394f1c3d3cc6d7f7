import json
import logging
import math
import xml.etree.ElementTree as ET

from core.buildings.base import Building
from core.types import EdgeID, NodeID
from world.graph.edge import DEFAULT_MAX_SPEED_KPH, Edge
from world.graph.node import Node

logger = logging.getLogger(__name__)


class Graph:
    """Graph class that manages nodes and edges of the road network."""

    def __init__(self) -> None:
        self.nodes: dict[NodeID, Node] = {}
        self.edges: dict[EdgeID, Edge] = {}
        self.out_adj: dict[NodeID, list[EdgeID]] = {}  # node -> outgoing edges
        self.in_adj: dict[NodeID, list[EdgeID]] = {}  # node -> incoming edges

    def add_node(self, node: Node) -> None:
        """Add a node to the graph."""
        if node.id in self.nodes:
            raise ValueError(f"Node {node.id} already exists")

        self.nodes[node.id] = node
        self.out_adj[node.id] = []
        self.in_adj[node.id] = []

    def add_edge(self, edge: Edge) -> None:
        """Add an edge to the graph."""
        if edge.id in self.edges:
            raise ValueError(f"Edge {edge.id} already exists")

        # Validate that both nodes exist
        if edge.from_node not in self.nodes:
            raise ValueError(f"Node {edge.from_node} does not exist")
        if edge.to_node not in self.nodes:
            raise ValueError(f"Node {edge.to_node} does not exist")

        self.edges[edge.id] = edge
        self.out_adj[edge.from_node].append(edge.id)
        self.in_adj[edge.to_node].append(edge.id)

    def add_road(
        self,
        edge_id: EdgeID,
        node_a: NodeID,
        node_b: NodeID,
        length_m: float,
        max_speed_kph: float = DEFAULT_MAX_SPEED_KPH,
    ) -> tuple[Edge, Edge]:
        """Add a two-way road as a pair of directed edges.

        The reverse edge gets id ``edge_id + 1``.
        """
        forward = Edge(EdgeID(edge_id), node_a, node_b, length_m, max_speed_kph)
        backward = Edge(EdgeID(edge_id + 1), node_b, node_a, length_m, max_speed_kph)
        self.add_edge(forward)
        self.add_edge(backward)
        return forward, backward

    def remove_node(self, node_id: NodeID) -> None:
        """Remove a node and all its associated edges."""
        if node_id not in self.nodes:
            raise ValueError(f"Node {node_id} does not exist")

        for edge_id in list(self.out_adj[node_id]) + list(self.in_adj[node_id]):
            if edge_id in self.edges:
                self.remove_edge(edge_id)

        del self.nodes[node_id]
        del self.out_adj[node_id]
        del self.in_adj[node_id]

    def remove_edge(self, edge_id: EdgeID) -> None:
        """Remove an edge from the graph."""
        if edge_id not in self.edges:
            raise ValueError(f"Edge {edge_id} does not exist")

        edge = self.edges[edge_id]

        # Remove from adjacency lists
        if edge_id in self.out_adj[edge.from_node]:
            self.out_adj[edge.from_node].remove(edge_id)
        if edge_id in self.in_adj[edge.to_node]:
            self.in_adj[edge.to_node].remove(edge_id)

        del self.edges[edge_id]

    def get_node(self, node_id: NodeID) -> Node | None:
        """Get a node by ID."""
        return self.nodes.get(node_id)

    def get_edge(self, edge_id: EdgeID) -> Edge | None:
        """Get an edge by ID."""
        return self.edges.get(edge_id)

    def get_outgoing_edges(self, node_id: NodeID) -> list[Edge]:
        """Get all outgoing edges from a node."""
        edge_ids = self.out_adj.get(node_id, [])
        return [self.edges[edge_id] for edge_id in edge_ids if edge_id in self.edges]

    def get_incoming_edges(self, node_id: NodeID) -> list[Edge]:
        """Get all incoming edges to a node."""
        edge_ids = self.in_adj.get(node_id, [])
        return [self.edges[edge_id] for edge_id in edge_ids if edge_id in self.edges]

    def find_edge(self, from_node: NodeID, to_node: NodeID) -> Edge | None:
        """Get the shortest edge leading directly from one node to another."""
        candidates = [e for e in self.get_outgoing_edges(from_node) if e.to_node == to_node]
        if not candidates:
            return None
        return min(candidates, key=lambda e: e.length_m)

    def get_neighbors(self, node_id: NodeID) -> list[NodeID]:
        """Get all neighbor nodes (connected by edges)."""
        neighbors = set()
        for edge in self.get_outgoing_edges(node_id):
            neighbors.add(edge.to_node)
        for edge in self.get_incoming_edges(node_id):
            neighbors.add(edge.from_node)
        return list(neighbors)

    def get_node_count(self) -> int:
        """Get the number of nodes in the graph."""
        return len(self.nodes)

    def get_edge_count(self) -> int:
        """Get the number of edges in the graph."""
        return len(self.edges)

    def is_connected(self) -> bool:
        """Check if the graph is connected (all nodes reachable from any node)."""
        if not self.nodes:
            return True

        # Start DFS from the first node
        start_node = next(iter(self.nodes.keys()))
        visited = set()
        stack = [start_node]

        while stack:
            node_id = stack.pop()
            if node_id in visited:
                continue
            visited.add(node_id)

            # Add all neighbors to stack
            for neighbor in self.get_neighbors(node_id):
                if neighbor not in visited:
                    stack.append(neighbor)

        return len(visited) == len(self.nodes)

    def strongly_connected_components(self) -> list[set[NodeID]]:
        """Compute strongly connected components (iterative Kosaraju).

        Returns:
            Components sorted from largest to smallest
        """
        # Pass 1: record DFS finishing order on the forward graph
        order: list[NodeID] = []
        visited: set[NodeID] = set()
        for root in self.nodes:
            if root in visited:
                continue
            visited.add(root)
            stack = [(root, iter(self.get_outgoing_edges(root)))]
            while stack:
                node_id, edges = stack[-1]
                advanced = False
                for edge in edges:
                    if edge.to_node not in visited:
                        visited.add(edge.to_node)
                        stack.append((edge.to_node, iter(self.get_outgoing_edges(edge.to_node))))
                        advanced = True
                        break
                if not advanced:
                    order.append(node_id)
                    stack.pop()

        # Pass 2: collect components on the reversed graph
        components: list[set[NodeID]] = []
        assigned: set[NodeID] = set()
        for root in reversed(order):
            if root in assigned:
                continue
            component = {root}
            assigned.add(root)
            pending = [root]
            while pending:
                node_id = pending.pop()
                for edge in self.get_incoming_edges(node_id):
                    if edge.from_node not in assigned:
                        assigned.add(edge.from_node)
                        component.add(edge.from_node)
                        pending.append(edge.from_node)
            components.append(component)

        components.sort(key=len, reverse=True)
        return components

    def prune_to_largest_component(self) -> int:
        """Drop every node outside the largest strongly connected component.

        Guarantees that every remaining node can reach every other one.

        Returns:
            Number of removed nodes
        """
        components = self.strongly_connected_components()
        if len(components) <= 1:
            return 0
        keep = components[0]
        removed = [node_id for node_id in self.nodes if node_id not in keep]
        for node_id in removed:
            self.remove_node(node_id)
        logger.info(f"Pruned {len(removed)} nodes outside the largest component")
        return len(removed)

    def __str__(self) -> str:
        """String representation of the graph."""
        return f"Graph(nodes={len(self.nodes)}, edges={len(self.edges)})"

    def __repr__(self) -> str:
        """Detailed representation of the graph."""
        return f"Graph(nodes={list(self.nodes.keys())}, edges={list(self.edges.keys())})"

    def to_graphml(self, filepath: str) -> None:
        """Export graph to GraphML format."""
        root = ET.Element("graphml", xmlns="http://graphml.graphdrawing.org/xmlns")

        # Define attributes for nodes
        node_x_key = ET.SubElement(root, "key", id="node_x", for_="node", type="double")
        node_x_key.set("attr.name", "x")

        node_y_key = ET.SubElement(root, "key", id="node_y", for_="node", type="double")
        node_y_key.set("attr.name", "y")

        node_buildings_key = ET.SubElement(root, "key", id="node_buildings", for_="node")
        node_buildings_key.set("attr.name", "buildings")

        # Define attributes for edges
        edge_length_key = ET.SubElement(root, "key", id="edge_length", for_="edge", type="double")
        edge_length_key.set("attr.name", "length_m")

        edge_speed_key = ET.SubElement(root, "key", id="edge_speed", for_="edge", type="double")
        edge_speed_key.set("attr.name", "max_speed_kph")

        graph = ET.SubElement(root, "graph", id="graph", edgedefault="directed")

        for node_id, node in self.nodes.items():
            node_elem = ET.SubElement(graph, "node", id=str(node_id))

            x_data = ET.SubElement(node_elem, "data", key="node_x")
            x_data.text = str(node.x)

            y_data = ET.SubElement(node_elem, "data", key="node_y")
            y_data.text = str(node.y)

            # Buildings as JSON string
            if node.buildings:
                buildings_data = ET.SubElement(node_elem, "data", key="node_buildings")
                buildings_data.text = json.dumps([b.to_dict() for b in node.buildings])

        for edge_id, edge in self.edges.items():
            edge_elem = ET.SubElement(
                graph, "edge", id=str(edge_id), source=str(edge.from_node), target=str(edge.to_node)
            )

            length_data = ET.SubElement(edge_elem, "data", key="edge_length")
            length_data.text = str(edge.length_m)

            speed_data = ET.SubElement(edge_elem, "data", key="edge_speed")
            speed_data.text = str(edge.max_speed_kph)

        tree = ET.ElementTree(root)
        ET.indent(tree, space="  ", level=0)
        tree.write(filepath, encoding="utf-8", xml_declaration=True)

    @classmethod
    def from_graphml(cls, filepath: str) -> "Graph":
        """Import graph from GraphML format.

        A missing or malformed edge speed falls back to the default urban speed
        limit instead of failing the import.
        """
        tree = ET.parse(filepath)
        root = tree.getroot()

        namespace = {"default": "http://graphml.graphdrawing.org/xmlns"}

        graph = cls()

        graph_elem = root.find("default:graph", namespace)
        if graph_elem is None:
            graph_elem = root.find("graph")

        if graph_elem is None:
            raise ValueError("No graph element found in GraphML file")

        node_elems = graph_elem.findall("default:node", namespace)
        if not node_elems:
            node_elems = graph_elem.findall("node")

        for node_elem in node_elems:
            node_id_attr = node_elem.get("id")
            if node_id_attr is None:
                raise ValueError("Node missing id attribute")
            node_id = int(node_id_attr)

            x = None
            y = None
            buildings_json = None

            data_elems = node_elem.findall("default:data", namespace)
            if not data_elems:
                data_elems = node_elem.findall("data")

            for data_elem in data_elems:
                key = data_elem.get("key")

                if key == "node_x":
                    if data_elem.text is not None:
                        x = float(data_elem.text)
                elif key == "node_y":
                    if data_elem.text is not None:
                        y = float(data_elem.text)
                elif key == "node_buildings":
                    buildings_json = data_elem.text

            if x is None or y is None:
                raise ValueError(f"Node {node_id} missing coordinates")

            node = Node(id=NodeID(node_id), x=x, y=y)

            if buildings_json:
                try:
                    for b_data in json.loads(buildings_json):
                        node.add_building(Building.from_dict(b_data))
                except (json.JSONDecodeError, KeyError) as e:
                    raise ValueError(f"Failed to parse buildings for node {node_id}: {e}")

            graph.add_node(node)

        edge_elems = graph_elem.findall("default:edge", namespace)
        if not edge_elems:
            edge_elems = graph_elem.findall("edge")

        for edge_elem in edge_elems:
            edge_id_attr = edge_elem.get("id")
            if edge_id_attr is None:
                raise ValueError("Edge missing id attribute")
            edge_id = int(edge_id_attr)

            from_node_attr = edge_elem.get("source")
            if from_node_attr is None:
                raise ValueError("Edge missing source attribute")
            from_node = NodeID(int(from_node_attr))

            to_node_attr = edge_elem.get("target")
            if to_node_attr is None:
                raise ValueError("Edge missing target attribute")
            to_node = NodeID(int(to_node_attr))

            length_m = None
            speed_text = None

            data_elems = edge_elem.findall("default:data", namespace)
            if not data_elems:
                data_elems = edge_elem.findall("data")

            for data_elem in data_elems:
                key = data_elem.get("key")

                if key == "edge_length" and data_elem.text is not None:
                    length_m = float(data_elem.text)
                elif key == "edge_speed":
                    speed_text = data_elem.text

            if length_m is None:
                raise ValueError(f"Edge {edge_id} missing required attributes")

            graph.add_edge(
                Edge(
                    id=EdgeID(edge_id),
                    from_node=from_node,
                    to_node=to_node,
                    length_m=length_m,
                    max_speed_kph=_parse_speed(edge_id, speed_text),
                )
            )

        return graph


def _parse_speed(edge_id: int, text: str | None) -> float:
    """Parse an edge speed limit, substituting the default when unusable."""
    if text is None:
        return DEFAULT_MAX_SPEED_KPH
    try:
        speed = float(text)
    except ValueError:
        speed = math.nan
    if not math.isfinite(speed) or speed <= 0:
        logger.warning(
            f"Edge {edge_id} has unusable max speed {text!r}, "
            f"using {DEFAULT_MAX_SPEED_KPH} km/h"
        )
        return DEFAULT_MAX_SPEED_KPH
    return speed
