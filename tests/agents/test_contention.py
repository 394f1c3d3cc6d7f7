"""Tests for claim detection between vehicles."""

from agents.dispatch.contention import ContentionResolver
from core.parcels.parcel import Parcel
from core.types import AgentID, EdgeID, NodeID, ParcelID
from world.graph.graph import Graph
from world.graph.node import Node
from world.pdp_model import PDPModel
from world.road_model import RoadModel


def create_resolver() -> tuple[ContentionResolver, RoadModel, PDPModel]:
    """Line 0 - 1 - 2 - 3 (1 km roads) with vehicles a at 0 and b at 3."""
    graph = Graph()
    for i in range(4):
        graph.add_node(Node(id=NodeID(i), x=i * 1000.0, y=0.0))
    for i in range(3):
        graph.add_road(EdgeID(2 * i), NodeID(i), NodeID(i + 1), 1000.0, 50.0)
    road = RoadModel(graph)
    pdp = PDPModel(road)
    for vehicle_id, node in (("a", 0), ("b", 3)):
        road.add_vehicle(AgentID(vehicle_id), NodeID(node), 36.0)
        pdp.register_container(vehicle_id, 5)
    return ContentionResolver(road, pdp), road, pdp


def add_parcel(pdp: PDPModel, parcel_id: str, node: int, size: int = 1) -> Parcel:
    parcel = Parcel(
        id=ParcelID(parcel_id),
        pickup_node=NodeID(node),
        delivery_node=NodeID(0 if node else 3),
        needed_capacity=size,
    )
    pdp.register_parcel(parcel)
    return parcel


def test_parcel_is_unclaimed_without_destinations() -> None:
    """Test committing alone does not claim a parcel."""
    resolver, _, pdp = create_resolver()
    parcel = add_parcel(pdp, "p1", 1)
    assert not resolver.is_claimed(AgentID("a"), parcel)


def test_other_vehicle_heading_to_pickup_claims_parcel() -> None:
    """Test a declared destination at the pickup node claims the parcel for others only."""
    resolver, road, pdp = create_resolver()
    parcel = add_parcel(pdp, "p1", 1)
    road.move_toward(AgentID("b"), NodeID(1), 10.0)

    assert resolver.is_claimed(AgentID("a"), parcel)
    assert not resolver.is_claimed(AgentID("b"), parcel)


def test_claim_ends_when_destination_is_withdrawn() -> None:
    """Test claims are recomputed from the current destinations."""
    resolver, road, pdp = create_resolver()
    parcel = add_parcel(pdp, "p1", 1)
    road.move_toward(AgentID("b"), NodeID(1), 10.0)
    road.clear_destination(AgentID("b"))

    assert not resolver.is_claimed(AgentID("a"), parcel)


def test_closest_unclaimed_skips_claimed_and_oversized() -> None:
    """Test the replacement search honours claims and capacity."""
    resolver, road, pdp = create_resolver()
    add_parcel(pdp, "near", 1)
    add_parcel(pdp, "big", 2, size=4)
    add_parcel(pdp, "far", 3)
    road.move_toward(AgentID("b"), NodeID(1), 10.0)

    found = resolver.closest_unclaimed_parcel(AgentID("a"), max_capacity=3)
    assert found is not None and found.id == "far"

    found = resolver.closest_unclaimed_parcel(AgentID("a"), max_capacity=4)
    assert found is not None and found.id == "big"


def test_closest_unclaimed_none() -> None:
    """Test no candidate yields None."""
    resolver, _, pdp = create_resolver()
    add_parcel(pdp, "p1", 2, size=5)
    assert resolver.closest_unclaimed_parcel(AgentID("a"), max_capacity=2) is None
