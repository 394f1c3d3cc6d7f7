"""Fleet-wide properties that hold over whole simulation runs."""

import logging
from collections import Counter

import pytest

from agents.dispatch import roles
from core.fsm import DispatchState
from core.parcels.parcel import Parcel
from core.types import AgentID, EdgeID, NodeID, ObjectKind, ParcelID, ParcelState, Role
from world.generation import ScenarioGenerator, ScenarioParams
from world.graph.graph import Graph
from world.graph.node import Node
from world.sim.dto.vehicle_dto import VehicleCreateDTO
from world.world import World


def create_busy_world() -> World:
    params = ScenarioParams(
        num_nodes=25,
        num_depots=2,
        depot_capacity=15,
        num_pickup_vehicles=3,
        num_delivery_vehicles=2,
        num_courier_vehicles=2,
        vehicle_capacity=4,
        initial_parcels=10,
        max_parcel_size=4,
        new_parcel_prob=0.3,
        service_duration_s=20.0,
        dt_s=10.0,
        seed=11,
    )
    return ScenarioGenerator(params).generate()


def check_containers(world: World) -> None:
    """No container over capacity and every parcel in at most one place."""
    containers = [v.id for v in world.vehicles()] + list(world.depots)
    seen: Counter[str] = Counter()
    for container_id in containers:
        contents = world.pdp.contents(container_id)
        assert world.pdp.contents_size(container_id) <= world.pdp.container_capacity(container_id)
        seen.update(p.id for p in contents)

    on_road = set(world.road.objects_of_kind(ObjectKind.PARCEL))
    for parcel in world.pdp.parcels():
        placements = seen[parcel.id] + (parcel.id in on_road)
        assert placements == 1, f"{parcel.id} is in {placements} places"
        if parcel.state == ParcelState.AVAILABLE:
            assert parcel.id in on_road
        elif parcel.state == ParcelState.IN_CARGO:
            assert world.pdp.container_of(parcel.id) in {v.id for v in world.vehicles()}
        else:
            assert world.pdp.container_of(parcel.id) in world.depots


def test_capacity_and_exclusivity_hold_every_tick() -> None:
    """Test a busy mixed fleet never breaks container bookkeeping."""
    world = create_busy_world()
    for _ in range(400):
        world.step()
        check_containers(world)

    assert world.statistics().parcels_delivered + world.statistics().parcels_at_depot > 0


def test_commitments_point_at_live_parcels() -> None:
    """Test committed vehicles pursue parcels that still exist."""
    world = create_busy_world()
    for _ in range(200):
        world.step()
        for vehicle in world.vehicles():
            state = vehicle.state
            if state.commitment is None:
                assert state.committed_credit == 0.0
            else:
                assert state.phase == DispatchState.COMMITTED


def test_zero_budget_returns_same_record() -> None:
    """Test a step without time leaves the record untouched."""
    world = create_busy_world()
    for _ in range(30):
        world.step()
    snapshot = world.get_state()
    for vehicle in world.vehicles():
        state = vehicle.state
        assert roles.decide(state, world.dispatch, 0.0) is state
        assert roles.decide(state, world.dispatch, -1.0) is state
    assert world.get_state() == snapshot


def test_unpriceable_step_is_skipped(caplog: pytest.LogCaptureFixture) -> None:
    """Test a leg to an unreachable node leaves the record unchanged."""
    graph = Graph()
    for i in (0, 1, 9):
        graph.add_node(Node(id=NodeID(i), x=i * 100.0, y=0.0))
    graph.add_road(EdgeID(0), NodeID(0), NodeID(1), 100.0, 50.0)
    world = World(graph, dt_s=10.0)
    dto = VehicleCreateDTO(role=Role.COURIER, capacity=5, speed_kph=36.0)
    world.add_vehicle(dto.to_vehicle(AgentID("c")), NodeID(0))
    world.add_parcel(
        Parcel(
            id=ParcelID("p1"), pickup_node=NodeID(0), delivery_node=NodeID(9), needed_capacity=1
        )
    )

    world.step()  # commit
    world.step()  # pick up
    before = world.agents[AgentID("c")].state

    with caplog.at_level(logging.WARNING, logger="agents.dispatch.roles"):
        world.step()

    assert world.agents[AgentID("c")].state is before
    assert "skips this step" in caplog.text
