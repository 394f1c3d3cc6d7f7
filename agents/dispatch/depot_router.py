"""Depot trips: when to return, where to go and bulk transfers on arrival."""

import logging
from dataclasses import replace
from typing import cast

from agents.dispatch.interfaces import ParcelRegistry, RoadNetwork
from core.buildings.base import Building
from core.buildings.depot import Depot
from core.economics.cost_model import CostModel
from core.fsm import DispatchState
from core.parcels.parcel import Parcel
from core.types import NodeID, ParcelID
from core.vehicles.state import VehicleState

logger = logging.getLogger(__name__)


class DepotRouter:
    """Routes vehicles to depots and moves parcels between vehicles and depot buffers."""

    def __init__(self, road: RoadNetwork, registry: ParcelRegistry, cost_model: CostModel) -> None:
        self.road = road
        self.registry = registry
        self.cost_model = cost_model

    def is_full(self, vehicle_id: str) -> bool:
        return self.registry.contents_size(vehicle_id) >= self.registry.container_capacity(
            vehicle_id
        )

    def should_return(self, state: VehicleState) -> bool:
        """A vehicle heads back when flagged or when its cargo space is used up."""
        return state.should_return_to_depot or self.is_full(state.id)

    def nearest_depot(
        self,
        vehicle_id: str,
        unloadable: list[int] | None = None,
        loadable_by: str | None = None,
    ) -> tuple[Depot, NodeID] | None:
        """Find the closest reachable depot.

        Args:
            vehicle_id: Vehicle whose position is the search origin
            unloadable: Parcel sizes to unload; only depots with free storage
                for at least one of them are accepted
            loadable_by: Only accept depots holding at least one parcel that fits
                the remaining capacity of this vehicle

        Returns:
            Tuple of (depot, node_id) or None
        """

        def accepts(building: Building) -> bool:
            if unloadable is not None:
                space = self.registry.available_capacity(building.id)
                if not any(size <= space for size in unloadable):
                    return False
            if loadable_by is not None:
                room = self.registry.available_capacity(loadable_by)
                return any(p.needed_capacity <= room for p in self.registry.contents(building.id))
            return True

        found = self.road.nearest_building(vehicle_id, Depot, accepts)
        if found is None:
            return None
        building, node = found
        return cast(Depot, building), node

    def return_depot(
        self, vehicle_id: str, incoming: Parcel | None = None
    ) -> tuple[Depot, NodeID] | None:
        """Depot a returning vehicle heads to.

        The nearest depot with room for at least one carried parcel wins; when
        no depot has such room the nearest one is used.

        Args:
            vehicle_id: Returning vehicle
            incoming: Parcel about to be picked up, counted as carried
        """
        sizes = [p.needed_capacity for p in self.registry.contents(vehicle_id)]
        if incoming is not None:
            sizes.append(incoming.needed_capacity)
        return self.nearest_depot(vehicle_id, unloadable=sizes) or self.nearest_depot(vehicle_id)

    def depot_trip_cost(self, vehicle_id: str, incoming: Parcel | None = None) -> float:
        """Moving cost of the trip to the return depot, 0 when none is reachable."""
        found = self.return_depot(vehicle_id, incoming)
        if found is None:
            return 0.0
        _, node = found
        return self.cost_model.moving_cost(self.road.distance_m(vehicle_id, node) / 1000.0)

    def return_to_depot(self, state: VehicleState, time_budget_s: float) -> VehicleState:
        """Drive toward the return depot and unload on arrival.

        When no depot has room for any carried parcel the nearest one is used
        and the vehicle keeps what does not fit.
        """
        found = self.return_depot(state.id)
        if found is None:
            logger.warning(f"Vehicle {state.id} has no reachable depot to return to")
            return replace(state, phase=DispatchState.RETURNING_TO_DEPOT)

        depot, node = found
        remaining = self.road.move_toward(state.id, node, time_budget_s)
        if not self.road.is_at(state.id, node):
            return replace(state, phase=DispatchState.RETURNING_TO_DEPOT)

        dropped = self.unload_into_depot(state.id, depot.id, remaining)
        logger.debug(f"Vehicle {state.id} dropped {len(dropped)} parcel(s) at depot {depot.id}")
        return replace(state, should_return_to_depot=False, phase=DispatchState.SEEKING)

    def unload_into_depot(
        self, vehicle_id: str, depot_id: str, time_budget_s: float
    ) -> list[ParcelID]:
        """Drop every carried parcel that still fits into the depot buffer."""
        dropped: list[ParcelID] = []
        remaining = time_budget_s
        for parcel in self.registry.contents(vehicle_id):
            if parcel.needed_capacity <= self.registry.available_capacity(depot_id):
                remaining = self.registry.drop(vehicle_id, parcel.id, depot_id, remaining)
                dropped.append(parcel.id)
        kept = len(self.registry.contents(vehicle_id))
        if kept:
            logger.warning(f"Depot {depot_id} is full, vehicle {vehicle_id} keeps {kept} parcel(s)")
        return dropped

    def load_from_depot(self, vehicle_id: str, depot_id: str) -> list[ParcelID]:
        """Load parcels from a depot buffer in buffer order.

        Parcels that do not fit the remaining capacity are skipped and the pass
        continues with the next one.
        """
        loaded: list[ParcelID] = []
        for parcel in self.registry.contents(depot_id):
            if parcel.needed_capacity <= self.registry.available_capacity(vehicle_id):
                self.registry.add_parcel_in(vehicle_id, parcel.id)
                loaded.append(parcel.id)
        return loaded
