"""Pickup-and-delivery registry: parcels, containers and service times."""

import logging
from collections.abc import Callable
from typing import Any

from core.parcels.parcel import Parcel
from core.types import NodeID, ObjectKind, ParcelID, ParcelState
from world.road_model import RoadModel

logger = logging.getLogger(__name__)


class PDPModel:
    """Owns every parcel and the containers (vehicles and depots) that hold them.

    Containers keep their contents in insertion order. Pickup and delivery
    consume the parcel's service duration from the caller's time budget; any
    part that does not fit is owed by the vehicle and paid out of its next
    budgets through ``continue_previous_actions``.

    All mutating primitives check their preconditions and raise ValueError
    when they do not hold, so capacity (no container holds more than its
    capacity) and exclusivity (a parcel sits in at most one container) are
    never broken.
    """

    def __init__(
        self,
        road_model: RoadModel,
        emit_event: Callable[[dict[str, Any]], None] | None = None,
    ) -> None:
        self.road = road_model
        self._emit = emit_event
        self._parcels: dict[ParcelID, Parcel] = {}
        self._contents: dict[str, list[ParcelID]] = {}
        self._capacities: dict[str, int] = {}
        self._container_nodes: dict[str, NodeID] = {}  # Fixed containers only
        self._holder: dict[ParcelID, str] = {}
        self._pending_service_s: dict[str, float] = {}
        self.delivered: list[ParcelID] = []

    # Containers

    def register_container(
        self, container_id: str, capacity: int, node: NodeID | None = None
    ) -> None:
        """Register a vehicle or depot able to hold parcels.

        Args:
            container_id: Vehicle or depot id
            capacity: Total parcel units the container can hold
            node: Location of a fixed container (depot); vehicles are located
                through the road model
        """
        if container_id in self._contents:
            raise ValueError(f"Container {container_id} is already registered")
        if capacity < 1:
            raise ValueError(f"Container {container_id} capacity must be positive")
        self._contents[container_id] = []
        self._capacities[container_id] = capacity
        if node is not None:
            self._container_nodes[container_id] = node

    def contents(self, container_id: str) -> list[Parcel]:
        """Parcels held by a container in insertion order."""
        return [self._parcels[pid] for pid in self._require_container(container_id)]

    def container_capacity(self, container_id: str) -> int:
        self._require_container(container_id)
        return self._capacities[container_id]

    def contents_size(self, container_id: str) -> int:
        """Parcel units currently occupied in a container."""
        return sum(parcel.needed_capacity for parcel in self.contents(container_id))

    def available_capacity(self, container_id: str) -> int:
        return self.container_capacity(container_id) - self.contents_size(container_id)

    def container_contains(self, container_id: str, parcel_id: ParcelID) -> bool:
        return self._holder.get(parcel_id) == container_id

    def container_of(self, parcel_id: ParcelID) -> str | None:
        """Container currently holding a parcel, if any."""
        return self._holder.get(parcel_id)

    # Parcels

    def register_parcel(self, parcel: Parcel) -> None:
        """Put a new parcel on the network at its pickup node."""
        if parcel.id in self._parcels or parcel.id in self.delivered:
            raise ValueError(f"Parcel {parcel.id} already exists")
        if not parcel.is_available():
            raise ValueError(f"Parcel {parcel.id} must be registered as available")
        self.road.add_object(parcel.id, parcel.pickup_node, ObjectKind.PARCEL)
        self._parcels[parcel.id] = parcel
        self._emit_event(
            {"type": "parcel_created", "parcel_id": parcel.id, "data": parcel.to_dict()}
        )

    def get_parcel(self, parcel_id: ParcelID) -> Parcel | None:
        """Look up a parcel that has not been delivered yet."""
        return self._parcels.get(parcel_id)

    def parcels(self, state: ParcelState | None = None) -> list[Parcel]:
        """Parcels still in the system, optionally filtered by state."""
        return [p for p in self._parcels.values() if state is None or p.state == state]

    # Service primitives

    def pickup(self, vehicle_id: str, parcel_id: ParcelID, time_budget_s: float) -> float:
        """Load a parcel waiting on the network into a vehicle.

        Args:
            vehicle_id: Vehicle standing on the parcel's pickup node
            parcel_id: Available parcel
            time_budget_s: Time left in the current step

        Returns:
            Time left after the pickup duration (0 if service continues later)

        Raises:
            ValueError: If the parcel is not available, the vehicle is not at the
                pickup node or the parcel does not fit
        """
        parcel = self._require_parcel(parcel_id)
        if not parcel.is_available() or not self.road.contains_object(parcel_id):
            raise ValueError(f"Parcel {parcel_id} is not available for pickup")
        if not self.road.is_at(vehicle_id, parcel.pickup_node):
            raise ValueError(f"Vehicle {vehicle_id} is not at the pickup node of {parcel_id}")
        self._check_fits(vehicle_id, parcel)

        self.road.remove_object(parcel_id)
        self._put(vehicle_id, parcel)
        self._emit_event(
            {"type": "parcel_picked_up", "parcel_id": parcel_id, "vehicle_id": vehicle_id}
        )
        return self._serve(vehicle_id, parcel.pickup_duration_s, time_budget_s)

    def deliver(self, vehicle_id: str, parcel_id: ParcelID, time_budget_s: float) -> float:
        """Hand a carried parcel over at its delivery node.

        Raises:
            ValueError: If the vehicle does not carry the parcel or is not at its
                delivery node
        """
        parcel = self._require_parcel(parcel_id)
        if not self.container_contains(vehicle_id, parcel_id):
            raise ValueError(f"Vehicle {vehicle_id} does not carry parcel {parcel_id}")
        if not self.road.is_at(vehicle_id, parcel.delivery_node):
            raise ValueError(f"Vehicle {vehicle_id} is not at the delivery node of {parcel_id}")

        self._take(vehicle_id, parcel)
        parcel.state = ParcelState.DELIVERED
        del self._parcels[parcel_id]
        self.delivered.append(parcel_id)
        self._emit_event(
            {"type": "parcel_delivered", "parcel_id": parcel_id, "vehicle_id": vehicle_id}
        )
        return self._serve(vehicle_id, parcel.delivery_duration_s, time_budget_s)

    def drop(
        self, vehicle_id: str, parcel_id: ParcelID, depot_id: str, time_budget_s: float
    ) -> float:
        """Move a carried parcel into the buffer of the depot the vehicle stands at.

        Raises:
            ValueError: If the vehicle does not carry the parcel, is not at the
                depot or the depot has no room for it
        """
        parcel = self._require_parcel(parcel_id)
        if not self.container_contains(vehicle_id, parcel_id):
            raise ValueError(f"Vehicle {vehicle_id} does not carry parcel {parcel_id}")
        self._require_colocated(vehicle_id, depot_id)
        self._check_fits(depot_id, parcel)

        self._take(vehicle_id, parcel)
        self._put(depot_id, parcel, ParcelState.AT_DEPOT)
        self._emit_event(
            {
                "type": "parcel_dropped",
                "parcel_id": parcel_id,
                "vehicle_id": vehicle_id,
                "depot_id": depot_id,
            }
        )
        return time_budget_s

    def add_parcel_in(self, container_id: str, parcel_id: ParcelID) -> None:
        """Load a parcel stored at a depot into a vehicle standing at that depot.

        Raises:
            ValueError: If the parcel is not stored at a depot, the vehicle is
                elsewhere or the parcel does not fit
        """
        parcel = self._require_parcel(parcel_id)
        source = self._holder.get(parcel_id)
        if parcel.state != ParcelState.AT_DEPOT or source is None:
            raise ValueError(f"Parcel {parcel_id} is not stored at a depot")
        self._require_colocated(container_id, source)
        self._check_fits(container_id, parcel)

        self._take(source, parcel)
        self._put(container_id, parcel)
        self._emit_event(
            {
                "type": "parcel_loaded",
                "parcel_id": parcel_id,
                "vehicle_id": container_id,
                "depot_id": source,
            }
        )

    def continue_previous_actions(self, vehicle_id: str, time_budget_s: float) -> float:
        """Spend the budget on service time still owed from earlier steps.

        Returns:
            Budget left for new decisions
        """
        pending = self._pending_service_s.pop(vehicle_id, 0.0)
        if pending <= 0:
            return time_budget_s
        return self._serve(vehicle_id, pending, time_budget_s)

    def pending_service_s(self, vehicle_id: str) -> float:
        return self._pending_service_s.get(vehicle_id, 0.0)

    # Internals

    def _serve(self, vehicle_id: str, duration_s: float, time_budget_s: float) -> float:
        if duration_s <= time_budget_s:
            return time_budget_s - duration_s
        self._pending_service_s[vehicle_id] = duration_s - max(time_budget_s, 0.0)
        return 0.0

    def _put(
        self, container_id: str, parcel: Parcel, state: ParcelState = ParcelState.IN_CARGO
    ) -> None:
        self._contents[container_id].append(parcel.id)
        self._holder[parcel.id] = container_id
        parcel.state = state

    def _take(self, container_id: str, parcel: Parcel) -> None:
        self._contents[container_id].remove(parcel.id)
        del self._holder[parcel.id]

    def _check_fits(self, container_id: str, parcel: Parcel) -> None:
        if parcel.needed_capacity > self.available_capacity(container_id):
            raise ValueError(f"Parcel {parcel.id} does not fit into {container_id}")

    def _require_colocated(self, vehicle_id: str, fixed_container_id: str) -> None:
        self._require_container(fixed_container_id)
        node = self._container_nodes.get(fixed_container_id)
        if node is None:
            raise ValueError(f"Container {fixed_container_id} has no fixed location")
        if not self.road.is_at(vehicle_id, node):
            raise ValueError(f"Vehicle {vehicle_id} is not at {fixed_container_id}")

    def _require_container(self, container_id: str) -> list[ParcelID]:
        if container_id not in self._contents:
            raise ValueError(f"Container {container_id} is not registered")
        return self._contents[container_id]

    def _require_parcel(self, parcel_id: ParcelID) -> Parcel:
        parcel = self._parcels.get(parcel_id)
        if parcel is None:
            raise ValueError(f"Parcel {parcel_id} does not exist")
        return parcel

    def _emit_event(self, event: dict[str, Any]) -> None:
        logger.debug(f"PDP event: {event['type']} {event['parcel_id']}")
        if self._emit is not None:
            self._emit(event)
