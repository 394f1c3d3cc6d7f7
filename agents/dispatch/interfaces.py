"""Narrow views of the road network and parcel registry used by dispatch.

Dispatch logic only talks to its collaborators through these protocols, so it
never depends on how positions, routes or containers are represented.
"""

from collections.abc import Callable
from typing import Any, Protocol

from core.buildings.base import Building
from core.parcels.parcel import Parcel
from core.types import NodeID, ObjectKind, ParcelID


class RoadNetwork(Protocol):
    """Road model queries and movement requests."""

    def position(self, obj_id: str) -> Any: ...

    def distance_m(self, obj_id: str, target: NodeID) -> float: ...

    def move_toward(self, vehicle_id: str, target: NodeID, time_budget_s: float) -> float: ...

    def is_at(self, obj_id: str, node: NodeID) -> bool: ...

    def contains_object(self, obj_id: str) -> bool: ...

    def nearest_available_parcel(
        self, obj_id: str, predicate: Callable[[str], bool] | None = None
    ) -> str | None: ...

    def nearest_building(
        self,
        obj_id: str,
        building_type: type[Building],
        predicate: Callable[[Building], bool] | None = None,
    ) -> tuple[Building, NodeID] | None: ...

    def destinations_of_kind(self, kind: ObjectKind) -> dict[str, NodeID | None]: ...

    def destination_of(self, vehicle_id: str) -> NodeID | None: ...

    def clear_destination(self, vehicle_id: str) -> None: ...


class ParcelRegistry(Protocol):
    """Parcel and container bookkeeping."""

    def get_parcel(self, parcel_id: ParcelID) -> Parcel | None: ...

    def contents(self, container_id: str) -> list[Parcel]: ...

    def container_capacity(self, container_id: str) -> int: ...

    def contents_size(self, container_id: str) -> int: ...

    def available_capacity(self, container_id: str) -> int: ...

    def container_contains(self, container_id: str, parcel_id: ParcelID) -> bool: ...

    def pickup(self, vehicle_id: str, parcel_id: ParcelID, time_budget_s: float) -> float: ...

    def deliver(self, vehicle_id: str, parcel_id: ParcelID, time_budget_s: float) -> float: ...

    def drop(
        self, vehicle_id: str, parcel_id: ParcelID, depot_id: str, time_budget_s: float
    ) -> float: ...

    def add_parcel_in(self, container_id: str, parcel_id: ParcelID) -> None: ...
