"""Optimistic claim detection between vehicles pursuing the same parcel."""

from agents.dispatch.interfaces import ParcelRegistry, RoadNetwork
from core.parcels.parcel import Parcel
from core.types import ObjectKind, ParcelID


class ContentionResolver:
    """Decides whether a parcel is already being pursued by another vehicle.

    There is no central arbiter: a parcel counts as claimed while any other
    vehicle has declared its pickup node as movement destination. The check is
    recomputed from scratch whenever it is asked, so a claim disappears as soon
    as the claiming vehicle arrives or gives up.
    """

    def __init__(self, road: RoadNetwork, registry: ParcelRegistry) -> None:
        self.road = road
        self.registry = registry

    def is_claimed(self, vehicle_id: str, parcel: Parcel) -> bool:
        """Check if another vehicle is heading for the parcel's pickup node."""
        destinations = self.road.destinations_of_kind(ObjectKind.VEHICLE)
        return any(
            other_id != vehicle_id and destination == parcel.pickup_node
            for other_id, destination in destinations.items()
        )

    def closest_unclaimed_parcel(self, vehicle_id: str, max_capacity: int) -> Parcel | None:
        """Nearest available parcel nobody else pursues that fits ``max_capacity`` units.

        Returns:
            The parcel, or None if no reachable parcel qualifies
        """

        def acceptable(parcel_id: str) -> bool:
            parcel = self.registry.get_parcel(ParcelID(parcel_id))
            return (
                parcel is not None
                and parcel.needed_capacity <= max_capacity
                and not self.is_claimed(vehicle_id, parcel)
            )

        parcel_id = self.road.nearest_available_parcel(vehicle_id, acceptable)
        if parcel_id is None:
            return None
        return self.registry.get_parcel(ParcelID(parcel_id))
