"""Everything a dispatch decision reads or acts upon, bundled for one world."""

from dataclasses import dataclass, field

from agents.dispatch.contention import ContentionResolver
from agents.dispatch.depot_router import DepotRouter
from agents.dispatch.interfaces import ParcelRegistry, RoadNetwork
from core.economics.cost_model import CostModel
from core.parcels.parcel import Parcel
from core.types import NodeID


@dataclass
class DispatchContext:
    """Collaborators shared by all vehicles of a world.

    Attributes:
        road: Road network queries and movement
        registry: Parcel and container bookkeeping
        cost_model: Tariff used to price trips and parcels
        contention: Claim detection built on ``road`` and ``registry``
        depots: Depot routing built on ``road``, ``registry`` and ``cost_model``
    """

    road: RoadNetwork
    registry: ParcelRegistry
    cost_model: CostModel
    contention: ContentionResolver = field(init=False)
    depots: DepotRouter = field(init=False)

    def __post_init__(self) -> None:
        self.contention = ContentionResolver(self.road, self.registry)
        self.depots = DepotRouter(self.road, self.registry, self.cost_model)

    def leg_distance_km(self, vehicle_id: str, parcel: Parcel) -> float:
        """Network distance of the next leg for a parcel.

        The delivery leg when the vehicle carries the parcel, the pickup leg
        otherwise. Unreachable targets yield infinity.
        """
        if self.registry.container_contains(vehicle_id, parcel.id):
            target = parcel.delivery_node
        else:
            target = parcel.pickup_node
        return self.road.distance_m(vehicle_id, target) / 1000.0

    def parcel_profit(self, vehicle_id: str, parcel: Parcel) -> float:
        """Expected profit of serving a parcel from the vehicle's position."""
        return self.cost_model.parcel_profit(parcel, self.leg_distance_km(vehicle_id, parcel))

    def moving_cost_to(self, vehicle_id: str, node: NodeID) -> float:
        return self.cost_model.moving_cost(self.road.distance_m(vehicle_id, node) / 1000.0)
