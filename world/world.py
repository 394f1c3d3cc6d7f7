import logging
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from agents.base import AgentBase

from agents.dispatch.context import DispatchContext
from core.buildings.depot import Depot
from core.economics.cost_model import CostModel, TariffParams
from core.parcels.parcel import Parcel
from core.types import AgentID, BuildingID, NodeID, ParcelState
from world.graph.graph import Graph
from world.pdp_model import PDPModel
from world.road_model import RoadModel
from world.routing.navigator import Navigator
from world.sim.dto.step_result_dto import FleetStatisticsDTO, StepResultDTO

logger = logging.getLogger(__name__)


class ParcelSpawner(Protocol):
    """Source of new parcels appearing at the start of a tick."""

    def spawn(self, world: "World") -> list[Parcel]: ...


class World:
    """Entity store and scheduler of the courier simulation.

    Every tick new parcels are spawned first, then each vehicle decides once,
    in insertion order, with ``dt_s`` of budget minus any service time it
    still owes from earlier pickups and deliveries.
    """

    def __init__(
        self,
        graph: Graph,
        navigator: Navigator | None = None,
        dt_s: float = 1.0,
        tariff: TariffParams | None = None,
        parcel_spawner: ParcelSpawner | None = None,
    ) -> None:
        if dt_s <= 0:
            raise ValueError("dt_s must be positive")
        self.graph = graph
        self.navigator = navigator if navigator is not None else Navigator()
        self.dt_s = dt_s
        self.tick = 0
        self.agents: dict[AgentID, AgentBase] = {}
        self.depots: dict[BuildingID, Depot] = {}
        self.parcel_spawner = parcel_spawner
        self._events: list[dict[str, Any]] = []
        self._last_reported_profit: float | None = None

        self.road = RoadModel(graph, self.navigator)
        self.pdp = PDPModel(self.road, emit_event=self.emit_event)
        self.cost_model = CostModel(tariff)
        self.dispatch = DispatchContext(
            road=self.road, registry=self.pdp, cost_model=self.cost_model
        )

    def now_s(self) -> float:
        return self.tick * self.dt_s

    def emit_event(self, e: dict[str, Any]) -> None:
        self._events.append(e)

    def step(self) -> StepResultDTO:
        """Execute one simulation tick and return the result.

        Returns:
            StepResultDTO containing events, agent diffs and fleet statistics.
        """
        self.tick += 1

        # 1) new parcels
        if self.parcel_spawner is not None:
            for parcel in self.parcel_spawner.spawn(self):
                self.add_parcel(parcel)
        # 2) decide/act, paying owed service time first
        for a in list(self.agents.values()):
            budget = self.pdp.continue_previous_actions(a.id, self.dt_s)
            a.decide(self, budget)
        # 3) observation hooks
        for a in self.agents.values():
            a.after_tick(self)
        self._report_profit()
        # 4) collect UI diffs
        diffs = [a.serialize_diff() for a in self.agents.values()]
        evts = self._events
        self._events = []
        return StepResultDTO(
            tick=self.tick, events=evts, agent_diffs=diffs, statistics=self.statistics()
        )

    def add_agent(self, agent_id: AgentID, agent: "AgentBase") -> None:
        """Add an agent to the world."""
        if agent_id in self.agents:
            raise ValueError(f"Agent {agent_id} already exists")
        self.agents[agent_id] = agent
        self.emit_event({"type": "agent_added", "agent_id": agent_id, "agent_kind": agent.kind})

    def add_vehicle(self, vehicle: Any, node: NodeID) -> None:
        """Place a vehicle agent on a node and register its cargo space.

        Args:
            vehicle: Vehicle agent carrying a dispatch record
            node: Spawn node
        """
        state = vehicle.state
        self.road.add_vehicle(vehicle.id, node, state.speed_kph)
        self.pdp.register_container(vehicle.id, state.capacity)
        self.add_agent(vehicle.id, vehicle)

    def add_depot(self, depot: Depot, node: NodeID) -> None:
        """Build a depot on a node and register its storage."""
        if depot.id in self.depots:
            raise ValueError(f"Depot {depot.id} already exists")
        graph_node = self.graph.get_node(node)
        if graph_node is None:
            raise ValueError(f"Node {node} does not exist")
        graph_node.add_building(depot)
        self.pdp.register_container(depot.id, depot.capacity, node=node)
        self.depots[depot.id] = depot
        self.emit_event({"type": "depot_added", "depot_id": depot.id, "node_id": node})

    def add_parcel(self, parcel: Parcel) -> None:
        """Put a new parcel on the network."""
        self.pdp.register_parcel(parcel)

    def vehicles(self) -> list[Any]:
        return [a for a in self.agents.values() if a.kind == "vehicle"]

    def total_profit(self) -> float:
        """Aggregate accumulated profit of the fleet."""
        return sum(v.state.profit for v in self.vehicles())

    def statistics(self) -> FleetStatisticsDTO:
        """Fleet statistics for the current tick."""
        vehicles = self.vehicles()
        return FleetStatisticsDTO(
            tick=self.tick,
            fleet_profit=self.total_profit(),
            vehicles=len(vehicles),
            parcels_available=len(self.pdp.parcels(ParcelState.AVAILABLE)),
            parcels_in_cargo=len(self.pdp.parcels(ParcelState.IN_CARGO)),
            parcels_at_depot=len(self.pdp.parcels(ParcelState.AT_DEPOT)),
            parcels_delivered=len(self.pdp.delivered),
            distance_km=sum(self.road.odometer_m(v.id) for v in vehicles) / 1000.0,
        )

    def get_state(self) -> dict[str, Any]:
        """Full world snapshot for observers."""
        return {
            "tick": self.tick,
            "dt_s": self.dt_s,
            "time_s": self.now_s(),
            "vehicles": [v.serialize_state(self) for v in self.vehicles()],
            "depots": [
                {
                    **depot.to_dict(),
                    "parcels": [p.id for p in self.pdp.contents(depot.id)],
                }
                for depot in self.depots.values()
            ],
            "parcels": [p.to_dict() for p in self.pdp.parcels()],
            "statistics": self.statistics().model_dump(),
        }

    def _report_profit(self) -> None:
        profit = self.total_profit()
        if profit != self._last_reported_profit:
            logger.info(f"Tick {self.tick}: fleet profit {profit:.2f}")
            self._last_reported_profit = profit
