"""Per-role dispatch decisions of a vehicle.

Each role is a plain function ``(state, ctx, time_budget_s) -> state`` looked
up in ``ROLE_POLICIES``. A decision reads the world through the dispatch
context, issues movement and service requests, and returns the replaced
vehicle record. Costs are priced before the requests of a branch are issued,
so a pricing failure leaves the world untouched.
"""

import logging
from collections.abc import Callable
from dataclasses import replace

from agents.dispatch.context import DispatchContext
from core.economics.cost_model import CostModelError
from core.fsm import DispatchState
from core.parcels.parcel import Parcel
from core.types import ParcelID, Role
from core.vehicles.state import VehicleState

logger = logging.getLogger(__name__)

RolePolicy = Callable[[VehicleState, DispatchContext, float], VehicleState]


def decide(state: VehicleState, ctx: DispatchContext, time_budget_s: float) -> VehicleState:
    """Run one dispatch step for a vehicle.

    Args:
        state: Vehicle record at the start of the step
        ctx: Shared dispatch collaborators
        time_budget_s: Time the vehicle may spend in this step

    Returns:
        The new vehicle record. The input record itself when the budget is
        exhausted or the step could not be priced.
    """
    if time_budget_s <= 0:
        return state
    policy = ROLE_POLICIES[state.role]
    try:
        return policy(state, ctx, time_budget_s)
    except CostModelError as exc:
        logger.warning(f"Vehicle {state.id} skips this step: {exc}")
        return state


# Pickup role: network -> depot


def decide_pickup(state: VehicleState, ctx: DispatchContext, time_budget_s: float) -> VehicleState:
    """Collect parcels from the network and bring them to a depot."""
    if ctx.depots.should_return(state):
        return ctx.depots.return_to_depot(state, time_budget_s)

    if state.commitment is not None:
        outcome = _pursue_pickup(
            state, ctx, state.commitment, time_budget_s, charge_depot_trip=True
        )
        if outcome is not None:
            return outcome
        state = _drop_stale_commitment(state, ctx)

    parcel = _nearest_feasible_parcel(state, ctx)
    if parcel is None:
        return replace(state, phase=DispatchState.SEEKING)
    if parcel.needed_capacity > ctx.registry.available_capacity(state.id):
        logger.debug(f"Vehicle {state.id}: parcel {parcel.id} does not fit, returning to depot")
        return replace(state, should_return_to_depot=True, phase=DispatchState.RETURNING_TO_DEPOT)
    return _commit(state, ctx, parcel)


# Delivery role: depot -> delivery node


def decide_delivery(
    state: VehicleState, ctx: DispatchContext, time_budget_s: float
) -> VehicleState:
    """Take parcels out of depots and deliver them."""
    if state.commitment is not None:
        carried = _carried_parcel(state, ctx, state.commitment)
        if carried is not None:
            return _pursue_delivery(state, ctx, carried, time_budget_s)
        logger.debug(f"Vehicle {state.id}: parcel {state.commitment} left the cargo")
        state = replace(state, commitment=None, committed_credit=0.0)

    cargo = ctx.registry.contents(state.id)
    if cargo:
        return _commit_delivery(state, ctx, cargo[0])

    found = ctx.depots.nearest_depot(state.id, loadable_by=state.id)
    if found is None:
        return replace(state, phase=DispatchState.SEEKING)

    depot, node = found
    ctx.road.move_toward(state.id, node, time_budget_s)
    if ctx.road.is_at(state.id, node):
        loaded = ctx.depots.load_from_depot(state.id, depot.id)
        logger.debug(f"Vehicle {state.id} loaded {len(loaded)} parcel(s) at depot {depot.id}")
        return replace(state, phase=DispatchState.SEEKING)
    return replace(state, phase=DispatchState.LOADING)


# Courier role: pickup node -> delivery node, no depot


def decide_courier(state: VehicleState, ctx: DispatchContext, time_budget_s: float) -> VehicleState:
    """Serve parcels door to door, choosing between the next pickup and the next delivery."""
    if state.commitment is not None:
        carried = _carried_parcel(state, ctx, state.commitment)
        if carried is not None:
            return _pursue_delivery(state, ctx, carried, time_budget_s)
        outcome = _pursue_pickup(
            state, ctx, state.commitment, time_budget_s, charge_depot_trip=False
        )
        if outcome is not None:
            return outcome
        state = _drop_stale_commitment(state, ctx)

    cargo = ctx.registry.contents(state.id)
    next_delivery = min(cargo, key=lambda p: p.delivery_duration_s, default=None)
    next_pickup = _nearest_feasible_parcel(state, ctx)

    if next_pickup is None:
        if next_delivery is None:
            return replace(state, phase=DispatchState.SEEKING)
        return _commit_delivery(state, ctx, next_delivery)

    if next_delivery is not None:
        if (
            ctx.contention.is_claimed(state.id, next_pickup)
            or next_pickup.needed_capacity > ctx.registry.available_capacity(state.id)
            or next_pickup.pickup_duration_s > next_delivery.delivery_duration_s
        ):
            return _commit_delivery(state, ctx, next_delivery)
        return _commit(state, ctx, next_pickup)

    candidate = ctx.contention.closest_unclaimed_parcel(
        state.id, ctx.registry.available_capacity(state.id)
    )
    if candidate is None:
        return replace(state, phase=DispatchState.SEEKING)
    return _commit(state, ctx, candidate)


ROLE_POLICIES: dict[Role, RolePolicy] = {
    Role.PICKUP: decide_pickup,
    Role.DELIVERY: decide_delivery,
    Role.COURIER: decide_courier,
}


# Shared steps


def _nearest_feasible_parcel(state: VehicleState, ctx: DispatchContext) -> Parcel | None:
    """Nearest parcel on the network the vehicle could ever carry."""

    def feasible(parcel_id: str) -> bool:
        parcel = ctx.registry.get_parcel(ParcelID(parcel_id))
        return parcel is not None and parcel.needed_capacity <= state.capacity

    parcel_id = ctx.road.nearest_available_parcel(state.id, feasible)
    if parcel_id is None:
        return None
    return ctx.registry.get_parcel(ParcelID(parcel_id))


def _commit(state: VehicleState, ctx: DispatchContext, parcel: Parcel) -> VehicleState:
    """Commit to picking up a parcel and book its expected profit."""
    credit = ctx.parcel_profit(state.id, parcel)
    logger.debug(f"Vehicle {state.id} commits to pick up {parcel.id} (credit {credit:.2f})")
    return replace(
        state,
        commitment=parcel.id,
        committed_credit=credit,
        profit=state.profit + credit,
        phase=DispatchState.COMMITTED,
    )


def _commit_delivery(state: VehicleState, ctx: DispatchContext, parcel: Parcel) -> VehicleState:
    """Commit to delivering a carried parcel, paying for the delivery leg up front."""
    cost = ctx.moving_cost_to(state.id, parcel.delivery_node)
    logger.debug(f"Vehicle {state.id} commits to deliver {parcel.id} (cost {cost:.2f})")
    return replace(
        state,
        commitment=parcel.id,
        committed_credit=0.0,
        profit=state.profit - cost,
        phase=DispatchState.COMMITTED,
    )


def _release(state: VehicleState) -> VehicleState:
    """Give up the current commitment and reverse the credit booked for it."""
    return replace(
        state,
        commitment=None,
        committed_credit=0.0,
        profit=state.profit - state.committed_credit,
        phase=DispatchState.SEEKING,
    )


def _carried_parcel(
    state: VehicleState, ctx: DispatchContext, parcel_id: ParcelID
) -> Parcel | None:
    if not ctx.registry.container_contains(state.id, parcel_id):
        return None
    return ctx.registry.get_parcel(parcel_id)


def _drop_stale_commitment(state: VehicleState, ctx: DispatchContext) -> VehicleState:
    logger.warning(f"Vehicle {state.id}: parcel {state.commitment} is gone, dropping commitment")
    ctx.road.clear_destination(state.id)
    return _release(state)


def _pursue_pickup(
    state: VehicleState,
    ctx: DispatchContext,
    parcel_id: ParcelID,
    time_budget_s: float,
    charge_depot_trip: bool,
) -> VehicleState | None:
    """Keep going for a committed parcel that is still on the network.

    Returns:
        The new record, or None when the commitment is stale (the parcel is
        neither on the network nor carried by this vehicle)
    """
    parcel = ctx.registry.get_parcel(parcel_id)
    if ctx.registry.container_contains(state.id, parcel_id):
        return replace(state, commitment=None, committed_credit=0.0, phase=DispatchState.SEEKING)
    if parcel is None or not ctx.road.contains_object(parcel.id):
        return None

    if ctx.contention.is_claimed(state.id, parcel):
        return _switch_after_contention(state, ctx, parcel)

    remaining = ctx.road.move_toward(state.id, parcel.pickup_node, time_budget_s)
    if not ctx.road.is_at(state.id, parcel.pickup_node):
        return replace(state, phase=DispatchState.COMMITTED)

    depot_cost = 0.0
    fills_vehicle = parcel.needed_capacity >= ctx.registry.available_capacity(state.id)
    if charge_depot_trip and fills_vehicle:
        depot_cost = ctx.depots.depot_trip_cost(state.id, incoming=parcel)
    ctx.registry.pickup(state.id, parcel.id, remaining)
    logger.debug(f"Vehicle {state.id} picked up {parcel.id}")
    return replace(
        state,
        commitment=None,
        committed_credit=0.0,
        profit=state.profit - depot_cost,
        phase=DispatchState.SEEKING,
    )


def _switch_after_contention(
    state: VehicleState, ctx: DispatchContext, lost: Parcel
) -> VehicleState:
    """Another vehicle is heading for the same parcel: back off and pick another one."""
    replacement = ctx.contention.closest_unclaimed_parcel(
        state.id, ctx.registry.available_capacity(state.id)
    )
    credit = ctx.parcel_profit(state.id, replacement) if replacement is not None else 0.0

    ctx.road.clear_destination(state.id)
    released = _release(state)
    logger.debug(f"Vehicle {state.id} lost {lost.id} to another vehicle")
    if replacement is None:
        return released
    return replace(
        released,
        commitment=replacement.id,
        committed_credit=credit,
        profit=released.profit + credit,
        phase=DispatchState.COMMITTED,
    )


def _pursue_delivery(
    state: VehicleState, ctx: DispatchContext, parcel: Parcel, time_budget_s: float
) -> VehicleState:
    """Drive a carried parcel to its delivery node and hand it over."""
    remaining = ctx.road.move_toward(state.id, parcel.delivery_node, time_budget_s)
    if not ctx.road.is_at(state.id, parcel.delivery_node):
        return replace(state, phase=DispatchState.COMMITTED)
    ctx.registry.deliver(state.id, parcel.id, remaining)
    logger.debug(f"Vehicle {state.id} delivered {parcel.id}")
    return replace(state, commitment=None, committed_credit=0.0, phase=DispatchState.SEEKING)
