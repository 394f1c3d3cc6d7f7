"""Tests for the vehicle dispatch record."""

import dataclasses
import math

import pytest

from core.fsm import DispatchState
from core.types import AgentID, ParcelID, Role
from core.vehicles.state import VehicleState


def make_state(**overrides: object) -> VehicleState:
    fields: dict[str, object] = {
        "id": AgentID("v1"),
        "role": Role.PICKUP,
        "capacity": 5,
        "speed_kph": 50.0,
    }
    fields.update(overrides)
    return VehicleState(**fields)  # type: ignore[arg-type]


def test_initial_state() -> None:
    """Test that a new vehicle seeks with no commitment and zero profit."""
    state = make_state()
    assert state.commitment is None
    assert state.should_return_to_depot is False
    assert state.profit == 0.0
    assert state.committed_credit == 0.0
    assert state.phase == DispatchState.SEEKING


@pytest.mark.parametrize("capacity", [0, -3])
def test_rejects_non_positive_capacity(capacity: int) -> None:
    """Test that rated capacity must be a positive integer."""
    with pytest.raises(ValueError, match="capacity"):
        make_state(capacity=capacity)


@pytest.mark.parametrize("speed", [0.0, -10.0, math.inf, math.nan])
def test_rejects_invalid_speed(speed: float) -> None:
    """Test that speed must be positive and finite."""
    with pytest.raises(ValueError, match="speed"):
        make_state(speed_kph=speed)


def test_role_is_immutable() -> None:
    """Test that the record is frozen, so the role cannot be reassigned."""
    state = make_state()
    with pytest.raises(dataclasses.FrozenInstanceError):
        state.role = Role.DELIVERY  # type: ignore[misc]


def test_to_dict() -> None:
    """Test serialization of enums and the commitment."""
    state = make_state(
        role=Role.COURIER, commitment=ParcelID("p1"), phase=DispatchState.COMMITTED
    )
    data = state.to_dict()
    assert data["role"] == "COURIER"
    assert data["commitment"] == "p1"
    assert data["phase"] == "COMMITTED"
    assert data["capacity"] == 5
