"""Tests for identifiers and enums."""

from core.types import AgentID, NodeID, ObjectKind, ParcelID, ParcelState, Role


def test_ids_are_plain_values() -> None:
    """Test that NewType ids behave as their base types."""
    assert AgentID("v1") == "v1"
    assert ParcelID("p1") == "p1"
    assert NodeID(3) == 3


def test_roles_are_closed() -> None:
    """Test that the role enum holds exactly the three roles."""
    assert {role.value for role in Role} == {"PICKUP", "DELIVERY", "COURIER"}
    assert Role("PICKUP") is Role.PICKUP


def test_parcel_states() -> None:
    """Test parcel lifecycle states round trip through their values."""
    for state in ParcelState:
        assert ParcelState(state.value) is state


def test_object_kinds() -> None:
    """Test road object kinds compare equal to their string values."""
    assert ObjectKind.VEHICLE == "vehicle"
    assert ObjectKind.PARCEL == "parcel"
