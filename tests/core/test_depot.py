"""Tests for the depot building."""

import pytest

from core.buildings.base import Building
from core.buildings.depot import Depot
from core.types import BuildingID


def test_depot_defaults() -> None:
    """Test that a depot stores 100 units by default."""
    depot = Depot(id=BuildingID("d1"))
    assert depot.capacity == 100
    assert depot.TYPE == "depot"


def test_depot_rejects_non_positive_capacity() -> None:
    """Test that depot capacity must be positive."""
    with pytest.raises(ValueError, match="capacity"):
        Depot(id=BuildingID("d1"), capacity=0)


def test_depot_serialization() -> None:
    """Test depot serialization and deserialization through the base class."""
    depot = Depot(id=BuildingID("d1"), capacity=40, name="North")

    data = depot.to_dict()
    assert data == {"id": "d1", "capacity": 40, "name": "North", "type": "depot"}

    restored = Building.from_dict(data)
    assert isinstance(restored, Depot)
    assert restored == depot
