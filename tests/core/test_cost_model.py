"""Tests for the cost model."""

import math

import pytest
from pydantic import ValidationError

from core.economics.cost_model import CostModel, CostModelError, TariffParams
from core.parcels.parcel import Parcel
from core.types import NodeID, ParcelID


def make_parcel(needed_capacity: int) -> Parcel:
    return Parcel(
        id=ParcelID(f"p-{needed_capacity}"),
        pickup_node=NodeID(1),
        delivery_node=NodeID(2),
        needed_capacity=needed_capacity,
    )


class TestMovingCost:
    """Test the price of driving."""

    def test_default_tariff(self) -> None:
        """Test one kilometre costs 0.01 / 30 fuel units at 270 each."""
        model = CostModel()
        assert model.moving_cost(1.0) == pytest.approx(0.09)
        assert model.moving_cost(30.0) == pytest.approx(2.7)

    def test_zero_distance_is_free(self) -> None:
        """Test that standing still costs nothing."""
        assert CostModel().moving_cost(0.0) == 0.0

    def test_custom_tariff(self) -> None:
        """Test that every tariff factor enters the formula."""
        tariff = TariffParams(
            fuel_price_per_unit=100.0, fuel_efficiency_km_per_unit=10.0, percentage_factor=1.0
        )
        assert CostModel(tariff).moving_cost(5.0) == pytest.approx(50.0)

    @pytest.mark.parametrize("distance", [math.inf, math.nan, -1.0])
    def test_degenerate_distance_raises(self, distance: float) -> None:
        """Test that non-finite or negative distances are rejected."""
        with pytest.raises(CostModelError):
            CostModel().moving_cost(distance)

    def test_cost_model_error_is_value_error(self) -> None:
        """Test that callers catching ValueError also catch pricing errors."""
        assert issubclass(CostModelError, ValueError)


class TestParcelPricing:
    """Test parcel charges and expected profits."""

    def test_charge_grows_per_unit(self) -> None:
        """Test base rate for one unit plus the per unit rate above it."""
        model = CostModel()
        assert model.parcel_charge(make_parcel(1)) == 100.0
        assert model.parcel_charge(make_parcel(3)) == 160.0
        assert model.parcel_charge(make_parcel(5)) == 220.0

    def test_no_parcel_is_worth_nothing(self) -> None:
        """Test that an absent parcel has no charge and no profit."""
        model = CostModel()
        assert model.parcel_charge(None) == 0.0
        assert model.parcel_profit(None, 10.0) == 0.0

    def test_profit_subtracts_leg_cost(self) -> None:
        """Test profit is the charge minus the cost of the relevant leg."""
        model = CostModel()
        assert model.parcel_profit(make_parcel(3), 1.0) == pytest.approx(160.0 - 0.09)

    def test_profit_with_unreachable_leg_raises(self) -> None:
        """Test that an unreachable leg cannot be priced."""
        with pytest.raises(CostModelError):
            CostModel().parcel_profit(make_parcel(1), math.inf)


def test_tariff_validation() -> None:
    """Test that a zero fuel efficiency is rejected at construction."""
    with pytest.raises(ValidationError):
        TariffParams(fuel_efficiency_km_per_unit=0.0)


def test_tariff_is_frozen() -> None:
    """Test that tariffs cannot be changed after construction."""
    tariff = TariffParams()
    with pytest.raises(ValidationError):
        tariff.base_rate = 1.0  # type: ignore[misc]
