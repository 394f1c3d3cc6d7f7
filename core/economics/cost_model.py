"""Monetary model for vehicle movement and parcel service."""

import math

from pydantic import BaseModel, ConfigDict, Field

from core.parcels.parcel import Parcel


class CostModelError(ValueError):
    """Raised when a cost cannot be computed from the given inputs."""


class TariffParams(BaseModel):
    """Tariff parameters for the cost model.

    Defaults reproduce the fixed courier tariff: 100 for a one-unit parcel plus
    30 per additional unit, fuel at 270 per unit burning one unit every 30 km,
    with one percent of the distance billed as fuel.
    """

    model_config = ConfigDict(frozen=True)

    base_rate: float = Field(default=100.0, ge=0.0, description="Charge for a one-unit parcel")
    per_unit_rate: float = Field(
        default=30.0, ge=0.0, description="Charge per needed capacity unit above one"
    )
    fuel_price_per_unit: float = Field(default=270.0, ge=0.0, description="Price of a fuel unit")
    fuel_efficiency_km_per_unit: float = Field(
        default=30.0, gt=0.0, description="Kilometres driven on one fuel unit"
    )
    percentage_factor: float = Field(
        default=0.01, ge=0.0, description="Share of the distance billed as fuel"
    )


class CostModel:
    """Computes moving costs, parcel charges and expected parcel profits.

    The model is a pure function of its tariff. Distances are supplied by the
    caller and are expected to be network shortest-path lengths.
    """

    def __init__(self, tariff: TariffParams | None = None) -> None:
        self.tariff = tariff or TariffParams()

    def moving_cost(self, distance_km: float) -> float:
        """Cost of driving a distance.

        Args:
            distance_km: Distance in kilometres

        Returns:
            Monetary cost of the trip

        Raises:
            CostModelError: If the distance is negative or not finite
                (e.g. the destination is unreachable)
        """
        if not math.isfinite(distance_km) or distance_km < 0:
            raise CostModelError(f"Cannot price a trip of {distance_km} km")
        t = self.tariff
        fuel_units = distance_km * t.percentage_factor / t.fuel_efficiency_km_per_unit
        return fuel_units * t.fuel_price_per_unit

    def parcel_charge(self, parcel: Parcel | None) -> float:
        """Charge earned for serving a parcel (0 for no parcel)."""
        if parcel is None:
            return 0.0
        return (parcel.needed_capacity - 1) * self.tariff.per_unit_rate + self.tariff.base_rate

    def parcel_profit(self, parcel: Parcel | None, leg_distance_km: float) -> float:
        """Expected profit of a parcel: its charge minus the cost of the relevant leg.

        Args:
            parcel: Parcel being priced, or None
            leg_distance_km: Pickup leg if the parcel is not carried yet,
                delivery leg if it is

        Returns:
            Charge minus moving cost, or 0 for no parcel
        """
        if parcel is None:
            return 0.0
        return self.parcel_charge(parcel) - self.moving_cost(leg_distance_km)
