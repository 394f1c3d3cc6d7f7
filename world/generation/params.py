"""Pydantic models for scenario generation parameters."""

from pydantic import BaseModel, Field, field_validator


class ScenarioParams(BaseModel):
    """Parameters for a randomly generated courier scenario.

    This Pydantic model provides automatic validation for all generation parameters.
    All fields use declarative constraints for validation instead of manual checks.
    """

    # Road network
    map_width_m: float = Field(default=5000.0, gt=0, description="Map width in metres")
    map_height_m: float = Field(default=5000.0, gt=0, description="Map height in metres")
    num_nodes: int = Field(default=60, ge=3, description="Number of road intersections")
    road_speed_kph_range: tuple[float, float] = Field(
        default=(30.0, 70.0), description="[min, max] speed limit of generated roads (km/h)"
    )

    # Depots
    num_depots: int = Field(default=1, ge=0, description="Number of depots")
    depot_capacity: int = Field(default=100, ge=1, description="Storage capacity of a depot")

    # Fleet
    num_pickup_vehicles: int = Field(default=1, ge=0, description="Vehicles collecting parcels")
    num_delivery_vehicles: int = Field(
        default=1, ge=0, description="Vehicles delivering parcels from depots"
    )
    num_courier_vehicles: int = Field(
        default=0, ge=0, description="Vehicles serving parcels door to door"
    )
    vehicle_capacity: int = Field(default=5, ge=1, description="Rated capacity of every vehicle")
    vehicle_speed_kph: float = Field(default=50.0, gt=0, description="Vehicle speed in km/h")

    # Parcels
    initial_parcels: int = Field(default=3, ge=0, description="Parcels present at tick 0")
    max_parcel_size: int = Field(default=5, ge=1, description="Largest needed capacity")
    new_parcel_prob: float = Field(
        default=0.003, ge=0, le=1, description="Probability of a new parcel each tick"
    )
    service_duration_s: float = Field(
        default=300.0, ge=0, description="Pickup and delivery duration of a parcel"
    )

    # Time
    dt_s: float = Field(default=1.0, gt=0, description="Simulated seconds per tick")

    # Generation seed
    seed: int = Field(default=42, description="Random seed used for generation")

    @field_validator("road_speed_kph_range")
    @classmethod
    def validate_speed_range(cls, v: tuple[float, float]) -> tuple[float, float]:
        """Validate that the speed range is a valid [min, max] pair."""
        if v[0] <= 0:
            raise ValueError("Road speeds must be positive")
        if v[0] > v[1]:
            raise ValueError("Road speed min must be <= max")
        return v
