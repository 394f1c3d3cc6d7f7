"""DTOs for simulation domain."""

from .step_result_dto import FleetStatisticsDTO, StepResultDTO
from .vehicle_dto import VehicleCreateDTO

__all__ = [
    "FleetStatisticsDTO",
    "StepResultDTO",
    "VehicleCreateDTO",
]
