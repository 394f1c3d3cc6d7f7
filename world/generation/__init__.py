"""Random scenario generation module."""

from .generator import RandomParcelSpawner, ScenarioGenerator
from .params import ScenarioParams

__all__ = ["RandomParcelSpawner", "ScenarioGenerator", "ScenarioParams"]
