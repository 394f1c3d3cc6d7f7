from core.buildings.base import Building
from core.buildings.depot import Depot

__all__ = ["Building", "Depot"]
