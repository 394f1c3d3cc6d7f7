from dataclasses import dataclass

from core.types import EdgeID, NodeID

DEFAULT_MAX_SPEED_KPH = 50.0


@dataclass
class Edge:
    id: EdgeID
    from_node: NodeID
    to_node: NodeID
    length_m: float
    max_speed_kph: float = DEFAULT_MAX_SPEED_KPH

    def __post_init__(self) -> None:
        if self.length_m < 0:
            raise ValueError(f"Edge {self.id} length must be non-negative")
        if self.max_speed_kph <= 0:
            raise ValueError(f"Edge {self.id} max speed must be positive")
