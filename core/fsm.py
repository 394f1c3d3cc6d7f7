from enum import Enum, auto


class DispatchState(Enum):
    SEEKING = auto()
    COMMITTED = auto()
    RETURNING_TO_DEPOT = auto()
    LOADING = auto()
