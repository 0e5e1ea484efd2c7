"""Domain classification outcomes."""
from enum import Enum, auto


class Classification(Enum):
    PRODUCTIVE = auto()
    DISTRACTING = auto()

    def is_distracting(self) -> bool:
        return self is Classification.DISTRACTING
