"""Access decision outcomes for policy evaluation."""
from enum import Enum, auto


class AccessDecision(Enum):
    ALLOW = auto()
    BLOCK = auto()

    def is_permitted(self) -> bool:
        """Returns True only for ALLOW."""
        return self is AccessDecision.ALLOW
