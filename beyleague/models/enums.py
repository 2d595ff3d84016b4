from enum import Enum
from typing import Optional


class BeyType(str, Enum):
    ATTACK = "Attack"
    DEFENSE = "Defense"
    STAMINA = "Stamina"
    BALANCE = "Balance"

    @classmethod
    def coerce(cls, raw: Optional[str]) -> "BeyType":
        """Maps a stored type string onto a known type; anything else is Balance."""
        for member in cls:
            if raw == member.value:
                return member
        return cls.BALANCE


class EventType(str, Enum):
    BURST = "burst"
    KNOCKOUT = "knockout"
    EXTREME_KNOCKOUT = "extreme_knockout"
    SPIN_FINISH = "spin_finish"


class MatchFormat(str, Enum):
    SINGLE = "single"
    BEST_OF = "best_of"


class WinnerSide(str, Enum):
    A = "A"
    B = "B"


class RowOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"
    REJECTED = "rejected"
    FAILED = "failed"
