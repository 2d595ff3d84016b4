from datetime import datetime
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, Field

from .enums import EventType, MatchFormat

Score = Union[int, float]


class Match(BaseModel):
    """A single battle between two bladers."""

    id: Optional[str] = None  # Assigned by the store
    external_id: Optional[str] = None
    played_at: datetime
    format: MatchFormat = MatchFormat.BEST_OF
    location: Optional[str] = None
    winner_player_id: str

    def to_record(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "played_at": self.played_at.isoformat(),
            "format": self.format.value,
            "location": self.location,
            "winner_player_id": self.winner_player_id,
        }
        if self.external_id:
            data["external_id"] = self.external_id
        return data


class MatchParticipant(BaseModel):
    match_id: str
    player_id: str
    beyblade_id: str
    score: Score = 0
    is_winner: bool = False

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump()


class MatchEvent(BaseModel):
    match_id: str
    event_type: EventType
    count: int = Field(..., gt=0)

    def to_record(self) -> Dict[str, Any]:
        return {
            "match_id": self.match_id,
            "event_type": self.event_type.value,
            "count": self.count,
        }
