from datetime import datetime
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, computed_field

from .enums import EventType


class MatchStats(BaseModel):
    """Win/loss tally for one grouping key (player, Beyblade or type)."""

    total: int = 0
    wins: int = 0
    losses: int = 0

    @computed_field  # type: ignore[misc]
    @property
    def win_rate(self) -> float:
        """Win percentage, 0 when nothing has been played."""
        if self.total <= 0:
            return 0.0
        return self.wins / self.total * 100

    def record(self, is_winner: bool) -> None:
        self.total += 1
        if is_winner:
            self.wins += 1
        else:
            self.losses += 1


def empty_event_totals() -> Dict[EventType, int]:
    return {event_type: 0 for event_type in EventType}


class OverallStats(BaseModel):
    total: int = 0
    wins: int = 0
    losses: int = 0
    events: Dict[EventType, int] = {}

    @computed_field  # type: ignore[misc]
    @property
    def win_rate(self) -> float:
        battles = self.wins + self.losses
        return self.wins / battles * 100 if battles > 0 else 0.0


class LeagueReport(BaseModel):
    """Aggregate statistics over the matches selected by the report filters."""

    player_stats: Dict[str, MatchStats] = {}
    beyblade_stats: Dict[str, MatchStats] = {}
    type_stats: Dict[str, MatchStats] = {}
    event_totals: Dict[EventType, int] = {}
    overall: OverallStats = OverallStats()
    player_names: Dict[str, str] = {}
    beyblade_names: Dict[str, str] = {}

    def top_players(self, n: int = 10) -> List[Tuple[str, MatchStats]]:
        return _top(self.player_stats, self.player_names, n)

    def top_beyblades(self, n: int = 10) -> List[Tuple[str, MatchStats]]:
        return _top(self.beyblade_stats, self.beyblade_names, n)


def _top(
    stats: Dict[str, MatchStats], names: Dict[str, str], n: int
) -> List[Tuple[str, MatchStats]]:
    named = [(names.get(key, "Unknown"), value) for key, value in stats.items()]
    named.sort(key=lambda item: item[1].win_rate, reverse=True)
    return named[:n]


class RecentBattle(BaseModel):
    player1: str
    player2: str
    bey1: str
    bey2: str
    winner: int  # 1 or 2
    played_at: Optional[datetime] = None


class DashboardSummary(BaseModel):
    total_battles: int = 0
    total_players: int = 0
    recent_battles: List[RecentBattle] = []
