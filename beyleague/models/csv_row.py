from typing import Dict

from pydantic import BaseModel, ConfigDict

from .enums import EventType, WinnerSide

# Canonical column order; also the positional layout of headerless files
CSV_COLUMNS = (
    "match_id",
    "player1",
    "player1_bey",
    "player1_score",
    "player2",
    "player2_bey",
    "player2_score",
    "winner",
    "date",
    "bursts",
    "knockouts",
    "extreme_knockouts",
    "spin_finishes",
)


class ColumnMapping(BaseModel):
    """Resolved cell index for each canonical column of one CSV file."""

    model_config = ConfigDict(frozen=True)

    match_id: int = 0
    player1: int = 1
    player1_bey: int = 2
    player1_score: int = 3
    player2: int = 4
    player2_bey: int = 5
    player2_score: int = 6
    winner: int = 7
    date: int = 8
    bursts: int = 9
    knockouts: int = 10
    extreme_knockouts: int = 11
    spin_finishes: int = 12


class CsvRow(BaseModel):
    """One parsed line of a batch import file. Raw text only, nothing resolved."""

    model_config = ConfigDict(frozen=True)

    row_id: str
    line_number: int
    match_id: str
    player_a_name: str
    player_a_bey: str
    player_a_score: str
    player_b_name: str
    player_b_bey: str
    player_b_score: str
    winner: WinnerSide
    date: str
    bursts: str = "0"
    knockouts: str = "0"
    extreme_knockouts: str = "0"
    spin_finishes: str = "0"

    def event_counts(self) -> Dict[EventType, str]:
        return {
            EventType.BURST: self.bursts,
            EventType.KNOCKOUT: self.knockouts,
            EventType.EXTREME_KNOCKOUT: self.extreme_knockouts,
            EventType.SPIN_FINISH: self.spin_finishes,
        }


class EditorRow(BaseModel):
    """A row as held by the CSV editor: every cell is free text, winner included."""

    match_id: str = ""
    player1: str = ""
    player1_bey: str = ""
    player1_score: str = "0"
    player2: str = ""
    player2_bey: str = ""
    player2_score: str = "0"
    winner: str = ""
    date: str = ""
    bursts: str = "0"
    knockouts: str = "0"
    extreme_knockouts: str = "0"
    spin_finishes: str = "0"

    def cells(self) -> list[str]:
        return [getattr(self, column) for column in CSV_COLUMNS]
