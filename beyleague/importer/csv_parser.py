"""Parsing of batch match CSV files into raw row records.

The parser never rejects a whole file. Problems with individual rows or
columns become human-readable warnings and parsing carries on.
"""
import re
from typing import List, Sequence, Tuple

from loguru import logger
from pydantic import BaseModel

from beyleague.models.csv_row import CSV_COLUMNS, ColumnMapping, CsvRow
from beyleague.models.enums import WinnerSide

MIN_CELLS = 8
EVENT_COLUMNS = ("bursts", "knockouts", "extreme_knockouts", "spin_finishes")

# Older exports used scorea/scoreb; they still mark a line as a header
HEADER_MARKERS = frozenset(CSV_COLUMNS) | {"scorea", "scoreb"}
LINE_BREAK = re.compile(r"\r?\n")


class ParseResult(BaseModel):
    rows: List[CsvRow] = []
    warnings: List[str] = []


def split_lines(content: str) -> List[str]:
    return [line.strip() for line in LINE_BREAK.split(content) if line.strip()]


def split_cells(line: str) -> List[str]:
    return [cell.strip() for cell in line.split(",")]


def is_header(cells: Sequence[str]) -> bool:
    return any(cell.lower() in HEADER_MARKERS for cell in cells)


def resolve_columns(header_cells: Sequence[str]) -> Tuple[ColumnMapping, List[str]]:
    """Maps each canonical column to its index in the header.

    A header cell matches a column exactly or with underscores ignored
    (``player1score`` matches ``player1_score``). Columns that cannot be
    found keep their positional index and produce a warning.
    """
    cells = [cell.strip().lower() for cell in header_cells]
    loose = [cell.replace("_", "") for cell in cells]
    positions = ColumnMapping()
    resolved = {}
    warnings: List[str] = []

    for column in CSV_COLUMNS:
        if column in cells:
            resolved[column] = cells.index(column)
        elif column.replace("_", "") in loose:
            resolved[column] = loose.index(column.replace("_", ""))
        else:
            resolved[column] = getattr(positions, column)
            warnings.append(
                f'Warning: Column "{column}" not found in CSV header. '
                f"Available columns: {', '.join(cells)}"
            )

    return ColumnMapping(**resolved), warnings


def _cell(cells: Sequence[str], index: int, default: str = "") -> str:
    if 0 <= index < len(cells) and cells[index]:
        return cells[index]
    return default


def resolve_winner(
    raw: str, player_a: str, player_b: str, unresolved: WinnerSide = WinnerSide.A
) -> Tuple[WinnerSide, bool]:
    """Returns the winning side and whether the designator was recognised.

    ``raw`` may be "A", "B" or either player's name, compared without case.
    When it names both sides, B wins, matching how the editor resolves it.
    """
    lowered = raw.lower()
    matches_a = lowered == "a" or lowered == player_a.lower()
    matches_b = lowered == "b" or lowered == player_b.lower()
    if matches_b:
        return WinnerSide.B, True
    if matches_a:
        return WinnerSide.A, True
    return unresolved, False


def parse_batch_csv(
    content: str, unresolved_winner: WinnerSide = WinnerSide.A
) -> ParseResult:
    """Parses batch import text into rows plus warnings."""
    lines = split_lines(content)
    if not lines:
        return ParseResult()

    warnings: List[str] = []
    first = split_cells(lines[0])
    has_header = is_header(first)
    if has_header:
        mapping, column_warnings = resolve_columns(first)
        warnings.extend(column_warnings)
        start = 1
    else:
        mapping = ColumnMapping()
        start = 0

    rows: List[CsvRow] = []
    for index in range(start, len(lines)):
        line_number = index + 1
        cells = split_cells(lines[index])
        if len(cells) < MIN_CELLS:
            warnings.append(f"Row {line_number}: Skipped (not enough columns)")
            continue

        player_a = _cell(cells, mapping.player1)
        player_b = _cell(cells, mapping.player2)
        winner_raw = _cell(cells, mapping.winner)
        winner, recognised = resolve_winner(winner_raw, player_a, player_b, unresolved_winner)
        if not recognised:
            warnings.append(
                f'Row {line_number}: Winner "{winner_raw}" doesn\'t match player1 or player2, '
                f"defaulting to player{1 if winner == WinnerSide.A else 2}"
            )

        rows.append(
            CsvRow(
                row_id=f"row-{index - start + 1}",
                line_number=line_number,
                match_id=_cell(cells, mapping.match_id),
                player_a_name=player_a,
                player_a_bey=_cell(cells, mapping.player1_bey),
                player_a_score=_cell(cells, mapping.player1_score, "1"),
                player_b_name=player_b,
                player_b_bey=_cell(cells, mapping.player2_bey),
                player_b_score=_cell(cells, mapping.player2_score, "0"),
                winner=winner,
                date=_cell(cells, mapping.date),
                **{column: _cell(cells, getattr(mapping, column), "0") for column in EVENT_COLUMNS},
            )
        )

    logger.debug(
        f"Parsed {len(rows)} rows from {len(lines)} lines "
        f"(header: {has_header}, warnings: {len(warnings)})."
    )
    return ParseResult(rows=rows, warnings=warnings)

