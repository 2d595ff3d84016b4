import time
from datetime import date
from typing import List, Optional, Sequence

from beyleague.models.beyblade import Beyblade
from beyleague.models.csv_row import CSV_COLUMNS, EditorRow
from beyleague.normalization.normalizer import normalize_beyblade_name

from .csv_parser import MIN_CELLS, split_cells, split_lines

CSV_HEADER = ",".join(CSV_COLUMNS)
SUGGESTION_LIMIT = 20


def load_editor_rows(content: str) -> List[EditorRow]:
    """Reads a headed batch file into editable rows.

    Files without a data row after the header give an empty list, as do
    rows with fewer than eight cells.
    """
    lines = split_lines(content)
    if len(lines) < 2:
        return []

    header = [cell.lower() for cell in split_cells(lines[0])]
    loose = [cell.replace("_", "") for cell in header]

    def index_of(column: str) -> int:
        if column in header:
            return header.index(column)
        if column.replace("_", "") in loose:
            return loose.index(column.replace("_", ""))
        return -1

    indices = {column: index_of(column) for column in CSV_COLUMNS}
    rows = []
    for line in lines[1:]:
        cells = split_cells(line)
        if len(cells) < MIN_CELLS:
            continue
        values = {}
        for column, index in indices.items():
            value = cells[index] if 0 <= index < len(cells) else ""
            if column in ("bursts", "knockouts", "extreme_knockouts", "spin_finishes"):
                value = value or "0"
            values[column] = value
        rows.append(EditorRow(**values))
    return rows


def format_date(day: date) -> str:
    """US-style M/D/YYYY, the form the importer reads as a local date."""
    return f"{day.month}/{day.day}/{day.year}"


def new_editor_row(today: Optional[date] = None) -> EditorRow:
    return EditorRow(
        match_id=f"match-{int(time.time() * 1000)}",
        date=format_date(today or date.today()),
    )


def suggest_beyblades(
    catalog: Sequence[Beyblade], query: str, limit: int = SUGGESTION_LIMIT
) -> List[Beyblade]:
    """Catalog items whose name or normalized name contains ``query``."""
    search = query.lower()
    if not search:
        return list(catalog[:limit])

    matches = []
    for bey in catalog:
        normalized = (bey.normalized_name or normalize_beyblade_name(bey.name)).lower()
        if search in bey.name.lower() or search in normalized:
            matches.append(bey)
            if len(matches) >= limit:
                break
    return matches


def export_csv(rows: Sequence[EditorRow]) -> str:
    """Header plus one comma-joined line per row. Cells are not quoted."""
    return "\n".join([CSV_HEADER, *(",".join(row.cells()) for row in rows)])
