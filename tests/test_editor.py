from datetime import date

from beyleague.importer.csv_parser import parse_batch_csv
from beyleague.importer.editor import (
    CSV_HEADER,
    export_csv,
    load_editor_rows,
    new_editor_row,
    suggest_beyblades,
)
from beyleague.models.beyblade import Beyblade
from beyleague.models.csv_row import EditorRow

CATALOG = [
    Beyblade(id="1", name="Dran-Sword", normalized_name="dran-sword", type="Attack"),
    Beyblade(id="2", name="Hells Scythe", type="Balance"),
    Beyblade(id="3", name="Wizard Arrow", normalized_name="wizard arrow", type="Stamina"),
]


def test_export_always_has_header():
    assert export_csv([]) == CSV_HEADER


def test_export_joins_cells_in_canonical_order():
    row = EditorRow(
        match_id="match-001",
        player1="Alex",
        player1_bey="Valkyrie Wing",
        player1_score="1",
        player2="Jordan",
        player2_bey="Longinus Destroy",
        player2_score="0",
        winner="Alex",
        date="2/3/2026",
        knockouts="1",
    )

    text = export_csv([row])

    assert text.splitlines()[1] == (
        "match-001,Alex,Valkyrie Wing,1,Jordan,Longinus Destroy,0,Alex,2/3/2026,0,1,0,0"
    )
    assert parse_batch_csv(text).rows[0].knockouts == "1"


def test_load_editor_rows_reads_headed_file():
    content = "\n".join(
        [
            "match_id,player1,player1_bey,player1_score,player2,player2_bey,player2_score,winner,date",
            "m-1,Alex,Valkyrie Wing,1,Jordan,Longinus Destroy,0,Alex,2/3/2026",
            "too,short",
        ]
    )

    rows = load_editor_rows(content)

    assert len(rows) == 1
    assert rows[0].player2_bey == "Longinus Destroy"
    assert rows[0].spin_finishes == "0"


def test_load_editor_rows_needs_data_after_header():
    assert load_editor_rows(CSV_HEADER) == []


def test_new_editor_row_defaults():
    row = new_editor_row(today=date(2026, 2, 3))

    assert row.match_id.startswith("match-")
    assert row.date == "2/3/2026"
    assert (row.player1_score, row.bursts) == ("0", "0")


def test_suggest_beyblades_matches_name_or_normalized_name():
    assert [b.id for b in suggest_beyblades(CATALOG, "")] == ["1", "2", "3"]
    assert [b.id for b in suggest_beyblades(CATALOG, "scythe")] == ["2"]
    assert [b.id for b in suggest_beyblades(CATALOG, "dran-s")] == ["1"]
    assert suggest_beyblades(CATALOG, "", limit=1) == CATALOG[:1]
