from beyleague.importer.csv_parser import parse_batch_csv, resolve_columns, resolve_winner, split_lines
from beyleague.models.csv_row import CSV_COLUMNS
from beyleague.models.enums import WinnerSide

HEADER = ",".join(CSV_COLUMNS)
ROW = "match-001,Alex,Valkyrie Wing,1,Jordan,Longinus Destroy,0,Alex,2/3/2026,0,1,0,0"


def _fields(row):
    return row.model_dump(exclude={"line_number"})


def test_headed_file_maps_columns():
    result = parse_batch_csv(f"{HEADER}\n{ROW}\n")

    assert result.warnings == []
    assert len(result.rows) == 1
    row = result.rows[0]
    assert row.row_id == "row-1"
    assert row.line_number == 2
    assert row.match_id == "match-001"
    assert row.player_a_name == "Alex"
    assert row.player_b_bey == "Longinus Destroy"
    assert row.winner == WinnerSide.A
    assert row.date == "2/3/2026"
    assert row.knockouts == "1"


def test_headerless_file_matches_headed_file():
    headed = parse_batch_csv(f"{HEADER}\n{ROW}")
    headerless = parse_batch_csv(ROW)

    assert [_fields(r) for r in headerless.rows] == [_fields(r) for r in headed.rows]
    assert headerless.rows[0].line_number == 1


def test_header_in_any_order_maps_by_name():
    header = (
        "player2,player1,match_id,winner,player1_bey,player2_bey,player1_score,"
        "player2_score,date,spin_finishes,extreme_knockouts,knockouts,bursts"
    )
    line = "Jordan,Alex,match-001,Alex,Valkyrie Wing,Longinus Destroy,1,0,2/3/2026,0,0,1,0"

    shuffled = parse_batch_csv(f"{header}\n{line}")
    canonical = parse_batch_csv(f"{HEADER}\n{ROW}")

    assert shuffled.warnings == []
    assert [_fields(r) for r in shuffled.rows] == [_fields(r) for r in canonical.rows]


def test_underscore_insensitive_header_names():
    mapping, warnings = resolve_columns(["matchid", "Player1", "player1bey", "player1score"])

    assert mapping.match_id == 0
    assert mapping.player1 == 1
    assert mapping.player1_bey == 2
    assert mapping.player1_score == 3
    # Everything else is missing and falls back to its position
    assert mapping.date == 8
    assert len(warnings) == len(CSV_COLUMNS) - 4


def test_missing_column_warns_and_uses_position():
    header = "match_id,player1,player1_bey,player1_score,player2,player2_bey,player2_score,winner,when"
    result = parse_batch_csv(f"{header}\nm-1,Alex,Valkyrie Wing,1,Jordan,Longinus Destroy,0,A,1/5/2026")

    assert any('Column "date" not found' in w for w in result.warnings)
    assert result.rows[0].date == "1/5/2026"
    assert result.rows[0].bursts == "0"


def test_short_rows_are_skipped_with_warning():
    result = parse_batch_csv(f"{HEADER}\nm-1,Alex,Valkyrie Wing\n{ROW}")

    assert len(result.rows) == 1
    assert "Row 2: Skipped (not enough columns)" in result.warnings
    assert result.rows[0].line_number == 3


def test_blank_lines_are_ignored():
    result = parse_batch_csv(f"\n\n{HEADER}\r\n\r\n{ROW}\r\n   \n")

    assert len(result.rows) == 1


def test_empty_content():
    result = parse_batch_csv("")

    assert result.rows == []
    assert result.warnings == []


def test_missing_event_counts_default_to_zero():
    result = parse_batch_csv("m-1,Alex,Valkyrie Wing,,Jordan,Longinus Destroy,,B")
    row = result.rows[0]

    assert (row.bursts, row.knockouts, row.extreme_knockouts, row.spin_finishes) == ("0", "0", "0", "0")
    assert row.player_a_score == "1"
    assert row.player_b_score == "0"
    assert row.date == ""
    assert row.winner == WinnerSide.B


def test_winner_by_name_or_letter():
    assert resolve_winner("jordan", "Alex", "Jordan") == (WinnerSide.B, True)
    assert resolve_winner("a", "Alex", "Jordan") == (WinnerSide.A, True)
    assert resolve_winner("B", "Alex", "Jordan") == (WinnerSide.B, True)


def test_unrecognised_winner_defaults_with_warning():
    line = "m-1,Alex,Valkyrie Wing,1,Jordan,Longinus Destroy,0,Casey"

    default = parse_batch_csv(line)
    overridden = parse_batch_csv(line, unresolved_winner=WinnerSide.B)

    assert default.rows[0].winner == WinnerSide.A
    assert 'Winner "Casey"' in default.warnings[0]
    assert overridden.rows[0].winner == WinnerSide.B
    assert "defaulting to player2" in overridden.warnings[0]


def test_only_newlines_end_a_line():
    content = "m-1,Alex,Valkyrie\x0cWing,1\r\nm-2,Jordan,Dran Sword,0\n\n"

    assert split_lines(content) == ["m-1,Alex,Valkyrie\x0cWing,1", "m-2,Jordan,Dran Sword,0"]
