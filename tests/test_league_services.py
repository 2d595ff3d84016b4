from datetime import datetime, timezone

import pytest

from beyleague.models.enums import BeyType, EventType, WinnerSide
from beyleague.services import league
from beyleague.services.league import LeagueError


async def test_add_player_trims_and_rejects_duplicates(store):
    player = await league.add_player(store, "  Casey  ")

    assert player.display_name == "Casey"
    with pytest.raises(LeagueError, match="already exist"):
        await league.add_player(store, "Casey")
    with pytest.raises(LeagueError):
        await league.add_player(store, "   ")


async def test_add_beyblade_stores_normalized_name(store):
    bey = await league.add_beyblade(store, " Cobalt—Drake ", BeyType.DEFENSE)

    assert bey.name == "Cobalt—Drake"
    assert bey.normalized_name == "cobalt-drake"
    assert bey.type == "Defense"


async def test_add_to_inventory_once(store):
    entry = await league.add_to_inventory(store, "p-jordan", "b-valkyrie")

    assert entry["player_id"] == "p-jordan"
    with pytest.raises(LeagueError, match="already"):
        await league.add_to_inventory(store, "p-jordan", "b-valkyrie")


async def test_update_inventory_stats_validates_range(store):
    updated = await league.update_inventory_stats(store, "inv-1", 80, 20, 50)

    assert (updated["attack"], updated["defense"], updated["stamina"]) == (80, 20, 50)
    with pytest.raises(LeagueError, match="between 0 and 100"):
        await league.update_inventory_stats(store, "inv-1", 101, 20, 50)
    with pytest.raises(LeagueError, match="not found"):
        await league.update_inventory_stats(store, "inv-missing", 1, 2, 3)


async def test_get_inventory_merges_catalog_and_records(store):
    await league.log_match(
        store, "p-sam", "p-jordan", "b-dran", "b-longinus", winner=WinnerSide.A
    )
    await league.log_match(
        store, "p-sam", "p-alex", "b-dran", "b-valkyrie", winner=WinnerSide.B
    )

    view = await league.get_inventory(store, "p-sam")

    [dran] = view.beyblades
    assert dran.name == "Dran-Sword"
    assert dran.type == BeyType.STAMINA
    # Per-copy attack overrides the catalog; the rest come from the catalog
    assert (dran.attack, dran.defense, dran.stamina) == (55, 30, 70)
    assert (dran.wins, dran.losses) == (1, 1)
    assert (view.wins, view.losses, view.win_rate) == (1, 1, 50)
    assert "b-dran" not in {bey.id for bey in view.available_catalog}


async def test_get_inventory_filters_and_unknown_types(store):
    view = await league.get_inventory(store, "p-alex", type_filter=BeyType.BALANCE)

    assert [bey.name for bey in view.beyblades] == ["Phoenix Wing"]

    searched = await league.get_inventory(store, "p-alex", search="valk")
    assert [bey.name for bey in searched.beyblades] == ["Valkyrie Wing"]
    assert searched.win_rate == 0


async def test_log_match_writes_single_format(store):
    played = datetime(2026, 3, 1, 15, tzinfo=timezone.utc)
    match_id = await league.log_match(
        store,
        "p-alex",
        "p-jordan",
        "b-valkyrie",
        "b-longinus",
        winner=WinnerSide.B,
        score_a=2,
        score_b=3,
        event_counts={EventType.BURST: 2, EventType.KNOCKOUT: 0},
        location="Living room arena",
        played_at=played,
    )

    [match] = store.rows("matches", id=match_id)
    assert match["format"] == "single"
    assert match["winner_player_id"] == "p-jordan"
    assert match["location"] == "Living room arena"
    assert "external_id" not in match
    events = store.rows("match_events", match_id=match_id)
    assert [(e["event_type"], e["count"]) for e in events] == [("burst", 2)]


async def test_log_match_requires_two_players(store):
    with pytest.raises(LeagueError):
        await league.log_match(store, "p-alex", "p-alex", "b-valkyrie", "b-phoenix")
    with pytest.raises(LeagueError):
        await league.log_match(store, "p-alex", "", "b-valkyrie", "b-longinus")
