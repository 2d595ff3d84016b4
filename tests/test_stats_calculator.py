import pytest

from beyleague.calculation.stats_calculator import build_report, dashboard_summary
from beyleague.importer.reconciler import run_batch_import
from beyleague.models.enums import BeyType, EventType

BATCH = "\n".join(
    [
        "match_id,player1,player1_bey,player1_score,player2,player2_bey,player2_score,winner,date,bursts,knockouts,extreme_knockouts,spin_finishes",
        "m-1,Alex,Valkyrie Wing,1,Jordan,Longinus Destroy,0,Alex,1/1/2026,1,0,0,0",
        "m-2,Alex,Valkyrie Wing,0,Jordan,Longinus Destroy,1,Jordan,1/2/2026,0,2,0,0",
        "m-3,Sam,Dran-Sword,1,Alex,Phoenix Wing,0,Sam,1/3/2026,0,0,1,1",
    ]
)


@pytest.fixture
async def played(store):
    await run_batch_import(store, BATCH)
    return store


async def test_report_over_all_matches(played):
    report = await build_report(played)

    assert report.overall.total == 3
    assert (report.overall.wins, report.overall.losses) == (3, 3)
    assert report.overall.win_rate == pytest.approx(50.0)
    assert report.event_totals == {
        EventType.BURST: 1,
        EventType.KNOCKOUT: 2,
        EventType.EXTREME_KNOCKOUT: 1,
        EventType.SPIN_FINISH: 1,
    }
    alex = report.player_stats["p-alex"]
    assert (alex.total, alex.wins, alex.losses) == (3, 1, 2)
    assert alex.win_rate == pytest.approx(100 / 3)
    assert report.type_stats["Attack"].total == 4
    assert report.type_stats["Mystery"].total == 1


async def test_report_filters_by_player(played):
    report = await build_report(played, player_id="p-sam")

    assert report.overall.total == 1
    assert list(report.player_stats) == ["p-sam"]
    assert report.event_totals[EventType.SPIN_FINISH] == 1
    assert report.event_totals[EventType.BURST] == 0


async def test_report_filters_by_type(played):
    report = await build_report(played, bey_type=BeyType.STAMINA)

    assert report.overall.total == 1
    assert set(report.beyblade_stats) == {"b-dran"}


async def test_top_players_sorted_by_win_rate(played):
    report = await build_report(played)

    names = [name for name, _ in report.top_players()]
    assert names[0] == "Sam"
    assert set(names) == {"Alex", "Jordan", "Sam"}


async def test_empty_store_gives_empty_report(store):
    report = await build_report(store)

    assert report.overall.total == 0
    assert report.player_stats == {}
    assert all(count == 0 for count in report.event_totals.values())


async def test_dashboard_lists_recent_battles_newest_first(played):
    summary = await dashboard_summary(played, limit=2)

    assert summary.total_battles == 3
    assert summary.total_players == 3
    assert [b.played_at.day for b in summary.recent_battles] == [3, 2]
    latest = summary.recent_battles[0]
    assert (latest.player1, latest.bey1, latest.winner) == ("Sam", "Dran-Sword", 1)
    second = summary.recent_battles[1]
    assert second.winner == 2
