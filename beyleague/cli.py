import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from beyleague.calculation.stats_calculator import build_report, dashboard_summary
from beyleague.config.settings import settings
from beyleague.importer.editor import export_csv, load_editor_rows
from beyleague.importer.reconciler import run_batch_import
from beyleague.importer.source import ImportSourceError, read_source
from beyleague.logging.setup import setup_logging
from beyleague.models.enums import BeyType, EventType, WinnerSide
from beyleague.models.report import MatchStats
from beyleague.services import league
from beyleague.services.league import LeagueError
from beyleague.storage.base import BaseStore, StoreError
from beyleague.storage.supabase_client import create_store

console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="beyleague", description="Beyblade league match records."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    imp = sub.add_parser("import", help="Import matches from a batch CSV.")
    imp.add_argument("--source", default=None, help="CSV path or http(s) URL.")
    imp.add_argument("--location", default=None)
    imp.add_argument(
        "--unresolved-winner",
        choices=[side.value for side in WinnerSide],
        default=None,
        help="Side credited when the winner cell names neither player.",
    )

    report = sub.add_parser("report", help="Win/loss statistics.")
    report.add_argument("--player", default=None, help="Player id filter.")
    report.add_argument("--bey", default=None, help="Beyblade id filter.")
    report.add_argument("--type", choices=[t.value for t in BeyType], default=None)

    sub.add_parser("dashboard", help="Totals and recent battles.")

    add_player = sub.add_parser("add-player", help="Register a blader.")
    add_player.add_argument("name")

    add_bey = sub.add_parser("add-bey", help="Add a Beyblade to the catalog.")
    add_bey.add_argument("name")
    add_bey.add_argument("--type", choices=[t.value for t in BeyType], default=BeyType.BALANCE.value)

    own = sub.add_parser("own", help="Add a catalog Beyblade to a player's inventory.")
    own.add_argument("player_id")
    own.add_argument("beyblade_id")

    stats = sub.add_parser("set-stats", help="Set per-copy stats of an inventory entry.")
    stats.add_argument("entry_id")
    stats.add_argument("attack", type=int)
    stats.add_argument("defense", type=int)
    stats.add_argument("stamina", type=int)

    inventory = sub.add_parser("inventory", help="Show a player's inventory.")
    inventory.add_argument("player_id")
    inventory.add_argument("--type", choices=[t.value for t in BeyType], default=None)
    inventory.add_argument("--search", default="")

    log = sub.add_parser("log-match", help="Record a single battle.")
    log.add_argument("player_a_id")
    log.add_argument("beyblade_a_id")
    log.add_argument("player_b_id")
    log.add_argument("beyblade_b_id")
    log.add_argument("--winner", choices=[side.value for side in WinnerSide], default="A")
    log.add_argument("--score-a", type=int, default=1)
    log.add_argument("--score-b", type=int, default=0)
    log.add_argument("--location", default=None)
    for event_type in EventType:
        log.add_argument(f"--{event_type.value.replace('_', '-')}", type=int, default=0)

    export = sub.add_parser("export-csv", help="Rewrite a batch CSV in canonical column order.")
    export.add_argument("input")
    export.add_argument("output")

    return parser


def _stats_table(title: str, rows: Sequence[Tuple[str, MatchStats]]) -> Table:
    table = Table(title=title)
    for column in ("Name", "Wins", "Losses", "Win %"):
        table.add_column(column)
    for name, stats in rows:
        table.add_row(name, str(stats.wins), str(stats.losses), f"{stats.win_rate:.1f}")
    return table


async def _import(store: BaseStore, args: argparse.Namespace) -> None:
    source = args.source or settings.batch_csv_source
    content = await read_source(source)
    summary = await run_batch_import(
        store,
        content,
        location=args.location,
        unresolved_winner=WinnerSide(args.unresolved_winner) if args.unresolved_winner else None,
    )
    console.print(
        Panel(summary.render(settings.summary_detail_limit), title=f"Import: {source}")
    )


async def _report(store: BaseStore, args: argparse.Namespace) -> None:
    report = await build_report(
        store,
        player_id=args.player,
        beyblade_id=args.bey,
        bey_type=BeyType(args.type) if args.type else None,
    )
    overall = report.overall
    events = ", ".join(f"{k.value}: {v}" for k, v in report.event_totals.items())
    console.print(
        Panel(
            f"Matches: {overall.total}\nWins: {overall.wins}  Losses: {overall.losses}\n"
            f"Win rate: {overall.win_rate:.1f}%\nEvents: {events}",
            title="League Report",
        )
    )
    console.print(_stats_table("Top Bladers", report.top_players()))
    console.print(_stats_table("Top Beyblades", report.top_beyblades()))
    console.print(_stats_table("By Type", sorted(report.type_stats.items())))


async def _dashboard(store: BaseStore, args: argparse.Namespace) -> None:
    summary = await dashboard_summary(store)
    table = Table(title="Recent Battles")
    for column in ("Blader 1", "Bey 1", "Blader 2", "Bey 2", "Winner", "Played"):
        table.add_column(column)
    for battle in summary.recent_battles:
        table.add_row(
            battle.player1,
            battle.bey1,
            battle.player2,
            battle.bey2,
            battle.player1 if battle.winner == 1 else battle.player2,
            battle.played_at.strftime("%Y-%m-%d") if battle.played_at else "Recently",
        )
    console.print(
        Panel(
            f"Total battles: {summary.total_battles}\nBladers: {summary.total_players}",
            title="Dashboard",
        )
    )
    console.print(table)


async def _inventory(store: BaseStore, args: argparse.Namespace) -> None:
    view = await league.get_inventory(
        store, args.player_id, BeyType(args.type) if args.type else None, args.search
    )
    table = Table(title=f"{len(view.beyblades)} Beyblades | {view.win_rate}% Win Rate")
    for column in ("Entry", "Name", "Type", "ATK", "DEF", "STA", "W", "L"):
        table.add_column(column)
    for bey in view.beyblades:
        table.add_row(
            bey.entry_id,
            bey.name,
            bey.type.value,
            *(str(v) if v is not None else "-" for v in (bey.attack, bey.defense, bey.stamina)),
            str(bey.wins),
            str(bey.losses),
        )
    console.print(table)
    if view.available_catalog:
        names = ", ".join(f"{bey.name} ({bey.id})" for bey in view.available_catalog)
        console.print(f"[dim]Not yet owned: {names}[/dim]")


async def _log_match(store: BaseStore, args: argparse.Namespace) -> None:
    counts = {
        event_type: getattr(args, event_type.value) for event_type in EventType
    }
    match_id = await league.log_match(
        store,
        args.player_a_id,
        args.player_b_id,
        args.beyblade_a_id,
        args.beyblade_b_id,
        winner=WinnerSide(args.winner),
        score_a=args.score_a,
        score_b=args.score_b,
        event_counts=counts,
        location=args.location or settings.default_location,
    )
    console.print(f"Battle logged! Match id: {match_id}")


async def _run_store_command(args: argparse.Namespace) -> None:
    store = await create_store()
    try:
        if args.command == "import":
            await _import(store, args)
        elif args.command == "report":
            await _report(store, args)
        elif args.command == "dashboard":
            await _dashboard(store, args)
        elif args.command == "add-player":
            player = await league.add_player(store, args.name)
            console.print(f"Added blader {player.display_name} ({player.id})")
        elif args.command == "add-bey":
            bey = await league.add_beyblade(store, args.name, BeyType(args.type))
            console.print(f"Added {bey.name} ({bey.id}) to the catalog")
        elif args.command == "own":
            entry = await league.add_to_inventory(store, args.player_id, args.beyblade_id)
            console.print(f"Inventory entry {entry['id']} created")
        elif args.command == "set-stats":
            await league.update_inventory_stats(
                store, args.entry_id, args.attack, args.defense, args.stamina
            )
            console.print("Stats updated")
        elif args.command == "inventory":
            await _inventory(store, args)
        elif args.command == "log-match":
            await _log_match(store, args)
    finally:
        await store.close()


def _export(args: argparse.Namespace) -> None:
    rows = load_editor_rows(Path(args.input).read_text(encoding="utf-8-sig"))
    Path(args.output).write_text(export_csv(rows), encoding="utf-8")
    logger.success(f"Wrote {len(rows)} rows to {args.output}")


async def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    args = build_parser().parse_args(argv)
    try:
        if args.command == "export-csv":
            _export(args)
        else:
            await _run_store_command(args)
    except (LeagueError, ImportSourceError) as e:
        logger.error(str(e))
        return 1
    except StoreError as e:
        logger.error(f"Store error: {e}")
        return 1
    except OSError as e:
        logger.error(f"File error: {e}")
        return 1
    return 0


def run() -> None:
    setup_logging()
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Execution interrupted by user (KeyboardInterrupt).")
        sys.exit(0)
