from datetime import datetime
from typing import Any, Dict, List, Optional

from loguru import logger

from beyleague.models.enums import BeyType, EventType
from beyleague.models.report import (
    DashboardSummary,
    LeagueReport,
    MatchStats,
    OverallStats,
    RecentBattle,
    empty_event_totals,
)
from beyleague.storage.base import BaseStore


def compute_report(
    matches: List[Dict[str, Any]],
    participants: List[Dict[str, Any]],
    bey_types: Dict[str, str],
    events: List[Dict[str, Any]],
    bey_type: Optional[BeyType] = None,
) -> LeagueReport:
    """Aggregates already-fetched rows into a LeagueReport.

    ``participants`` should already be narrowed by player/Beyblade filters;
    the type filter is applied here because types live on the catalog.
    """
    if bey_type is not None:
        participants = [
            p for p in participants if bey_types.get(p["beyblade_id"]) == bey_type.value
        ]

    match_ids = {p["match_id"] for p in participants}
    filtered_matches = [m for m in matches if m["id"] in match_ids]

    event_totals = empty_event_totals()
    for event in events:
        if event["match_id"] not in match_ids:
            continue
        try:
            event_type = EventType(event["event_type"])
        except ValueError:
            logger.debug(f"Ignoring unknown event type {event['event_type']!r}.")
            continue
        event_totals[event_type] += event.get("count") or 0

    player_stats: Dict[str, MatchStats] = {}
    beyblade_stats: Dict[str, MatchStats] = {}
    type_stats: Dict[str, MatchStats] = {}
    for participant in participants:
        is_winner = bool(participant.get("is_winner"))
        type_name = bey_types.get(participant["beyblade_id"]) or "Unknown"
        player_stats.setdefault(participant["player_id"], MatchStats()).record(is_winner)
        beyblade_stats.setdefault(participant["beyblade_id"], MatchStats()).record(is_winner)
        type_stats.setdefault(type_name, MatchStats()).record(is_winner)

    overall = OverallStats(
        total=len(filtered_matches),
        wins=sum(s.wins for s in player_stats.values()),
        losses=sum(s.losses for s in player_stats.values()),
        events=dict(event_totals),
    )
    return LeagueReport(
        player_stats=player_stats,
        beyblade_stats=beyblade_stats,
        type_stats=type_stats,
        event_totals=event_totals,
        overall=overall,
    )


async def build_report(
    store: BaseStore,
    player_id: Optional[str] = None,
    beyblade_id: Optional[str] = None,
    bey_type: Optional[BeyType] = None,
) -> LeagueReport:
    """Fetches matches, participants and events from the store and aggregates them.

    Args:
        store: Store to read from.
        player_id: Only count participations of this player.
        beyblade_id: Only count participations with this Beyblade.
        bey_type: Only count participations with Beyblades of this type.

    Returns:
        The report; empty when no matches qualify.
    """
    matches = await store.select("matches", "id, winner_player_id")
    if not matches:
        logger.info("No matches recorded yet.")
        return LeagueReport(event_totals=empty_event_totals())

    filters: Dict[str, Any] = {"match_id": [m["id"] for m in matches]}
    if player_id:
        filters["player_id"] = player_id
    if beyblade_id:
        filters["beyblade_id"] = beyblade_id
    participants = await store.select(
        "match_participants", "match_id, player_id, beyblade_id, is_winner, score", filters=filters
    )
    if not participants:
        logger.info("No participants match the report filters.")
        return LeagueReport(event_totals=empty_event_totals())

    bey_ids = sorted({p["beyblade_id"] for p in participants})
    catalog = await store.select("beyblades", "id, name, type", filters={"id": bey_ids})
    bey_types = {row["id"]: row.get("type") or "Unknown" for row in catalog}

    match_ids = sorted({p["match_id"] for p in participants})
    events = await store.select(
        "match_events", "match_id, event_type, count", filters={"match_id": match_ids}
    )

    report = compute_report(matches, participants, bey_types, events, bey_type)
    players = await store.select("players", "id, display_name")
    report.player_names = {row["id"]: row["display_name"] for row in players}
    report.beyblade_names = {row["id"]: row["name"] for row in catalog}
    logger.success(
        f"Report built over {report.overall.total} matches and {len(participants)} participations."
    )
    return report


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


async def dashboard_summary(store: BaseStore, limit: int = 5) -> DashboardSummary:
    """Totals plus the most recent battles, newest first."""
    total_battles = await store.count("matches")
    total_players = await store.count("players")
    recent = await store.select(
        "matches", "id, played_at", order_by="played_at", descending=True, limit=limit
    )
    if not recent:
        return DashboardSummary(total_battles=total_battles, total_players=total_players)

    participants = await store.select(
        "match_participants",
        "match_id, player_id, beyblade_id, is_winner",
        filters={"match_id": [m["id"] for m in recent]},
    )
    players = await store.select("players", "id, display_name")
    catalog = await store.select("beyblades", "id, name")
    player_names = {row["id"]: row["display_name"] for row in players}
    bey_names = {row["id"]: row["name"] for row in catalog}

    by_match: Dict[str, List[Dict[str, Any]]] = {}
    for participant in participants:
        by_match.setdefault(participant["match_id"], []).append(participant)

    battles = []
    for match in recent:
        sides = by_match.get(match["id"], [])
        if len(sides) < 2:
            continue
        first, second = sides[0], sides[1]
        battles.append(
            RecentBattle(
                player1=player_names.get(first["player_id"], "Player 1"),
                player2=player_names.get(second["player_id"], "Player 2"),
                bey1=bey_names.get(first["beyblade_id"], "Unknown Bey"),
                bey2=bey_names.get(second["beyblade_id"], "Unknown Bey"),
                winner=2 if second.get("is_winner") and not first.get("is_winner") else 1,
                played_at=_parse_timestamp(match.get("played_at")),
            )
        )
    return DashboardSummary(
        total_battles=total_battles, total_players=total_players, recent_battles=battles
    )
