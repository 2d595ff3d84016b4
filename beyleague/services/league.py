from datetime import datetime
from typing import Dict, List, Optional

from loguru import logger
from pydantic import BaseModel

from beyleague.models.beyblade import Beyblade, OwnedBeyblade
from beyleague.models.enums import BeyType, EventType, MatchFormat, WinnerSide
from beyleague.models.match import Match, Score
from beyleague.models.player import Player
from beyleague.normalization.normalizer import normalize_beyblade_name
from beyleague.storage.base import BaseStore, StoreError

from .match_writer import Side, save_match

STAT_NAMES = ("attack", "defense", "stamina")


class LeagueError(Exception):
    """Raised when a league operation is given invalid input or is refused by the store."""

    pass


class InventoryView(BaseModel):
    player_id: str
    beyblades: List[OwnedBeyblade] = []
    wins: int = 0
    losses: int = 0
    available_catalog: List[Beyblade] = []

    @property
    def total_battles(self) -> int:
        return self.wins + self.losses

    @property
    def win_rate(self) -> int:
        """Overall win rate as a rounded percentage."""
        if self.total_battles == 0:
            return 0
        return round(self.wins / self.total_battles * 100)


async def list_catalog(store: BaseStore) -> List[Beyblade]:
    rows = await store.select(
        "beyblades", "id, name, normalized_name, type, attack, defense, stamina", order_by="name"
    )
    return [Beyblade(**row) for row in rows]


async def add_player(store: BaseStore, display_name: str) -> Player:
    name = display_name.strip()
    if not name:
        raise LeagueError("Enter a blader name.")
    try:
        rows = await store.insert("players", [{"display_name": name}])
    except StoreError as e:
        raise LeagueError(f'Could not add blader "{name}". It might already exist. ({e})') from e
    logger.info(f"Added blader {name}.")
    return Player(**rows[0])


async def add_beyblade(store: BaseStore, name: str, bey_type: BeyType = BeyType.BALANCE) -> Beyblade:
    trimmed = name.strip()
    if not trimmed:
        raise LeagueError("Enter a Beyblade name.")
    record = {
        "name": trimmed,
        "normalized_name": normalize_beyblade_name(trimmed),
        "type": BeyType(bey_type).value,
        "attack": None,
        "defense": None,
        "stamina": None,
    }
    try:
        rows = await store.insert("beyblades", [record])
    except StoreError as e:
        raise LeagueError(f'Could not add Beyblade "{trimmed}". It might already exist. ({e})') from e
    logger.info(f"Added {trimmed} to the catalog.")
    return Beyblade(**rows[0])


async def add_to_inventory(store: BaseStore, player_id: str, beyblade_id: str) -> Dict:
    if not player_id or not beyblade_id:
        raise LeagueError("Select a blader and a Beyblade.")
    owned = await store.select(
        "player_beyblades", "id", filters={"player_id": player_id, "beyblade_id": beyblade_id}
    )
    if owned:
        raise LeagueError("That Beyblade is already in the inventory.")
    try:
        rows = await store.insert(
            "player_beyblades", [{"player_id": player_id, "beyblade_id": beyblade_id}]
        )
    except StoreError as e:
        raise LeagueError(f"Could not add that Beyblade to the inventory. ({e})") from e
    return rows[0]


def _valid_stat(value: float) -> bool:
    return 0 <= value <= 100


async def update_inventory_stats(
    store: BaseStore, entry_id: str, attack: int, defense: int, stamina: int
) -> Dict:
    """Sets the per-copy stats of one inventory entry. Each must be 0-100."""
    if not all(_valid_stat(value) for value in (attack, defense, stamina)):
        raise LeagueError("Please enter numbers between 0 and 100.")
    try:
        rows = await store.update(
            "player_beyblades",
            {"attack": attack, "defense": defense, "stamina": stamina},
            {"id": entry_id},
        )
    except StoreError as e:
        raise LeagueError(f"Could not update stats. ({e})") from e
    if not rows:
        raise LeagueError(f"Inventory entry {entry_id} not found.")
    return rows[0]


async def get_inventory(
    store: BaseStore,
    player_id: str,
    type_filter: Optional[BeyType] = None,
    search: str = "",
) -> InventoryView:
    """A player's Beyblades with stats and records, plus what they could still add."""
    catalog = await list_catalog(store)
    entries = await store.select(
        "player_beyblades",
        "id, player_id, beyblade_id, attack, defense, stamina",
        filters={"player_id": player_id},
    )
    participations = await store.select(
        "match_participants", "beyblade_id, is_winner", filters={"player_id": player_id}
    )

    by_id = {bey.id: bey for bey in catalog}
    wins = sum(1 for p in participations if p.get("is_winner"))
    per_bey: Dict[str, List[int]] = {}
    for p in participations:
        tally = per_bey.setdefault(p.get("beyblade_id"), [0, 0])
        tally[0 if p.get("is_winner") else 1] += 1

    owned: List[OwnedBeyblade] = []
    for entry in entries:
        base = by_id.get(entry["beyblade_id"])
        if base is None:
            continue
        bey_wins, bey_losses = per_bey.get(base.id, [0, 0])
        owned.append(
            OwnedBeyblade(
                entry_id=entry["id"],
                beyblade_id=base.id,
                name=base.name,
                type=base.bey_type,
                **{
                    stat: entry.get(stat) if entry.get(stat) is not None else getattr(base, stat)
                    for stat in STAT_NAMES
                },
                wins=bey_wins,
                losses=bey_losses,
            )
        )

    search_lower = search.lower()
    filtered = [
        bey
        for bey in owned
        if (type_filter is None or bey.type == type_filter) and search_lower in bey.name.lower()
    ]
    owned_ids = {entry["beyblade_id"] for entry in entries}

    return InventoryView(
        player_id=player_id,
        beyblades=filtered,
        wins=wins,
        losses=len(participations) - wins,
        available_catalog=[bey for bey in catalog if bey.id not in owned_ids],
    )


async def log_match(
    store: BaseStore,
    player_a_id: str,
    player_b_id: str,
    beyblade_a_id: str,
    beyblade_b_id: str,
    winner: WinnerSide = WinnerSide.A,
    score_a: Score = 1,
    score_b: Score = 0,
    event_counts: Optional[Dict[EventType, int]] = None,
    location: Optional[str] = None,
    played_at: Optional[datetime] = None,
) -> str:
    """Records one battle entered by hand. Returns the new match id."""
    if not all((player_a_id, player_b_id, beyblade_a_id, beyblade_b_id)):
        raise LeagueError("Select two bladers and their Beyblades.")
    if player_a_id == player_b_id:
        raise LeagueError("A blader cannot battle themselves.")

    winner_id = player_a_id if winner == WinnerSide.A else player_b_id
    match = Match(
        played_at=played_at or datetime.now().astimezone(),
        format=MatchFormat.SINGLE,
        location=location or None,
        winner_player_id=winner_id,
    )
    sides = [
        Side(player_id=player_a_id, beyblade_id=beyblade_a_id, score=score_a),
        Side(player_id=player_b_id, beyblade_id=beyblade_b_id, score=score_b),
    ]
    try:
        match_id, _ = await save_match(store, match, sides, event_counts or {})
    except StoreError as e:
        raise LeagueError(f"Could not log the battle. ({e})") from e
    logger.success(f"Battle logged as match {match_id}.")
    return match_id
