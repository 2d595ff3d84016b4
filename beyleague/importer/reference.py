from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from loguru import logger
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from beyleague.models.beyblade import Beyblade, InventoryEntry
from beyleague.models.player import Player
from beyleague.normalization.normalizer import names_match, normalize_player_name
from beyleague.storage.base import BaseStore, StoreError


class ReferenceSnapshot:
    """Read-only players and per-player inventories for one import session.

    Built once before the import loop and passed into every resolution step.
    Additions made by other users while the import runs are not visible.
    """

    def __init__(
        self,
        players: Sequence[Player],
        inventories: Mapping[str, Sequence[InventoryEntry]],
    ):
        self._players: Tuple[Player, ...] = tuple(players)
        self._inventories: Mapping[str, Tuple[InventoryEntry, ...]] = MappingProxyType(
            {player_id: tuple(entries) for player_id, entries in inventories.items()}
        )

    def find_player(self, name: str) -> Optional[Player]:
        key = normalize_player_name(name)
        for player in self._players:
            if normalize_player_name(player.display_name) == key:
                return player
        return None

    def inventory_for(self, player_id: str) -> Tuple[InventoryEntry, ...]:
        return self._inventories.get(player_id, ())

    def find_owned_beyblade(self, player_id: str, name: str) -> Optional[InventoryEntry]:
        """Inventory entry of ``player_id`` whose normalized name equals ``name``'s."""
        for entry in self.inventory_for(player_id):
            if names_match(entry.name, name):
                return entry
        return None

    def inventory_names(self, player_id: str) -> List[str]:
        return [entry.name for entry in self.inventory_for(player_id)]


def build_inventories(
    catalog: Sequence[Beyblade], inventory_rows: Sequence[Dict]
) -> Dict[str, List[InventoryEntry]]:
    """Joins raw ``player_beyblades`` rows with catalog names, grouped by player."""
    names = {bey.id: bey.name for bey in catalog}
    inventories: Dict[str, List[InventoryEntry]] = {}
    for row in inventory_rows:
        inventories.setdefault(row["player_id"], []).append(
            InventoryEntry(
                id=row["id"],
                player_id=row["player_id"],
                beyblade_id=row["beyblade_id"],
                name=names.get(row["beyblade_id"], "Unknown Bey"),
                attack=row.get("attack"),
                defense=row.get("defense"),
                stamina=row.get("stamina"),
            )
        )
    return inventories


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=8),
    retry=retry_if_exception_type(StoreError),
    reraise=True,
)
async def load_reference_snapshot(store: BaseStore) -> ReferenceSnapshot:
    """Fetches players, the catalog and all inventories in one pass."""
    player_rows = await store.select(
        "players", "id, display_name", order_by="display_name"
    )
    catalog_rows = await store.select(
        "beyblades", "id, name, normalized_name, type", order_by="name"
    )
    inventory_rows = await store.select(
        "player_beyblades", "id, player_id, beyblade_id, attack, defense, stamina"
    )

    players = [Player(**row) for row in player_rows]
    catalog = [Beyblade(**row) for row in catalog_rows]
    inventories = build_inventories(catalog, inventory_rows)

    logger.info(
        f"Loaded reference snapshot: {len(players)} players, "
        f"{sum(len(entries) for entries in inventories.values())} inventory entries."
    )
    return ReferenceSnapshot(players, inventories)
