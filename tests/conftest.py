import pytest

from beyleague.storage.memory_store import InMemoryStore


def seed_league(store: InMemoryStore) -> InMemoryStore:
    store.seed(
        "players",
        [
            {"id": "p-alex", "display_name": "Alex"},
            {"id": "p-jordan", "display_name": "Jordan"},
            {"id": "p-sam", "display_name": "Sam"},
        ],
    )
    store.seed(
        "beyblades",
        [
            {"id": "b-valkyrie", "name": "Valkyrie Wing", "normalized_name": "valkyrie wing", "type": "Attack"},
            {"id": "b-longinus", "name": "Longinus Destroy", "normalized_name": "longinus destroy", "type": "Attack"},
            {"id": "b-dran", "name": "Dran-Sword", "normalized_name": "dran-sword", "type": "Stamina", "attack": 40, "defense": 30, "stamina": 70},
            {"id": "b-phoenix", "name": "Phoenix Wing", "normalized_name": "phoenix wing", "type": "Mystery"},
        ],
    )
    store.seed(
        "player_beyblades",
        [
            {"id": "inv-1", "player_id": "p-alex", "beyblade_id": "b-valkyrie"},
            {"id": "inv-2", "player_id": "p-jordan", "beyblade_id": "b-longinus"},
            {"id": "inv-3", "player_id": "p-sam", "beyblade_id": "b-dran", "attack": 55},
            {"id": "inv-4", "player_id": "p-alex", "beyblade_id": "b-phoenix"},
        ],
    )
    return store


@pytest.fixture
def store() -> InMemoryStore:
    return seed_league(InMemoryStore())
