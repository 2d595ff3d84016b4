from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .enums import BeyType


class Beyblade(BaseModel):
    """A catalog item that players can own and enter into matches."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    normalized_name: Optional[str] = None
    type: Optional[str] = None
    attack: Optional[int] = Field(None, ge=0, le=100)
    defense: Optional[int] = Field(None, ge=0, le=100)
    stamina: Optional[int] = Field(None, ge=0, le=100)

    @property
    def bey_type(self) -> BeyType:
        return BeyType.coerce(self.type)


class InventoryEntry(BaseModel):
    """A player's copy of a catalog Beyblade, with optional per-copy stats."""

    model_config = ConfigDict(frozen=True)

    id: str
    player_id: str
    beyblade_id: str
    name: str  # Catalog name, joined in when the inventory is loaded
    attack: Optional[int] = None
    defense: Optional[int] = None
    stamina: Optional[int] = None


class OwnedBeyblade(BaseModel):
    """Inventory entry merged with its catalog item, as shown to the owner."""

    entry_id: str
    beyblade_id: str
    name: str
    type: BeyType
    attack: Optional[int] = None
    defense: Optional[int] = None
    stamina: Optional[int] = None
    wins: int = 0
    losses: int = 0
