from pydantic import BaseModel, ConfigDict


class Player(BaseModel):
    """A registered blader."""

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
