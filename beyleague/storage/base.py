from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

Record = Dict[str, Any]
Filters = Optional[Dict[str, Any]]


class StoreError(Exception):
    """Raised when the backing store rejects or fails an operation."""

    pass


class BaseStore(ABC):
    """Tabular store keyed by table name.

    Filters map column names to values. A list, tuple or set value means
    membership (``column IN (...)``); anything else means equality.
    """

    @abstractmethod
    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Filters = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Record]:
        pass

    @abstractmethod
    async def insert(self, table: str, rows: Sequence[Record]) -> List[Record]:
        pass

    @abstractmethod
    async def upsert(self, table: str, row: Record, on_conflict: str) -> Record:
        pass

    @abstractmethod
    async def update(self, table: str, values: Record, filters: Filters) -> List[Record]:
        pass

    @abstractmethod
    async def delete(self, table: str, filters: Filters) -> None:
        pass

    @abstractmethod
    async def count(self, table: str) -> int:
        pass

    async def close(self) -> None:
        """Releases any underlying connection. No-op by default."""
        return None
