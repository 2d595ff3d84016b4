import itertools
from copy import deepcopy
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from .base import BaseStore, Filters, Record, StoreError


def _matches(row: Record, filters: Filters) -> bool:
    for column, expected in (filters or {}).items():
        value = row.get(column)
        if isinstance(expected, (list, tuple, set, frozenset)):
            if value not in expected:
                return False
        elif value != expected:
            return False
    return True


class InMemoryStore(BaseStore):
    """Dictionary-backed store with the same contract as the Supabase store.

    Rows get a generated ``id`` when inserted without one. ``unique`` lists
    the columns that must stay unique per table, mirroring the database
    constraints the import relies on.
    """

    DEFAULT_UNIQUE = {
        "players": ("display_name",),
        "beyblades": ("name",),
        "matches": ("external_id",),
    }

    def __init__(self, unique: Optional[Dict[str, Sequence[str]]] = None):
        self.tables: Dict[str, List[Record]] = {}
        self.unique = dict(self.DEFAULT_UNIQUE if unique is None else unique)
        self._ids = itertools.count(1)
        # table name -> error message; the next write to that table fails once
        self.fail_next: Dict[str, str] = {}

    def _table(self, table: str) -> List[Record]:
        return self.tables.setdefault(table, [])

    def _check_failure(self, table: str) -> None:
        message = self.fail_next.pop(table, None)
        if message is not None:
            raise StoreError(message)

    def _check_unique(self, table: str, row: Record, ignore: Optional[Record] = None) -> None:
        for column in self.unique.get(table, ()):
            value = row.get(column)
            if value is None:
                continue
            for existing in self._table(table):
                if existing is not ignore and existing.get(column) == value:
                    raise StoreError(
                        f'duplicate key value violates unique constraint "{table}_{column}_key"'
                    )

    def seed(self, table: str, rows: Sequence[Record]) -> List[Record]:
        """Adds rows directly, bypassing failure injection."""
        stored = []
        for row in rows:
            record = dict(row)
            record.setdefault("id", f"{table}-{next(self._ids)}")
            self._table(table).append(record)
            stored.append(deepcopy(record))
        return stored

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Filters = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Record]:
        rows = [deepcopy(row) for row in self._table(table) if _matches(row, filters)]
        if order_by:
            rows.sort(key=lambda row: (row.get(order_by) is None, row.get(order_by) or ""), reverse=descending)
        if limit is not None:
            rows = rows[:limit]
        if columns.strip() != "*":
            wanted = [column.strip() for column in columns.split(",")]
            rows = [{column: row.get(column) for column in wanted} for row in rows]
        return rows

    async def insert(self, table: str, rows: Sequence[Record]) -> List[Record]:
        self._check_failure(table)
        for row in rows:
            self._check_unique(table, row)
        logger.debug(f"Inserting {len(rows)} rows into {table} (memory).")
        return self.seed(table, rows)

    async def upsert(self, table: str, row: Record, on_conflict: str) -> Record:
        self._check_failure(table)
        key = row.get(on_conflict)
        for existing in self._table(table):
            if key is not None and existing.get(on_conflict) == key:
                existing.update(row)
                return deepcopy(existing)
        self._check_unique(table, row)
        return self.seed(table, [row])[0]

    async def update(self, table: str, values: Record, filters: Filters) -> List[Record]:
        self._check_failure(table)
        updated = []
        for existing in self._table(table):
            if _matches(existing, filters):
                self._check_unique(table, {**existing, **values}, ignore=existing)
                existing.update(values)
                updated.append(deepcopy(existing))
        return updated

    async def delete(self, table: str, filters: Filters) -> None:
        self._check_failure(table)
        self.tables[table] = [row for row in self._table(table) if not _matches(row, filters)]

    async def count(self, table: str) -> int:
        return len(self._table(table))

    def rows(self, table: str, **filters: Any) -> List[Record]:
        """Synchronous read used by tests and diagnostics."""
        return [deepcopy(row) for row in self._table(table) if _matches(row, filters)]
