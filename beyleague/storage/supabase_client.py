# beyleague/storage/supabase_client.py
import asyncio
from typing import Any, Awaitable, List, Optional, Sequence, TypeVar

import httpx
from loguru import logger
from postgrest import APIResponse
from postgrest.exceptions import APIError
from supabase import AsyncClient, create_async_client

from beyleague.config.settings import settings

from .base import BaseStore, Filters, Record, StoreError

T = TypeVar("T")

# Module-level storage for the async client instance
_async_supabase_client: Optional[AsyncClient] = None


async def initialize_supabase() -> Optional[AsyncClient]:
    """Initializes the global ASYNC Supabase client and returns it."""
    global _async_supabase_client
    if _async_supabase_client:
        logger.debug("Async Supabase client already initialized.")
        return _async_supabase_client

    # Writes go through the service key when one is configured
    key = settings.supabase_service_key or settings.supabase_key
    if not settings.supabase_url or not key:
        logger.critical("Supabase URL or Key not configured in settings.")
        raise SystemExit("Supabase configuration missing.")

    logger.debug(
        f"Attempting to initialize Async Supabase client with URL: {settings.supabase_url}"
    )
    logger.debug(f"Using Supabase Key (snippet): {key[:5]}...{key[-5:]}")

    try:
        client: AsyncClient = await create_async_client(settings.supabase_url, key)
        _async_supabase_client = client
        logger.success("Async Supabase client initialized successfully.")
        return client
    except Exception as e:
        logger.exception(f"Failed to initialize Async Supabase client: {e}")
        return None


def _apply_filters(query: Any, filters: Filters) -> Any:
    for column, value in (filters or {}).items():
        if isinstance(value, (list, tuple, set, frozenset)):
            query = query.in_(column, list(value))
        else:
            query = query.eq(column, value)
    return query


class SupabaseStore(BaseStore):
    """BaseStore backed by Supabase/PostgREST tables."""

    def __init__(self, client: AsyncClient, timeout: Optional[float] = None):
        self.client = client
        self.timeout = timeout if timeout is not None else settings.store_timeout_seconds

    async def _execute(self, table: str, action: str, call: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self.timeout)
        except APIError as e:
            logger.error(f"Error during {action} on {table}: {e.message}")
            logger.debug(f"Full APIError details: {e}")
            raise StoreError(e.message or str(e)) from e
        except asyncio.TimeoutError as e:
            logger.error(f"Timed out after {self.timeout}s during {action} on {table}.")
            raise StoreError(f"{action} on {table} timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"Transport error during {action} on {table}: {e}")
            raise StoreError(str(e)) from e

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Filters = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Record]:
        query = _apply_filters(self.client.table(table).select(columns), filters)
        if order_by:
            query = query.order(order_by, desc=descending)
        if limit is not None:
            query = query.limit(limit)
        response: APIResponse = await self._execute(table, "select", query.execute())
        return list(response.data or [])

    async def insert(self, table: str, rows: Sequence[Record]) -> List[Record]:
        if not rows:
            logger.debug(f"No rows provided for insert into {table}. Skipping.")
            return []
        response: APIResponse = await self._execute(
            table, "insert", self.client.table(table).insert(list(rows)).execute()
        )
        logger.debug(f"Inserted {len(rows)} records into {table}.")
        return list(response.data or [])

    async def upsert(self, table: str, row: Record, on_conflict: str) -> Record:
        response: APIResponse = await self._execute(
            table,
            "upsert",
            self.client.table(table).upsert(row, on_conflict=on_conflict).execute(),
        )
        if not response.data:
            raise StoreError(f"Upsert into {table} returned no row")
        return response.data[0]

    async def update(self, table: str, values: Record, filters: Filters) -> List[Record]:
        query = _apply_filters(self.client.table(table).update(values), filters)
        response: APIResponse = await self._execute(table, "update", query.execute())
        return list(response.data or [])

    async def delete(self, table: str, filters: Filters) -> None:
        query = _apply_filters(self.client.table(table).delete(), filters)
        await self._execute(table, "delete", query.execute())

    async def count(self, table: str) -> int:
        query = self.client.table(table).select("id", count="exact").limit(1)
        response: APIResponse = await self._execute(table, "count", query.execute())
        return response.count or 0


async def create_store() -> SupabaseStore:
    """Returns a store over the shared async client, initializing it on first use."""
    client = await initialize_supabase()
    if not client:
        raise StoreError("Failed to initialize Supabase client.")
    return SupabaseStore(client)
