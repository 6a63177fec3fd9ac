"""Share one in-flight ``load_one`` per collection and primary key."""

from __future__ import annotations

import asyncio
from typing import Any

from ..log import store_log
from ..persistence import PersistenceStrategy, primary_key_of
from ..record import BaseRecord, PrimaryKey
from ..writer import CollectionWriter


class SingleFlightStrategy(PersistenceStrategy):
    """Wraps another strategy and de-duplicates concurrent ``load_one`` calls.

    While a ``load_one`` for a given collection and primary key is
    outstanding, further calls for the same pair await the same task
    instead of issuing their own. A joining call shares the first call's
    result and ignores its own ``params``; its ``scope_name`` still gets the
    loaded key. The entry is dropped once the task settles, so a later call
    starts a fresh load. All other calls go straight to the wrapped strategy.
    """

    def __init__(self, inner: PersistenceStrategy) -> None:
        self.inner = inner
        self._in_flight: dict[tuple[int, PrimaryKey], asyncio.Future] = {}

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    async def load(
        self,
        collection: CollectionWriter,
        params: Any = None,
        scope_name: str | None = None,
    ) -> Any:
        return await self.inner.load(collection, params, scope_name)

    async def load_one(
        self,
        collection: CollectionWriter,
        record: BaseRecord | PrimaryKey,
        params: Any = None,
        scope_name: str | None = None,
    ) -> Any:
        key = (id(collection), primary_key_of(record))
        pending = self._in_flight.get(key)
        if pending is None:
            pending = asyncio.ensure_future(
                self.inner.load_one(collection, record, params, scope_name)
            )
            self._in_flight[key] = pending
            pending.add_done_callback(lambda _f: self._in_flight.pop(key, None))
            return await asyncio.shield(pending)

        store_log(f"load_one[{key[1]!r}] joined in-flight load", source="single_flight")
        result = await asyncio.shield(pending)
        scope = collection.scope(scope_name)
        if scope is not None:
            loaded_pk = result.primary_key if isinstance(result, BaseRecord) else key[1]
            scope.add_primary_keys([loaded_pk])
        return result

    async def save_one(
        self,
        collection: CollectionWriter,
        record: BaseRecord,
        params: Any = None,
        scope_name: str | None = None,
    ) -> Any:
        return await self.inner.save_one(collection, record, params, scope_name)

    async def destroy_one(
        self,
        collection: CollectionWriter,
        record: BaseRecord,
        params: Any = None,
        scope_name: str | None = None,
    ) -> Any:
        return await self.inner.destroy_one(collection, record, params, scope_name)
