"""Persistence strategy backed by an in-process dict standing in for a remote source."""

from __future__ import annotations

import asyncio
import copy
from typing import Any

from ..persistence import PersistenceStrategy, primary_key_of
from ..record import BaseRecord, PrimaryKey
from ..writer import CollectionWriter


class MemoryPersistenceStrategy(PersistenceStrategy):
    """Keeps property bags in ``remote``, keyed by primary key.

    Bags are copied on the way in and out, so the remote side never shares
    objects with a collection. ``delay`` seconds are awaited before each
    call to stand in for network latency.
    """

    def __init__(self, remote: dict[PrimaryKey, dict[str, Any]] | None = None, delay: float = 0.0) -> None:
        self.remote: dict[PrimaryKey, dict[str, Any]] = copy.deepcopy(remote or {})
        self.delay = delay

    async def _wait(self) -> None:
        await asyncio.sleep(self.delay)

    async def load(
        self,
        collection: CollectionWriter,
        params: Any = None,
        scope_name: str | None = None,
    ) -> list[BaseRecord]:
        """Set every remote bag whose properties equal all ``params`` entries."""
        await self._wait()
        filters = params or {}
        matching = [
            copy.deepcopy(bag)
            for bag in self.remote.values()
            if all(bag.get(k) == v for k, v in filters.items())
        ]
        records = collection.set_many(matching)
        scope = collection.scope(scope_name)
        if scope is not None:
            scope.set_primary_keys(r.primary_key for r in records)
        return records

    async def load_one(
        self,
        collection: CollectionWriter,
        record: BaseRecord | PrimaryKey,
        params: Any = None,
        scope_name: str | None = None,
    ) -> BaseRecord:
        await self._wait()
        pk = primary_key_of(record)
        if pk not in self.remote:
            raise KeyError(f"No remote record with primary key {pk!r}")
        loaded = collection.set(copy.deepcopy(self.remote[pk]))
        scope = collection.scope(scope_name)
        if scope is not None:
            scope.add_primary_keys([loaded.primary_key])
        return loaded

    async def save_one(
        self,
        collection: CollectionWriter,
        record: BaseRecord,
        params: Any = None,
        scope_name: str | None = None,
    ) -> BaseRecord:
        await self._wait()
        bag = record.to_properties()
        self.remote[record.primary_key] = bag
        saved = collection.set(copy.deepcopy(bag))
        scope = collection.scope(scope_name)
        if scope is not None:
            scope.add_primary_keys([saved.primary_key])
        return saved

    async def destroy_one(
        self,
        collection: CollectionWriter,
        record: BaseRecord,
        params: Any = None,
        scope_name: str | None = None,
    ) -> bool:
        """Remove the record remotely and locally. Returns True if it existed remotely."""
        await self._wait()
        pk = record.primary_key
        existed = self.remote.pop(pk, None) is not None
        collection.unset(pk)
        scope = collection.scope(scope_name)
        if scope is not None:
            scope.remove_primary_keys([pk])
        return existed
