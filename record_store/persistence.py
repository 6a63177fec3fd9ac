"""Contract between a collection and the source it synchronizes with."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from .record import BaseRecord, PrimaryKey

if TYPE_CHECKING:
    from .writer import CollectionWriter


class PersistenceStrategy(ABC):
    """
    Performs remote load/save/destroy calls on behalf of collections.

    A strategy holds no per-collection state and may be shared. Each call
    receives a :class:`CollectionWriter` for the calling collection; on
    success the strategy reflects the authoritative state through it.
    Failures are raised from the coroutine and reach the caller unchanged.
    """

    @abstractmethod
    async def load(
        self,
        collection: CollectionWriter,
        params: Any = None,
        scope_name: str | None = None,
    ) -> Any:
        pass

    @abstractmethod
    async def load_one(
        self,
        collection: CollectionWriter,
        record: BaseRecord | PrimaryKey,
        params: Any = None,
        scope_name: str | None = None,
    ) -> Any:
        pass

    @abstractmethod
    async def save_one(
        self,
        collection: CollectionWriter,
        record: BaseRecord,
        params: Any = None,
        scope_name: str | None = None,
    ) -> Any:
        pass

    @abstractmethod
    async def destroy_one(
        self,
        collection: CollectionWriter,
        record: BaseRecord,
        params: Any = None,
        scope_name: str | None = None,
    ) -> Any:
        pass


def primary_key_of(record: BaseRecord | PrimaryKey) -> PrimaryKey:
    """Accept either a record or a bare primary key."""
    if isinstance(record, BaseRecord):
        return record.primary_key
    return record
