"""Narrow mutation handle handed to persistence strategies."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, Iterable, TypeVar

from .record import BaseRecord, PrimaryKey

if TYPE_CHECKING:
    from .collection import Collection
    from .scope import Scope

RecordType = TypeVar("RecordType", bound=BaseRecord)


class CollectionWriter(Generic[RecordType]):
    """Exposes only the store operations a strategy needs to reflect remote state."""

    def __init__(self, collection: Collection[RecordType]) -> None:
        self._collection = collection

    def __repr__(self) -> str:
        return f"CollectionWriter({self._collection!r})"

    @property
    def name(self) -> str:
        return self._collection.name

    @property
    def record_class(self) -> type[RecordType]:
        return self._collection.record_class

    def has(self, primary_key: PrimaryKey) -> bool:
        return self._collection.has(primary_key)

    def get(self, primary_key: PrimaryKey) -> RecordType | None:
        return self._collection.get(primary_key)

    def set(self, properties: dict[str, Any]) -> RecordType:
        return self._collection.set(properties)

    def set_record(self, record: RecordType) -> RecordType:
        return self._collection.set_record(record)

    def set_many(self, properties_list: Iterable[dict[str, Any]]) -> list[RecordType]:
        return self._collection.set_many(properties_list)

    def unset(self, primary_key: PrimaryKey) -> CollectionWriter[RecordType]:
        self._collection.unset(primary_key)
        return self

    def unset_many(self, primary_keys: Iterable[PrimaryKey]) -> CollectionWriter[RecordType]:
        self._collection.unset_many(primary_keys)
        return self

    def update_record_primary_key(self, old_pk: PrimaryKey, new_pk: PrimaryKey) -> None:
        self._collection.update_record_primary_key(old_pk, new_pk)

    def scope(self, name: str | None) -> Scope[RecordType] | None:
        """The named scope, created on demand. ``None`` when no name is given."""
        if name is None:
            return None
        return self._collection.provide_scope(name)
