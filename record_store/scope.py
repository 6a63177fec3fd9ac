"""Named, parameterized views over a collection's records."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, Iterable, TypeVar

from .record import BaseRecord, PrimaryKey

if TYPE_CHECKING:
    from .collection import Collection

RecordType = TypeVar("RecordType", bound=BaseRecord)

_MISSING = object()


class Scope(Generic[RecordType]):
    """A view holding the primary keys a scoped load brought in.

    ``items`` is recomputed from the owning collection on every access, so
    records unset from the collection drop out of the view. A scope never
    mutates the collection.
    """

    def __init__(
        self,
        collection: Collection[RecordType],
        name: str,
        params: dict[str, Any] | None = None,
    ) -> None:
        self._collection = collection
        self._name = name
        self.params: dict[str, Any] = dict(params or {})
        self._primary_keys: list[PrimaryKey] = []

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r}, params={self.params!r})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def collection(self) -> Collection[RecordType]:
        return self._collection

    def update_params(self, params: dict[str, Any]) -> None:
        self.params.update(params)

    # -- Keys --

    @property
    def primary_keys(self) -> list[PrimaryKey]:
        return list(self._primary_keys)

    def set_primary_keys(self, primary_keys: Iterable[PrimaryKey]) -> None:
        self._primary_keys = list(dict.fromkeys(primary_keys))

    def add_primary_keys(self, primary_keys: Iterable[PrimaryKey]) -> None:
        known = set(self._primary_keys)
        for pk in primary_keys:
            if pk not in known:
                known.add(pk)
                self._primary_keys.append(pk)

    def remove_primary_keys(self, primary_keys: Iterable[PrimaryKey]) -> None:
        drop = set(primary_keys)
        self._primary_keys = [pk for pk in self._primary_keys if pk not in drop]

    # -- View --

    @property
    def items(self) -> list[RecordType]:
        return self._collection.get_many(self._primary_keys)

    @property
    def size(self) -> int:
        return len(self.items)


class WhereScope(Scope[RecordType]):
    """Scope whose items are every record matching all of its ``params``."""

    @property
    def items(self) -> list[RecordType]:
        items = self.collection.items
        for prop_name, prop_value in self.params.items():
            items = [r for r in items if getattr(r, prop_name, _MISSING) == prop_value]
        return items
