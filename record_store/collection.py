"""A store for records.

All storage related manipulation happens here: the instances kept in
memory, the named scopes over them, and delegation of remote
synchronisation to a persistence strategy.
"""

from __future__ import annotations

import re
import threading
import uuid
from functools import partial
from typing import Any, Awaitable, Callable, ClassVar, Generic, Iterable, Iterator, TypeVar

from .errors import ConfigurationError
from .log import store_log
from .persistence import PersistenceStrategy, primary_key_of
from .record import BaseRecord, PrimaryKey
from .scope import Scope
from .sync_protocol import SyncOperation
from .writer import CollectionWriter

RecordType = TypeVar("RecordType", bound=BaseRecord)

_T = TypeVar("_T")

_MISSING = object()


def _compile(regex: str | re.Pattern[str]) -> re.Pattern[str]:
    if isinstance(regex, str):
        return re.compile(regex)
    return regex


class Collection(Generic[RecordType]):
    """Keyed set of record instances with scopes and a persistence strategy.

    Subclasses fix ``record_class``::

        class Users(Collection[User]):
            record_class = User

    ``set`` keeps instance identity: setting properties for a primary key
    that is already stored updates that instance in place, so every holder
    of the reference sees the change.
    """

    record_class: ClassVar[type[BaseRecord] | None] = None
    scope_class: ClassVar[type[Scope]] = Scope
    # Defaults to the lowercased class name
    collection_name: ClassVar[str] = ""

    def __init__(self, persistence_strategy: PersistenceStrategy | None = None) -> None:
        if self.record_class is None:
            raise ConfigurationError(f"{type(self).__name__} has no record_class")
        self._records: dict[PrimaryKey, RecordType] = {}
        self._scopes: dict[str, Scope[RecordType]] = {}
        self._lock = threading.RLock()
        self.persistence_strategy = persistence_strategy
        self._writer = CollectionWriter(self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(size={self.size}, scopes={self.scopes_names!r})"

    @property
    def name(self) -> str:
        return self.collection_name or type(self).__name__.lower()

    # -- Persistence strategy --

    def set_persistence_strategy(self, strategy: PersistenceStrategy) -> Collection[RecordType]:
        self.persistence_strategy = strategy
        return self

    def get_persistence_strategy(self) -> PersistenceStrategy:
        """Return the persistence strategy, or raise if none is set."""
        if self.persistence_strategy is None:
            raise ConfigurationError(
                f"No persistence strategy set on collection {self.name!r}"
            )
        return self.persistence_strategy

    # -- Read access --

    @property
    def size(self) -> int:
        return len(self._records)

    @property
    def items(self) -> list[RecordType]:
        with self._lock:
            return list(self._records.values())

    @property
    def items_primary_keys(self) -> list[PrimaryKey]:
        with self._lock:
            return list(self._records.keys())

    def __len__(self) -> int:
        return self.size

    def __contains__(self, primary_key: PrimaryKey) -> bool:
        return self.has(primary_key)

    def __iter__(self) -> Iterator[RecordType]:
        return iter(self.items)

    def has(self, primary_key: PrimaryKey) -> bool:
        return primary_key in self._records

    def get(self, primary_key: PrimaryKey) -> RecordType | None:
        """Return the stored instance itself, or None."""
        return self._records.get(primary_key)

    def get_many(self, primary_keys: Iterable[PrimaryKey]) -> list[RecordType]:
        """Look up several keys in order. Keys that are not stored are omitted."""
        with self._lock:
            return [self._records[pk] for pk in primary_keys if pk in self._records]

    def where_prop_eq(self, prop_name: str, prop_value: Any) -> list[RecordType]:
        return [r for r in self.items if getattr(r, prop_name, _MISSING) == prop_value]

    # -- Mutation --

    def set(self, properties: dict[str, Any]) -> RecordType:
        """Add a record, or update the stored one with the same primary key in place."""
        with self._lock:
            pk = self.record_class.primary_key_of(properties)
            existing = self._records.get(pk) if pk is not None else None
            if existing is not None:
                return existing.update(properties)
            record = self.record_class.from_properties(properties)
            self._records[record.primary_key] = record
            return record

    def set_record(self, record: RecordType) -> RecordType:
        """Store this exact instance under its own primary key, replacing any other."""
        with self._lock:
            self._records[record.primary_key] = record
            return record

    def set_many(self, properties_list: Iterable[dict[str, Any]]) -> list[RecordType]:
        with self._lock:
            return [self.set(properties) for properties in properties_list]

    def update_record_primary_key(self, old_pk: PrimaryKey, new_pk: PrimaryKey) -> None:
        """Move the record stored at ``old_pk`` to ``new_pk``.

        Whatever was stored at ``new_pk`` is replaced. Nothing happens when
        ``old_pk`` is not stored. The record's own primary-key field is
        brought in line with ``new_pk``.
        """
        with self._lock:
            record = self._records.pop(old_pk, None)
            if record is None:
                return
            if record.primary_key != new_pk:
                setattr(record, record.primary_key_field, new_pk)
            self._records[record.primary_key] = record
        store_log(f"re-keyed {old_pk!r} -> {new_pk!r}", source=self.name)

    def unset(self, primary_key: PrimaryKey) -> Collection[RecordType]:
        with self._lock:
            self._records.pop(primary_key, None)
        return self

    def unset_many(self, primary_keys: Iterable[PrimaryKey]) -> Collection[RecordType]:
        with self._lock:
            for pk in primary_keys:
                self._records.pop(pk, None)
        return self

    def clear(self) -> Collection[RecordType]:
        with self._lock:
            self._records.clear()
        return self

    def reset(self) -> None:
        """Unset all scopes and records. The persistence strategy stays bound."""
        with self._lock:
            self._records.clear()
            self._scopes.clear()
        store_log("reset", source=self.name)

    # -- Scopes --

    def get_scope(self, name: str) -> Scope[RecordType] | None:
        return self._scopes.get(name)

    @property
    def scopes_names(self) -> list[str]:
        with self._lock:
            return list(self._scopes.keys())

    def get_scopes_matching(self, regex: str | re.Pattern[str]) -> list[Scope[RecordType]]:
        """All scopes whose name contains a match for ``regex``, in registry order."""
        pattern = _compile(regex)
        with self._lock:
            return [scope for name, scope in self._scopes.items() if pattern.search(name)]

    def combine_scope_items(self, regex: str | re.Pattern[str]) -> list[RecordType]:
        """Concatenate the items of every matching scope. Duplicates are kept."""
        items: list[RecordType] = []
        for scope in self.get_scopes_matching(regex):
            items.extend(scope.items)
        return items

    get_combined_scope_items = combine_scope_items

    def provide_scope(
        self,
        name: str | None = None,
        params: dict[str, Any] | None = None,
    ) -> Scope[RecordType]:
        """Get an existing scope or create a new one.

        ``params``, when given, are merged into an existing scope's params.
        Without a name, a new scope is registered under a generated name.
        """
        with self._lock:
            if name is not None:
                scope = self._scopes.get(name)
                if scope is not None:
                    if params is not None:
                        scope.update_params(params)
                    return scope
            else:
                name = f"scope-{uuid.uuid4().hex}"
            scope = self.scope_class(self, name, params)
            self._scopes[name] = scope
        store_log(f"created scope {name!r}", source=self.name)
        return scope

    def set_scope(self, scope: Scope[RecordType]) -> None:
        with self._lock:
            self._scopes[scope.name] = scope

    def unset_scope(self, scope: Scope[RecordType]) -> None:
        """Remove ``scope`` unless its name is now bound to a different instance."""
        with self._lock:
            if self._scopes.get(scope.name) is scope:
                del self._scopes[scope.name]

    # -- Persistence delegation --
    #
    # The strategy is resolved before returning, so a missing one raises at
    # call time. The strategy call itself is only made once the returned
    # awaitable is awaited.

    def load(self, params: Any = None, scope_name: str | None = None) -> Awaitable[Any]:
        """Load records through the persistence strategy."""
        strategy = self.get_persistence_strategy()
        return self._delegate(
            SyncOperation.LOAD,
            partial(strategy.load, self._writer, params, scope_name),
            scope_name,
        )

    def load_one(
        self,
        record: BaseRecord | PrimaryKey,
        params: Any = None,
        scope_name: str | None = None,
    ) -> Awaitable[Any]:
        """Load one record, given as an instance or a primary key."""
        strategy = self.get_persistence_strategy()
        return self._delegate(
            SyncOperation.LOAD_ONE,
            partial(strategy.load_one, self._writer, record, params, scope_name),
            scope_name,
            primary_key_of(record),
        )

    def save_one(
        self,
        record: RecordType,
        params: Any = None,
        scope_name: str | None = None,
    ) -> Awaitable[Any]:
        strategy = self.get_persistence_strategy()
        return self._delegate(
            SyncOperation.SAVE_ONE,
            partial(strategy.save_one, self._writer, record, params, scope_name),
            scope_name,
            record.primary_key,
        )

    def destroy_one(
        self,
        record: RecordType,
        params: Any = None,
        scope_name: str | None = None,
    ) -> Awaitable[Any]:
        strategy = self.get_persistence_strategy()
        return self._delegate(
            SyncOperation.DESTROY_ONE,
            partial(strategy.destroy_one, self._writer, record, params, scope_name),
            scope_name,
            record.primary_key,
        )

    async def _delegate(
        self,
        operation: SyncOperation,
        call: Callable[[], Awaitable[_T]],
        scope_name: str | None,
        primary_key: PrimaryKey | None = None,
    ) -> _T:
        target = str(operation)
        if primary_key is not None:
            target += f"[{primary_key!r}]"
        if scope_name is not None:
            target += f" scope={scope_name!r}"
        store_log(f"{target} started", source=self.name)
        try:
            result = await call()
        except Exception as e:
            store_log(f"{target} failed: {type(e).__name__}: {e}", source=self.name)
            raise
        store_log(f"{target} done", source=self.name)
        return result
