"""Persistence strategy that keeps property bags in JSONL or per-record JSON files."""

from __future__ import annotations

import asyncio
import json
import os
import threading
from pathlib import Path
from typing import Any, ClassVar

from ..log import store_log
from ..persistence import PersistenceStrategy, primary_key_of
from ..record import BaseRecord, PrimaryKey
from ..storage_layout import StorageLayout
from ..writer import CollectionWriter


class JsonlPersistenceStrategy(PersistenceStrategy):
    """File-backed remote for collections.

    ``storage_layout`` controls how property bags are stored:

    * ``LIST_ITEM`` – all bags in one JSONL file (``list_path`` is the file).
    * ``FILE``      – one ``<pk>.json`` file per record inside ``list_path/``.

    When ``list_path`` is omitted, each collection gets its own path under
    *records_path* (default ``RECORDS_PATH`` from ``record_store.conf``):
    ``<records_path>/<collection name>.jsonl`` or ``<records_path>/<collection name>/``.

    Disk access runs in a worker thread; the collection is only touched
    back on the event loop. Access to one path is serialized across every
    instance in the process.
    """

    _locks_guard: ClassVar[threading.Lock] = threading.Lock()
    _path_locks: ClassVar[dict[Path, threading.Lock]] = {}

    def __init__(
        self,
        list_path: Path | str | None = None,
        storage_layout: StorageLayout = StorageLayout.LIST_ITEM,
        records_path: Path | str | None = None,
    ) -> None:
        self.list_path = Path(list_path) if list_path is not None else None
        self.storage_layout = StorageLayout(storage_layout)
        self.records_path = Path(records_path) if records_path is not None else None

    def path_for(self, collection: CollectionWriter) -> Path:
        if self.list_path is not None:
            return self.list_path
        base = self.records_path
        if base is None:
            from ..conf import RECORDS_PATH
            base = RECORDS_PATH
        if self.storage_layout is StorageLayout.LIST_ITEM:
            return base / f"{collection.name}.jsonl"
        return base / collection.name

    # -- Strategy calls --

    async def load(
        self,
        collection: CollectionWriter,
        params: Any = None,
        scope_name: str | None = None,
    ) -> list[BaseRecord]:
        """Set every stored bag whose properties equal all ``params`` entries."""
        path = self.path_for(collection)
        bags = await asyncio.to_thread(self._read_all, path)
        filters = params or {}
        matching = [b for b in bags if all(b.get(k) == v for k, v in filters.items())]
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
        pk = primary_key_of(record)
        path = self.path_for(collection)
        bag = await asyncio.to_thread(self._read_one, path, collection.record_class, pk)
        if bag is None:
            raise KeyError(f"No stored record with primary key {pk!r} in {path}")
        loaded = collection.set(bag)
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
        path = self.path_for(collection)
        bag = record.to_properties()
        await asyncio.to_thread(self._write_one, path, collection.record_class, bag)
        saved = collection.set(bag)
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
        """Delete the stored bag and unset the record. Returns True if it was stored."""
        pk = record.primary_key
        path = self.path_for(collection)
        existed = await asyncio.to_thread(self._delete_one, path, collection.record_class, pk)
        collection.unset(pk)
        scope = collection.scope(scope_name)
        if scope is not None:
            scope.remove_primary_keys([pk])
        return existed

    # -- Disk access (runs in a worker thread) --
    #
    # Writes re-read the file they change, so they hold the path's lock for
    # the whole read-modify-write.

    def _lock_for(self, path: Path) -> threading.Lock:
        with self._locks_guard:
            return self._path_locks.setdefault(path.resolve(), threading.Lock())

    def _read_all(self, path: Path) -> list[dict]:
        with self._lock_for(path):
            if self.storage_layout is StorageLayout.LIST_ITEM:
                return self._load_jsonl(path)
            return self._load_files(path)

    def _read_one(self, path: Path, record_class: type[BaseRecord], pk: PrimaryKey) -> dict | None:
        with self._lock_for(path):
            if self.storage_layout is StorageLayout.FILE:
                fp = self._record_file(path, pk)
                if not fp.exists():
                    return None
                return self._read_bag(fp)
            for bag in self._load_jsonl(path):
                if record_class.primary_key_of(bag) == pk:
                    return bag
            return None

    def _write_one(self, path: Path, record_class: type[BaseRecord], bag: dict) -> None:
        pk = record_class.primary_key_of(bag)
        with self._lock_for(path):
            if self.storage_layout is StorageLayout.FILE:
                fp = self._record_file(path, pk)
                path.mkdir(parents=True, exist_ok=True)
                fp.write_text(
                    json.dumps(bag, indent=2, ensure_ascii=False),
                    encoding="utf-8",
                )
                return
            bags = [b for b in self._load_jsonl(path) if record_class.primary_key_of(b) != pk]
            bags.append(bag)
            self._save_jsonl(path, bags)

    def _delete_one(self, path: Path, record_class: type[BaseRecord], pk: PrimaryKey) -> bool:
        with self._lock_for(path):
            if self.storage_layout is StorageLayout.FILE:
                fp = self._record_file(path, pk)
                if not fp.exists():
                    return False
                fp.unlink()
                return True
            bags = self._load_jsonl(path)
            kept = [b for b in bags if record_class.primary_key_of(b) != pk]
            if len(kept) == len(bags):
                return False
            self._save_jsonl(path, kept)
            return True

    # -- LIST_ITEM backend (JSONL) --

    def _load_jsonl(self, path: Path) -> list[dict]:
        if not path.exists():
            return []
        bags: list[dict] = []
        with open(path, "r", encoding="utf-8") as fh:
            for line_no, line in enumerate(fh, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    bag = json.loads(line)
                except json.JSONDecodeError:
                    store_log(f"skipped unreadable line {line_no} in {path}", source="jsonl")
                    continue
                if not isinstance(bag, dict):
                    store_log(f"skipped non-object line {line_no} in {path}", source="jsonl")
                    continue
                bags.append(bag)
        return bags

    def _save_jsonl(self, path: Path, bags: list[dict]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as fh:
            for bag in bags:
                fh.write(json.dumps(bag, ensure_ascii=False) + "\n")

    # -- FILE backend (<pk>.json) --

    def _record_file(self, path: Path, pk: PrimaryKey) -> Path:
        """``<pk>.json`` inside ``path``; keys that would leave ``path`` are rejected."""
        stem = str(pk)
        if not stem or stem in (".", "..") or "/" in stem or "\\" in stem or os.sep in stem:
            raise ValueError(f"Primary key {pk!r} cannot be used as a file name")
        return path / f"{stem}.json"

    def _read_bag(self, fp: Path) -> dict | None:
        try:
            bag = json.loads(fp.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            store_log(f"skipped unreadable file {fp}", source="jsonl")
            return None
        if not isinstance(bag, dict):
            store_log(f"skipped non-object file {fp}", source="jsonl")
            return None
        return bag

    def _load_files(self, path: Path) -> list[dict]:
        if not path.is_dir():
            return []
        bags: list[dict] = []
        for fp in sorted(path.glob("*.json")):
            bag = self._read_bag(fp)
            if bag is not None:
                bags.append(bag)
        return bags
