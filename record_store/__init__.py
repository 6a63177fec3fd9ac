"""In-memory record collections with named scopes and pluggable persistence."""

from .collection import Collection
from .errors import ConfigurationError, RecordStoreError
from .persistence import PersistenceStrategy
from .record import BaseRecord, PrimaryKey, Record
from .scope import Scope, WhereScope
from .storage_layout import StorageLayout
from .strategies import JsonlPersistenceStrategy, MemoryPersistenceStrategy, SingleFlightStrategy
from .sync_protocol import SyncOperation
from .writer import CollectionWriter
