"""Reference persistence strategies."""

from .jsonl import JsonlPersistenceStrategy
from .memory import MemoryPersistenceStrategy
from .single_flight import SingleFlightStrategy

__all__ = [
    "JsonlPersistenceStrategy",
    "MemoryPersistenceStrategy",
    "SingleFlightStrategy",
]
