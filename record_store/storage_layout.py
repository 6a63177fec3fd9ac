"""Storage layout types for file-backed persistence."""

from enum import Enum


class StorageLayout(str, Enum):
    """How records are laid out on disk by the JSONL strategy."""

    LIST_ITEM = "list_item" # line inside a single JSONL file
    FILE = "file"          # standalone <pk>.json file per record
