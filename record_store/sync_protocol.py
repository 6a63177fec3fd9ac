"""Names of the calls a collection delegates to its persistence strategy."""

from enum import StrEnum


class SyncOperation(StrEnum):
    LOAD = "load"
    LOAD_ONE = "load_one"
    SAVE_ONE = "save_one"
    DESTROY_ONE = "destroy_one"
