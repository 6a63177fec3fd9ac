"""Exceptions raised by the record store."""


class RecordStoreError(Exception):
    """Base error for record store failures."""


class ConfigurationError(RecordStoreError):
    """A collection is missing something it needs to run, e.g. a persistence strategy."""
