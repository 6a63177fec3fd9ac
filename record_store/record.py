"""Base records for collections — open property bags with a primary key."""

from __future__ import annotations

import uuid
from functools import lru_cache
from typing import Any, ClassVar, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

PrimaryKey = Union[str, int]

T = TypeVar("T", bound="BaseRecord")


@lru_cache(maxsize=None)
def _adapter(annotation: Any) -> TypeAdapter:
    return TypeAdapter(annotation)


class BaseRecord(BaseModel):
    """Entity stored in a :class:`~record_store.collection.Collection`.

    Declares no fields of its own: subclasses name their primary-key field
    through ``primary_key_field`` and declare it. Unknown properties are kept
    as extra fields, so any property bag can be turned into a record.
    Assignments are validated, so a key set through ``update`` keeps the
    field's type and stays equal to the key the record is indexed under.
    """

    model_config = ConfigDict(
        extra="allow",
        use_enum_values=True,
        validate_assignment=True,
    )

    primary_key_field: ClassVar[str] = "id"

    @property
    def primary_key(self) -> PrimaryKey:
        """Return the value of the field designated as the primary key."""
        return getattr(self, self.primary_key_field)

    @classmethod
    def primary_key_of(cls, properties: dict[str, Any]) -> PrimaryKey | None:
        """Read the primary key out of a property bag, coerced to the field's type.

        Returns None when the bag has no key.
        """
        raw = properties.get(cls.primary_key_field)
        if raw is None:
            return None
        field = cls.model_fields.get(cls.primary_key_field)
        if field is None:
            return raw
        return _adapter(field.annotation).validate_python(raw)

    # -- Property bag --

    @classmethod
    def from_properties(cls: type[T], properties: dict[str, Any]) -> T:
        return cls.model_validate(properties)

    def update(self: T, properties: dict[str, Any]) -> T:
        """Overwrite the given properties in place and return this instance."""
        for key, value in properties.items():
            setattr(self, key, value)
        return self

    def to_properties(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    def __getitem__(self, key: str) -> Any:
        try:
            return getattr(self, key)
        except AttributeError:
            raise KeyError(key) from None

    def __contains__(self, key: str) -> bool:
        return key in type(self).model_fields or key in (self.model_extra or {})


class Record(BaseRecord):
    """Record keyed by ``id``, generated as a UUID string when not given."""

    id: PrimaryKey = Field(default_factory=lambda: str(uuid.uuid4()))
