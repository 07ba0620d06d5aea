"""Base class for entities that can be saved to and restored from records."""

from __future__ import annotations

from enum import Enum
from typing import Callable, Generic, TypeVar

from transformation_tracker.core.errors import (
    UnsupportedVersionError,
    ValidationError,
)
from transformation_tracker.persistence.records import Record

R = TypeVar("R", bound=Record)
F = TypeVar("F")
C = TypeVar("C")
E = TypeVar("E", bound=Enum)


class Persistable(Generic[R]):
    """Identity plus the hooks used to encode an entity to a record and back.

    Subclasses extend :meth:`write_to` and :meth:`read_from`, calling the base
    implementation first so the identifier is handled consistently.
    Equality and hashing are based on the identifier only.
    """

    def __init__(self, persistable_type: str, id: str | None) -> None:
        # ``id`` is None only while an entity is being restored from a record.
        self.persistable_type = persistable_type
        self._id = id

    @property
    def id(self) -> str | None:
        return self._id

    def has_unknowns(self) -> bool:
        """Whether this entity holds information the current code does not understand."""
        return False

    def __hash__(self) -> int:
        return hash(self._id)

    def __eq__(self, other: object) -> bool:
        if other is self:
            return True
        if isinstance(other, Persistable):
            return self._id == other._id
        return NotImplemented

    def write_to(self, record: R) -> R:
        record.id = self._require_text("id", self._id)
        return record

    def read_from(self, record: R) -> None:
        self._id = self._require_text("id", record.id)

    def _check_version(self, record: R) -> None:
        # newer versions are read as the current one for forward compatibility
        if record.version < record.MINIMUM_VERSION:
            raise UnsupportedVersionError(self.persistable_type, record.version, self._id)

    def _invalid(self, field: str) -> ValidationError:
        return ValidationError(
            f"invalid {self.persistable_type} {field} for object: {self._id}",
            field=field,
            reason="invalid",
            object_id=self._id,
        )

    def _require(self, field: str, value: F | None) -> F:
        if value is None:
            if self._id is not None:
                message = f"missing {self.persistable_type} {field} for object: {self._id}"
            else:
                message = f"missing {self.persistable_type} {field}"
            raise ValidationError(message, field=field, reason="missing", object_id=self._id)
        return value

    def _require_text(self, field: str, value: str | None) -> str:
        self._require(field, value)
        if not value:
            if self._id is not None:
                message = f"empty {self.persistable_type} {field} for object: {self._id}"
            else:
                message = f"empty {self.persistable_type} {field}"
            raise ValidationError(message, field=field, reason="empty", object_id=self._id)
        return value

    def _convert(self, field: str, value: F | None, converter: Callable[[F], C]) -> C | None:
        if value is None:
            return None
        try:
            return converter(value)
        except ValidationError:
            raise
        except Exception as exc:  # noqa: BLE001
            raise self._invalid(field) from exc

    def _convert_required(self, field: str, value: F | None, converter: Callable[[F], C]) -> C:
        return self._convert(field, self._require(field, value), converter)  # type: ignore[return-value]

    def _encode_enum(self, field: str, value: E | None, unknown: E) -> str:
        if value is unknown:
            raise ValidationError(f"unknown {field}", field=field, reason="unknown", object_id=self._id)
        return self._require(field, value).name

    def _decode_required_enum(self, field: str, enum_cls: type[E], unknown: E, value: str | None) -> E:
        return _lookup_enum(enum_cls, self._require_text(field, value), unknown)

    @staticmethod
    def _decode_enum(enum_cls: type[E], unknown: E, value: str | None, if_none: E | None = None) -> E | None:
        if value is None:
            return if_none
        return _lookup_enum(enum_cls, value, unknown)


def _lookup_enum(enum_cls: type[E], name: str, unknown: E) -> E:
    try:
        return enum_cls[name]
    except KeyError:
        return unknown


__all__ = ["Persistable"]
