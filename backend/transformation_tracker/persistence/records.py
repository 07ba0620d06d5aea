"""Versioned records persisted for transformations, metadata and request info.

Every record carries a ``clazz`` discriminator, an ``id`` and a ``version``.
Decoding peeks at ``clazz`` and picks the matching record class from a
registry; an absent or unrecognized discriminator decodes to the family's
``Unknown*`` variant instead of failing so that data written by newer code can
still be loaded (but not re-encoded) by older code.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar, Mapping

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SerializerFunctionWrapHandler,
    field_serializer,
    field_validator,
    model_serializer,
)

from transformation_tracker.utils.time import from_epoch_seconds, to_epoch_seconds

_VARIANTS: dict[str, dict[str, type["Record"]]] = {}
_UNKNOWN_VARIANTS: dict[str, type["Record"]] = {}


def register_record(cls: type["Record"]) -> type["Record"]:
    """Register a record class under its family and discriminator.

    Classes without a discriminator become the family's unknown variant.
    """
    if cls.CLAZZ is None:
        _UNKNOWN_VARIANTS[cls.FAMILY] = cls
    else:
        _VARIANTS.setdefault(cls.FAMILY, {})[cls.CLAZZ] = cls
    return cls


def _parse_time(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return from_epoch_seconds(value)
        except (OverflowError, OSError) as exc:
            raise ValueError(f"timestamp out of range: {value}") from exc
    return value


class Record(BaseModel):
    """Base for all persisted records."""

    FAMILY: ClassVar[str] = ""
    CLAZZ: ClassVar[str | None] = None
    CURRENT_VERSION: ClassVar[int] = 1
    MINIMUM_VERSION: ClassVar[int] = 1

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    version: int = 0

    @model_serializer(mode="wrap")
    def _with_discriminator(self, handler: SerializerFunctionWrapHandler) -> dict[str, Any]:
        data = handler(self)
        if self.CLAZZ is None:
            return data
        return {"clazz": self.CLAZZ, **data}

    @classmethod
    def parse(cls, data: Any) -> "Record":
        """Decode ``data`` into the record variant named by its discriminator."""
        if isinstance(data, Record):
            return data
        if not isinstance(data, Mapping):
            raise ValueError(f"expected an object for a {cls.FAMILY} record")
        clazz = data.get("clazz")
        variants = _VARIANTS.get(cls.FAMILY, {})
        variant = variants.get(clazz) if isinstance(clazz, str) else None
        if variant is None:
            variant = _UNKNOWN_VARIANTS[cls.FAMILY]
        return variant.model_validate(data)

    def is_unknown(self) -> bool:
        return self.CLAZZ is None

    def to_dict(self) -> dict[str, Any]:
        """Return the wire representation, omitting absent fields."""
        return self.model_dump(mode="json", exclude_none=True)


@register_record
class RequestInfoRecord(Record):
    FAMILY: ClassVar[str] = "request_info"
    CLAZZ: ClassVar[str | None] = "request"

    metacard_location: str | None = None
    current_location: str | None = None
    final_location: str | None = None


@register_record
class UnknownRequestInfoRecord(RequestInfoRecord):
    CLAZZ: ClassVar[str | None] = None


@register_record
class MetadataRecord(Record):
    FAMILY: ClassVar[str] = "metadata"
    CLAZZ: ClassVar[str | None] = "metadata"

    transform_id: str | None = None
    type: str | None = None
    request_info: RequestInfoRecord | None = None
    state: str | None = None
    start_time: datetime | None = None
    completion_time: datetime | None = None
    content_type: str | None = None
    content_length: int = -1
    failure_reason: str | None = None
    failure_message: str | None = None

    @field_validator("request_info", mode="before")
    @classmethod
    def _parse_request_info(cls, value: Any) -> Any:
        return None if value is None else RequestInfoRecord.parse(value)

    @field_validator("start_time", "completion_time", mode="before")
    @classmethod
    def _parse_times(cls, value: Any) -> Any:
        return _parse_time(value)

    @field_serializer("start_time", "completion_time")
    def _serialize_times(self, value: datetime | None) -> float | None:
        return None if value is None else to_epoch_seconds(value)


@register_record
class UnknownMetadataRecord(MetadataRecord):
    CLAZZ: ClassVar[str | None] = None


@register_record
class TransformationRecord(Record):
    FAMILY: ClassVar[str] = "transformation"
    CLAZZ: ClassVar[str | None] = "transformation"

    request_info: RequestInfoRecord | None = None
    start_time: datetime | None = None
    metadatas: list[MetadataRecord] = Field(default_factory=list)

    @field_validator("request_info", mode="before")
    @classmethod
    def _parse_request_info(cls, value: Any) -> Any:
        return None if value is None else RequestInfoRecord.parse(value)

    @field_validator("start_time", mode="before")
    @classmethod
    def _parse_times(cls, value: Any) -> Any:
        return _parse_time(value)

    @field_validator("metadatas", mode="before")
    @classmethod
    def _parse_metadatas(cls, value: Any) -> Any:
        if value is None:
            return []
        if not isinstance(value, (list, tuple)):
            raise ValueError("metadatas must be a list")
        return [MetadataRecord.parse(item) for item in value]

    @field_serializer("start_time")
    def _serialize_times(self, value: datetime | None) -> float | None:
        return None if value is None else to_epoch_seconds(value)


@register_record
class UnknownTransformationRecord(TransformationRecord):
    CLAZZ: ClassVar[str | None] = None


__all__ = [
    "Record",
    "RequestInfoRecord",
    "UnknownRequestInfoRecord",
    "MetadataRecord",
    "UnknownMetadataRecord",
    "TransformationRecord",
    "UnknownTransformationRecord",
    "register_record",
]
