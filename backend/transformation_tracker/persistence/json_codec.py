"""JSON encoding of records to buffers and streams."""

from __future__ import annotations

from typing import IO, Any, TypeVar

import orjson
import pydantic

from transformation_tracker.core.errors import ParsingError, ProcessingError
from transformation_tracker.persistence.records import Record

R = TypeVar("R", bound=Record)


def dumps(record: Record) -> bytes:
    """Encode a record to JSON bytes."""
    try:
        return orjson.dumps(record.to_dict())
    except (TypeError, ValueError) as exc:
        raise ProcessingError(f"failed to encode {record.FAMILY} record: {exc}") from exc


def dump(record: Record, stream: IO[bytes]) -> None:
    """Encode a record to a binary stream; identical bytes to :func:`dumps`."""
    payload = dumps(record)
    try:
        stream.write(payload)
    except OSError as exc:
        raise ProcessingError(f"failed to write {record.FAMILY} record: {exc}") from exc


def loads(record_cls: type[R], content: str | bytes) -> R:
    """Decode JSON content into ``record_cls`` or its unknown variant."""
    try:
        data: Any = orjson.loads(content)
    except orjson.JSONDecodeError as exc:
        raise ParsingError(f"malformed {record_cls.FAMILY} record: {exc}") from exc
    try:
        return record_cls.parse(data)  # type: ignore[return-value]
    except (ValueError, pydantic.ValidationError) as exc:
        raise ProcessingError(f"invalid {record_cls.FAMILY} record: {exc}") from exc


def load(record_cls: type[R], stream: IO[bytes]) -> R:
    """Decode JSON read from a binary stream."""
    try:
        content = stream.read()
    except OSError as exc:
        raise ProcessingError(f"failed to read {record_cls.FAMILY} record: {exc}") from exc
    return loads(record_cls, content)


__all__ = ["dump", "dumps", "load", "loads"]
