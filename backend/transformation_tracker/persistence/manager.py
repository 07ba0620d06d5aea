"""Conversion between transformations and their JSON representation."""

from __future__ import annotations

from typing import IO, TYPE_CHECKING

from transformation_tracker.models.transformation import Transformation
from transformation_tracker.persistence import json_codec
from transformation_tracker.persistence.records import TransformationRecord
from transformation_tracker.utils.time import Clock, SystemClock

if TYPE_CHECKING:
    from transformation_tracker.store.base import TransformationManager


class TransformationPersistenceManager:
    """Reads and writes transformations as JSON.

    Writing to a buffer and writing to a stream produce the same bytes.
    Malformed JSON raises :class:`ParsingError`; JSON of the wrong shape raises
    :class:`ProcessingError`; missing or invalid fields raise
    :class:`ValidationError`.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or SystemClock()

    def read(self, content: str | bytes, manager: "TransformationManager | None" = None) -> Transformation:
        record = json_codec.loads(TransformationRecord, content)
        return Transformation.from_record(record, clock=self._clock, manager=manager)

    def read_stream(self, stream: IO[bytes], manager: "TransformationManager | None" = None) -> Transformation:
        record = json_codec.load(TransformationRecord, stream)
        return Transformation.from_record(record, clock=self._clock, manager=manager)

    def write(self, transformation: Transformation) -> bytes:
        return json_codec.dumps(Transformation.to_record(transformation))

    def write_stream(self, transformation: Transformation, stream: IO[bytes]) -> None:
        json_codec.dump(Transformation.to_record(transformation), stream)


__all__ = ["TransformationPersistenceManager"]
