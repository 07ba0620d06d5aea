"""Tests for reading and writing transformations as JSON."""

from __future__ import annotations

import io

import orjson
import pytest

from transformation_tracker.core.errors import ParsingError, ProcessingError, UnsupportedVersionError
from transformation_tracker.models.status import ErrorCode
from transformation_tracker.persistence.manager import TransformationPersistenceManager


class FailingStream(io.BytesIO):
    def write(self, *args, **kwargs):  # type: ignore[override]
        raise OSError("no space left")

    def read(self, *args, **kwargs):  # type: ignore[override]
        raise OSError("unreadable")


@pytest.fixture
def persistence(clock) -> TransformationPersistenceManager:
    return TransformationPersistenceManager(clock)


def test_buffer_and_stream_are_byte_identical(persistence, transformation) -> None:
    idx = transformation.add("idx")
    other = transformation.add("other")
    idx.succeed("text/plain", io.BytesIO(b"hi"))
    other.fail(ErrorCode.TRANSFORMATION_FAILURE, "broken")
    stream = io.BytesIO()
    persistence.write_stream(transformation, stream)
    assert stream.getvalue() == persistence.write(transformation)


def test_wire_format(persistence, transformation) -> None:
    transformation.add("idx")
    data = orjson.loads(persistence.write(transformation))
    assert set(data) == {"clazz", "id", "version", "request_info", "start_time", "metadatas"}
    assert data["clazz"] == "transformation"
    assert data["version"] == 1
    assert data["request_info"]["clazz"] == "request"
    assert data["start_time"] == transformation.start_time.timestamp()
    metadata = data["metadatas"][0]
    assert set(metadata) == {
        "clazz",
        "id",
        "version",
        "transform_id",
        "type",
        "request_info",
        "state",
        "start_time",
        "content_length",
    }
    assert metadata["state"] == "IN_PROGRESS"
    assert metadata["content_length"] == -1


def test_round_trip_from_buffer_and_stream(persistence, transformation) -> None:
    transformation.add("idx").succeed("text/plain", io.BytesIO(b"hi"))
    payload = persistence.write(transformation)
    for restored in (persistence.read(payload), persistence.read_stream(io.BytesIO(payload))):
        assert restored == transformation
        assert restored.state is transformation.state
        assert persistence.write(restored) == payload
    assert persistence.read(payload.decode("utf-8")) == transformation


def test_version_gate(persistence, transformation) -> None:
    data = orjson.loads(persistence.write(transformation))
    data["version"] = 0
    with pytest.raises(UnsupportedVersionError):
        persistence.read(orjson.dumps(data))
    data["version"] = 1001
    data["brand_new_field"] = {"nested": True}
    assert persistence.read(orjson.dumps(data)) == transformation


def test_malformed_and_invalid_payloads(persistence) -> None:
    with pytest.raises(ParsingError):
        persistence.read(b'{"clazz": "transformation",')
    with pytest.raises(ProcessingError):
        persistence.read(b'"just a string"')


def test_stream_failures_are_processing_errors(persistence, transformation) -> None:
    with pytest.raises(ProcessingError, match="no space left"):
        persistence.write_stream(transformation, FailingStream())
    with pytest.raises(ProcessingError, match="unreadable") as excinfo:
        persistence.read_stream(FailingStream())
    assert isinstance(excinfo.value.__cause__, OSError)
