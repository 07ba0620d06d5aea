"""Tests for the in-memory transformation manager."""

from __future__ import annotations

import io
import threading

import orjson
import pytest

from transformation_tracker.core.errors import IllegalStateError, NotFoundError, ValidationError
from transformation_tracker.models.request_info import RequestInfo
from transformation_tracker.models.status import ErrorCode, State


def test_create_and_lookup(manager) -> None:
    transformation = manager.create_transform("cur", "fin", "meta")
    assert manager.get(transformation.id) is transformation
    assert transformation.request_info == RequestInfo("cur", "fin", "meta")
    assert manager.ids() == (transformation.id,)
    assert len(manager) == 1


def test_lookup_of_unknown_id(manager) -> None:
    with pytest.raises(NotFoundError, match=r"^Transformation \[nope\] cannot be found$"):
        manager.get("nope")
    with pytest.raises(NotFoundError):
        manager.get_metadata("nope", "idx")


def test_get_metadata_two_step_lookup(manager) -> None:
    transformation = manager.create_transform("c", "f", "m")
    metadata = transformation.add("idx")
    assert manager.get_metadata(transformation.id, "idx") is metadata
    with pytest.raises(NotFoundError) as excinfo:
        manager.get_metadata(transformation.id, "other")
    assert excinfo.value.transform_id == transformation.id


def test_full_success_scenario(manager, clock) -> None:
    transformation = manager.create_transform("c", "f", "m")
    metadata = transformation.add("idx")
    clock.advance(3)
    metadata.succeed("text/plain", io.BytesIO(b"hi"))

    assert metadata.state is State.SUCCESSFUL
    assert metadata.content_length == 2
    assert metadata.get_content().read() == b"hi"
    assert metadata.completion_time is not None
    assert transformation.state is State.SUCCESSFUL
    assert transformation.completion_time == metadata.completion_time


def test_mixed_children_scenario(manager) -> None:
    transformation = manager.create_transform("c", "f", "m")
    a = transformation.add("a")
    b = transformation.add("b")
    transformation.add("c")
    a.succeed("text/plain", io.BytesIO(b"a"))
    b.fail(ErrorCode.TRANSFORMATION_FAILURE, "b broke")
    assert transformation.state is State.IN_PROGRESS
    assert transformation.completion_time is None


def test_deletion_cascade_scenario(manager) -> None:
    transformation = manager.create_transform("c", "f", "m")
    metadata = transformation.add("idx")
    transformation.delete()

    assert transformation.is_deleted()
    assert metadata.is_deleted()
    with pytest.raises(IllegalStateError):
        transformation.add("other")
    with pytest.raises(IllegalStateError):
        metadata.succeed("text/plain", io.BytesIO(b"hi"))
    with pytest.raises(IllegalStateError):
        metadata.fail(ErrorCode.TRANSFORMATION_FAILURE, "x")
    transformation.delete()
    with pytest.raises(NotFoundError):
        manager.get(transformation.id)


def test_store_delete_twice_fails(manager) -> None:
    transformation = manager.create_transform("c", "f", "m")
    manager.delete(transformation.id)
    assert transformation.is_deleted()
    with pytest.raises(NotFoundError):
        manager.delete(transformation.id)
    # the caller-facing delete stays a no-op
    transformation.delete()


def test_concurrent_create_and_delete(manager) -> None:
    created: list[str] = []
    lock = threading.Lock()

    def worker() -> None:
        for _ in range(50):
            transformation = manager.create_transform("c", "f", "m")
            with lock:
                created.append(transformation.id)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(manager) == 200
    assert set(manager.ids()) == set(created)

    deleters = [threading.Thread(target=manager.delete, args=(tid,)) for tid in created]
    for thread in deleters:
        thread.start()
    for thread in deleters:
        thread.join()
    assert len(manager) == 0


def test_export_and_restore(manager, clock) -> None:
    from transformation_tracker.store.memory import InMemoryTransformationManager

    transformation = manager.create_transform("c", "f", "m")
    transformation.add("idx").succeed("text/plain", io.BytesIO(b"hi"))
    payload = manager.export(transformation.id)
    assert orjson.loads(payload)["clazz"] == "transformation"

    other = InMemoryTransformationManager(clock=clock)
    restored = other.restore(payload)
    assert other.get(transformation.id) is restored
    assert restored.state is State.SUCCESSFUL
    assert other.get_metadata(restored.id, "idx").content_length == 2

    restored.delete()
    assert restored.is_deleted()
    assert len(other) == 0


def test_restore_rejects_duplicates(manager) -> None:
    transformation = manager.create_transform("c", "f", "m")
    payload = manager.export(transformation.id)
    with pytest.raises(ValidationError, match="already exists"):
        manager.restore(payload)
