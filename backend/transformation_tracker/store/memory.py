"""In-memory transformation manager."""

from __future__ import annotations

from threading import RLock
from typing import Dict

from transformation_tracker.core.errors import NotFoundError, ValidationError
from transformation_tracker.core.logging import get_logger
from transformation_tracker.models.metadata import MetadataTransformation
from transformation_tracker.models.request_info import RequestDescriptor, RequestInfo
from transformation_tracker.models.transformation import Transformation
from transformation_tracker.persistence.manager import TransformationPersistenceManager
from transformation_tracker.store.base import TransformationManager
from transformation_tracker.utils.time import Clock, SystemClock

logger = get_logger(__name__)


class InMemoryTransformationManager(TransformationManager):
    def __init__(
        self,
        clock: Clock | None = None,
        max_content_bytes: int = 0,
        persistence: TransformationPersistenceManager | None = None,
    ) -> None:
        self._clock = clock or SystemClock()
        self.max_content_bytes = max_content_bytes
        self._persistence = persistence or TransformationPersistenceManager(self._clock)
        self._lock = RLock()
        self._data: Dict[str, Transformation] = {}

    def create(self, request_info: RequestDescriptor) -> Transformation:
        transformation = Transformation(RequestInfo.wrap(request_info), clock=self._clock, manager=self)
        with self._lock:
            self._data[transformation.id] = transformation
        logger.info("transformation created", extra={"ctx_transform_id": transformation.id})
        return transformation

    def create_transform(
        self,
        current_location: str,
        final_location: str,
        metacard_location: str,
    ) -> Transformation:
        return self.create(RequestInfo(current_location, final_location, metacard_location))

    def get(self, transform_id: str) -> Transformation:
        with self._lock:
            transformation = self._data.get(transform_id)
        if transformation is None:
            raise NotFoundError(f"Transformation [{transform_id}] cannot be found", transform_id)
        return transformation

    def get_metadata(self, transform_id: str, metadata_type: str) -> MetadataTransformation:
        return self.get(transform_id).get_metadata(metadata_type)

    def delete(self, transform_id: str) -> None:
        with self._lock:
            transformation = self._data.pop(transform_id, None)
        if transformation is None:
            raise NotFoundError(f"Transformation [{transform_id}] cannot be found", transform_id)
        transformation.mark_deleted()
        logger.info("transformation deleted", extra={"ctx_transform_id": transform_id})

    def ids(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._data.keys())

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def export(self, transform_id: str) -> bytes:
        """Encode the transformation with ``transform_id`` as JSON."""
        return self._persistence.write(self.get(transform_id))

    def restore(self, data: str | bytes) -> Transformation:
        """Decode a transformation from JSON and take ownership of it."""
        transformation = self._persistence.read(data, manager=self)
        with self._lock:
            if transformation.id in self._data:
                raise ValidationError(
                    f"transformation [{transformation.id}] already exists",
                    field="id",
                    reason="invalid",
                    object_id=transformation.id,
                )
            self._data[transformation.id] = transformation
        logger.info("transformation restored", extra={"ctx_transform_id": transformation.id})
        return transformation


__all__ = ["InMemoryTransformationManager"]
