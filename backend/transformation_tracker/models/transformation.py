"""Transformation aggregate owning a set of metadata units."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from transformation_tracker.core.errors import IllegalStateError, NotFoundError, ValidationError
from transformation_tracker.core.logging import get_logger
from transformation_tracker.models.metadata import MetadataTransformation
from transformation_tracker.models.request_info import RequestDescriptor, RequestInfo
from transformation_tracker.models.status import State, TransformationStatus
from transformation_tracker.persistence.persistable import Persistable
from transformation_tracker.persistence.records import TransformationRecord
from transformation_tracker.utils.ids import new_id
from transformation_tracker.utils.time import Clock, SystemClock

if TYPE_CHECKING:
    from transformation_tracker.store.base import TransformationManager

logger = get_logger(__name__)


class Transformation(Persistable[TransformationRecord], TransformationStatus):
    """A transformation request and the metadata being generated for it.

    State and completion time are always derived from the metadata units:
    the state is the fold of their states and the completion time is the
    latest of their completion times once the folded state is terminal.
    """

    PERSISTABLE_TYPE = "transformation"

    def __init__(
        self,
        request_info: RequestDescriptor,
        clock: Clock | None = None,
        manager: "TransformationManager | None" = None,
        id: str | None = None,
    ) -> None:
        super().__init__(self.PERSISTABLE_TYPE, id or new_id())
        self._setup(clock, manager)
        self._request_info = RequestInfo.wrap(request_info)
        self._start_time = self._clock.now()

    def _setup(self, clock: Clock | None, manager: "TransformationManager | None") -> None:
        self._clock = clock or SystemClock()
        self._manager = manager
        # guards the metadata map; reentrant because the completion check folds the map
        self._lock = threading.RLock()
        self._metadatas: dict[str, MetadataTransformation] = {}
        self._deleted = False
        self._unknowns = False
        self._request_info: RequestInfo | None = None
        self._start_time: datetime | None = None

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def transform_id(self) -> str:
        return self.id

    @property
    def request_info(self) -> RequestInfo:
        return self._request_info

    @property
    def start_time(self) -> datetime:
        return self._start_time

    @property
    def max_content_bytes(self) -> int:
        """Largest content a metadata unit accepts; 0 means unlimited."""
        return self._manager.max_content_bytes if self._manager is not None else 0

    def add(self, metadata_type: str) -> MetadataTransformation:
        """Return the unit for ``metadata_type``, creating it on first use."""
        with self._lock:
            if self._deleted:
                raise IllegalStateError(f"transformation [{self.id}] was deleted.")
            if self.is_completed():
                raise IllegalStateError(f"transformation [{self.id}] is already complete.")
            metadata = self._metadatas.get(metadata_type)
            if metadata is not None:
                return metadata
            metadata = MetadataTransformation(self, metadata_type)
            self._metadatas[metadata_type] = metadata
        logger.debug(
            "metadata added",
            extra={"ctx_transform_id": self.id, "ctx_metadata_type": metadata_type},
        )
        return metadata

    def get_metadata(self, metadata_type: str) -> MetadataTransformation:
        with self._lock:
            metadata = self._metadatas.get(metadata_type)
        if metadata is None:
            raise NotFoundError(
                f"No [{metadata_type}] metadata found for transformation [{self.id}]",
                self.id,
                metadata_type,
            )
        return metadata

    def metadatas(self) -> list[MetadataTransformation]:
        with self._lock:
            return list(self._metadatas.values())

    def metadata_types(self) -> list[str]:
        with self._lock:
            return list(self._metadatas)

    @property
    def state(self) -> State:
        return State.fold(metadata.state for metadata in self.metadatas())

    @property
    def completion_time(self) -> datetime | None:
        completions = [metadata.completion() for metadata in self.metadatas()]
        if not State.fold(state for state, _ in completions).is_terminal:
            return None
        times = [time for _, time in completions if time is not None]
        return max(times) if times else None

    @property
    def duration(self) -> timedelta:
        end = self.completion_time
        if end is None:
            end = self._clock.now()
        return end - self._start_time

    def delete(self) -> None:
        """Delete this transformation through its manager; repeated calls do nothing."""
        if self._deleted:
            return
        if self._manager is not None:
            try:
                self._manager.delete(self.id)
            except NotFoundError:
                logger.debug("transformation already removed", extra={"ctx_transform_id": self.id})
        self.mark_deleted()

    def mark_deleted(self) -> None:
        """Flag this transformation and its metadata as deleted; never cleared."""
        with self._lock:
            self._deleted = True

    def is_deleted(self) -> bool:
        return self._deleted

    def has_unknowns(self) -> bool:
        if self._unknowns:
            return True
        if self._request_info is not None and self._request_info.has_unknowns():
            return True
        return any(metadata.has_unknowns() for metadata in self.metadatas())

    @staticmethod
    def to_record(transformation: "Transformation") -> TransformationRecord:
        return transformation.write_to(TransformationRecord())

    @classmethod
    def from_record(
        cls,
        record: TransformationRecord,
        clock: Clock | None = None,
        manager: "TransformationManager | None" = None,
    ) -> "Transformation":
        transformation = cls.__new__(cls)
        Persistable.__init__(transformation, cls.PERSISTABLE_TYPE, None)
        transformation._setup(clock, manager)
        transformation.read_from(record)
        return transformation

    def write_to(self, record: TransformationRecord) -> TransformationRecord:
        if self._unknowns:
            raise ValidationError(f"unknown {self.PERSISTABLE_TYPE}", reason="unknown", object_id=self.id)
        super().write_to(record)
        record.version = record.CURRENT_VERSION
        record.request_info = RequestInfo.to_record(self._require("request_info", self._request_info))
        record.start_time = self._require("start_time", self._start_time)
        record.metadatas = [MetadataTransformation.to_record(metadata) for metadata in self.metadatas()]
        return record

    def read_from(self, record: TransformationRecord) -> None:
        super().read_from(record)
        self._check_version(record)
        self._unknowns = record.is_unknown()
        self._request_info = self._convert_required("request_info", record.request_info, RequestInfo.from_record)
        self._start_time = self._require("start_time", record.start_time)
        metadatas: dict[str, MetadataTransformation] = {}
        for metadata_record in record.metadatas:
            metadata = MetadataTransformation.from_record(metadata_record, self)
            metadatas[metadata.metadata_type] = metadata
        with self._lock:
            self._metadatas = metadatas

    def __repr__(self) -> str:
        return f"Transformation(id={self.id!r}, state={self.state.value}, types={self.metadata_types()!r})"


__all__ = ["Transformation"]
