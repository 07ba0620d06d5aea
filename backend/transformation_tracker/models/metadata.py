"""A single metadata-generation task within a transformation."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta
from io import BytesIO, StringIO
from typing import IO, TYPE_CHECKING, Any, Callable

from transformation_tracker.core.errors import IllegalStateError, ValidationError
from transformation_tracker.core.logging import get_logger
from transformation_tracker.models.request_info import RequestInfo
from transformation_tracker.models.status import ErrorCode, State, TransformationStatus
from transformation_tracker.persistence.persistable import Persistable
from transformation_tracker.persistence.records import MetadataRecord
from transformation_tracker.utils.ids import new_id

if TYPE_CHECKING:
    from transformation_tracker.models.transformation import Transformation

logger = get_logger(__name__)


class MetadataTransformation(Persistable[MetadataRecord], TransformationStatus):
    """Lifecycle of one piece of derived metadata.

    A unit starts ``IN_PROGRESS`` and moves exactly once to ``SUCCESSFUL``
    (with content) or ``FAILED`` (with a reason). All transitions and all
    reads spanning several fields hold the unit's own lock. Deletion is
    owned by the parent :class:`Transformation`.
    """

    PERSISTABLE_TYPE = "metadata"

    def __init__(
        self,
        transformation: "Transformation",
        metadata_type: str,
        id: str | None = None,
    ) -> None:
        super().__init__(self.PERSISTABLE_TYPE, id or new_id())
        self._setup(transformation)
        self._transform_id = transformation.id
        self._metadata_type = metadata_type
        self._request_info = transformation.request_info
        self._start_time = self._clock.now()

    def _setup(self, transformation: "Transformation") -> None:
        self._transformation = transformation
        self._clock = transformation.clock
        self._lock = threading.Lock()
        self._unknowns = False
        self._transform_id: str | None = None
        self._metadata_type: str | None = None
        self._request_info: RequestInfo | None = None
        self._state = State.IN_PROGRESS
        self._start_time: datetime | None = None
        self._completion_time: datetime | None = None
        self._content: bytes | None = None
        self._content_type: str | None = None
        self._content_length = -1
        self._failure_reason: ErrorCode | None = None
        self._failure_message: str | None = None

    @classmethod
    def _blank(cls, transformation: "Transformation") -> "MetadataTransformation":
        metadata = cls.__new__(cls)
        Persistable.__init__(metadata, cls.PERSISTABLE_TYPE, None)
        metadata._setup(transformation)
        return metadata

    # -- status ---------------------------------------------------------

    @property
    def transform_id(self) -> str:
        return self._transform_id

    @property
    def metadata_type(self) -> str:
        return self._metadata_type

    @property
    def request_info(self) -> RequestInfo:
        return self._request_info

    @property
    def state(self) -> State:
        with self._lock:
            return self._state

    @property
    def start_time(self) -> datetime:
        return self._start_time

    @property
    def completion_time(self) -> datetime | None:
        with self._lock:
            return self._completion_time

    @property
    def content_type(self) -> str | None:
        with self._lock:
            return self._content_type

    @property
    def content_length(self) -> int | None:
        with self._lock:
            return self._content_length if self._content_length >= 0 else None

    @property
    def failure_reason(self) -> ErrorCode | None:
        with self._lock:
            return self._failure_reason

    @property
    def failure_message(self) -> str | None:
        with self._lock:
            return self._failure_message

    @property
    def duration(self) -> timedelta:
        with self._lock:
            end = self._completion_time
        if end is None:
            end = self._clock.now()
        return end - self._start_time

    def is_deleted(self) -> bool:
        return self._transformation.is_deleted()

    def has_unknowns(self) -> bool:
        with self._lock:
            unknowns = (
                self._unknowns
                or self._state is State.UNKNOWN
                or self._failure_reason is ErrorCode.UNKNOWN
            )
        return unknowns or (self._request_info is not None and self._request_info.has_unknowns())

    def completion(self) -> tuple[State, datetime | None]:
        """Return state and completion time read together."""
        with self._lock:
            return self._state, self._completion_time

    def summary(self) -> dict[str, Any]:
        """Consistent view of the unit's status fields."""
        with self._lock:
            return {
                "id": self.id,
                "transform_id": self._transform_id,
                "type": self._metadata_type,
                "state": self._state.value,
                "start_time": self._start_time,
                "completion_time": self._completion_time,
                "content_type": self._content_type,
                "content_length": self._content_length if self._content_length >= 0 else None,
                "failure_reason": self._failure_reason.value if self._failure_reason else None,
                "failure_message": self._failure_message,
            }

    # -- transitions ----------------------------------------------------

    def succeed(self, content_type: str, content: IO[bytes]) -> None:
        """Store the full binary ``content`` and mark the unit successful.

        The stream is drained and closed. A failure while reading propagates and
        leaves the unit in progress; a failure while closing is only logged.
        """
        self._succeed(content_type, content, content.read)

    def succeed_text(self, content_type: str, content: IO[str], encoding: str = "utf-8") -> None:
        """Like :meth:`succeed` for a text stream, encoded with ``encoding``."""
        self._succeed(content_type, content, lambda: content.read().encode(encoding))

    def _succeed(self, content_type: str, stream: IO[Any], drain: Callable[[], bytes]) -> None:
        try:
            self._check_not_deleted()
            now = self._clock.now()
            with self._lock:
                self._check_not_completed()
                data = drain()
                limit = self._transformation.max_content_bytes
                if limit and len(data) > limit:
                    raise ValidationError(
                        f"{self.PERSISTABLE_TYPE} content of {len(data)} bytes exceeds "
                        f"the limit of {limit} bytes for object: {self.id}",
                        field="content",
                        reason="invalid",
                        object_id=self.id,
                    )
                self._content = data
                self._content_length = len(data)
                self._content_type = content_type
                self._completion_time = now
                self._state = State.SUCCESSFUL
        finally:
            self._close_quietly(stream)
        logger.info(
            "metadata succeeded",
            extra={
                "ctx_transform_id": self._transform_id,
                "ctx_metadata_type": self._metadata_type,
                "ctx_content_length": len(data),
            },
        )

    def fail(self, reason: ErrorCode, message: str | None = None) -> None:
        """Mark the unit failed with ``reason`` and an optional message."""
        if not isinstance(reason, ErrorCode) or reason is ErrorCode.UNKNOWN:
            raise ValidationError(
                f"invalid {self.PERSISTABLE_TYPE} failure_reason for object: {self.id}",
                field="failure_reason",
                reason="invalid",
                object_id=self.id,
            )
        self._check_not_deleted()
        now = self._clock.now()
        with self._lock:
            self._check_not_completed()
            self._failure_reason = reason
            self._failure_message = message
            self._completion_time = now
            self._state = State.FAILED
        logger.info(
            "metadata failed",
            extra={
                "ctx_transform_id": self._transform_id,
                "ctx_metadata_type": self._metadata_type,
                "ctx_reason": reason.value,
            },
        )

    def get_content(self) -> BytesIO | None:
        """Return a fresh binary stream over the content, if any."""
        self._check_not_deleted()
        with self._lock:
            content = self._content
        return BytesIO(content) if content is not None else None

    def get_content_text(self, encoding: str = "utf-8") -> StringIO | None:
        """Return a fresh text stream over the content decoded with ``encoding``."""
        self._check_not_deleted()
        with self._lock:
            content = self._content
        return StringIO(content.decode(encoding)) if content is not None else None

    def _check_not_deleted(self) -> None:
        if self.is_deleted():
            raise IllegalStateError(
                f"[{self._metadata_type}] metadata for transformation [{self._transform_id}] was deleted."
            )

    def _check_not_completed(self) -> None:
        # caller holds the lock
        if self._state is not State.IN_PROGRESS:
            raise IllegalStateError(
                f"[{self._metadata_type}] metadata for transformation "
                f"[{self._transform_id}] is already completed."
            )

    def _close_quietly(self, stream: IO[Any]) -> None:
        try:
            stream.close()
        except OSError as exc:
            logger.debug(
                "failed to close content stream",
                exc_info=exc,
                extra={"ctx_transform_id": self._transform_id, "ctx_metadata_type": self._metadata_type},
            )

    # -- persistence ----------------------------------------------------

    @staticmethod
    def to_record(metadata: "MetadataTransformation") -> MetadataRecord:
        return metadata.write_to(MetadataRecord())

    @classmethod
    def from_record(cls, record: MetadataRecord, transformation: "Transformation") -> "MetadataTransformation":
        metadata = cls._blank(transformation)
        metadata.read_from(record)
        if metadata.transform_id != transformation.id:
            raise metadata._invalid("transform_id")
        return metadata

    def write_to(self, record: MetadataRecord) -> MetadataRecord:
        with self._lock:
            if self._unknowns:
                raise ValidationError(
                    f"unknown {self.PERSISTABLE_TYPE}", reason="unknown", object_id=self.id
                )
            super().write_to(record)
            record.version = record.CURRENT_VERSION
            record.transform_id = self._require_text("transform_id", self._transform_id)
            record.type = self._require_text("type", self._metadata_type)
            record.request_info = RequestInfo.to_record(self._require("request_info", self._request_info))
            record.state = self._encode_enum("state", self._state, State.UNKNOWN)
            record.start_time = self._require("start_time", self._start_time)
            record.completion_time = self._completion_time
            record.content_type = self._content_type
            record.content_length = max(self._content_length, -1)
            if self._failure_reason is not None:
                record.failure_reason = self._encode_enum("failure_reason", self._failure_reason, ErrorCode.UNKNOWN)
            record.failure_message = self._failure_message
        return record

    def read_from(self, record: MetadataRecord) -> None:
        super().read_from(record)
        self._check_version(record)
        with self._lock:
            self._unknowns = record.is_unknown()
            self._transform_id = self._require_text("transform_id", record.transform_id)
            self._metadata_type = self._require_text("type", record.type)
            self._request_info = self._convert_required("request_info", record.request_info, RequestInfo.from_record)
            self._state = self._decode_required_enum("state", State, State.UNKNOWN, record.state)
            self._start_time = self._require("start_time", record.start_time)
            self._completion_time = record.completion_time
            self._content_type = record.content_type
            self._content_length = record.content_length if record.content_length >= 0 else -1
            self._failure_reason = self._decode_enum(ErrorCode, ErrorCode.UNKNOWN, record.failure_reason)
            self._failure_message = record.failure_message

    def __repr__(self) -> str:
        return f"MetadataTransformation(id={self.id!r}, type={self._metadata_type!r}, state={self.state.value})"


__all__ = ["MetadataTransformation"]
