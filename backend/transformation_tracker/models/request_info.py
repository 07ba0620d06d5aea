"""Request descriptor: the locations an inbound transformation works with."""

from __future__ import annotations

from typing import Protocol

from transformation_tracker.core.errors import ValidationError
from transformation_tracker.persistence.persistable import Persistable
from transformation_tracker.persistence.records import RequestInfoRecord
from transformation_tracker.utils.ids import new_id


class RequestDescriptor(Protocol):
    """Anything exposing the three request locations."""

    @property
    def current_location(self) -> str:
        ...

    @property
    def final_location(self) -> str:
        ...

    @property
    def metacard_location(self) -> str:
        ...


class RequestInfo(Persistable[RequestInfoRecord]):
    """Immutable triple of locations describing one transformation request.

    Two descriptors are equal when all three locations are equal; the
    identifier only matters for persistence.
    """

    PERSISTABLE_TYPE = "request info"

    def __init__(
        self,
        current_location: str,
        final_location: str,
        metacard_location: str,
        id: str | None = None,
    ) -> None:
        super().__init__(self.PERSISTABLE_TYPE, id or new_id())
        self._current_location = current_location
        self._final_location = final_location
        self._metacard_location = metacard_location
        self._unknowns = False

    @classmethod
    def _blank(cls) -> "RequestInfo":
        info = cls.__new__(cls)
        Persistable.__init__(info, cls.PERSISTABLE_TYPE, None)
        info._current_location = None
        info._final_location = None
        info._metacard_location = None
        info._unknowns = False
        return info

    @property
    def current_location(self) -> str:
        return self._current_location

    @property
    def final_location(self) -> str:
        return self._final_location

    @property
    def metacard_location(self) -> str:
        return self._metacard_location

    def has_unknowns(self) -> bool:
        return self._unknowns

    @staticmethod
    def wrap(info: RequestDescriptor) -> "RequestInfo":
        """Return ``info`` itself when already a :class:`RequestInfo`, otherwise a copy."""
        if isinstance(info, RequestInfo):
            return info
        return RequestInfo(info.current_location, info.final_location, info.metacard_location)

    @staticmethod
    def to_record(info: RequestDescriptor) -> RequestInfoRecord:
        return RequestInfo.wrap(info).write_to(RequestInfoRecord())

    @classmethod
    def from_record(cls, record: RequestInfoRecord) -> "RequestInfo":
        info = cls._blank()
        info.read_from(record)
        return info

    def write_to(self, record: RequestInfoRecord) -> RequestInfoRecord:
        if self._unknowns:
            raise ValidationError(
                f"unknown {self.PERSISTABLE_TYPE}", reason="unknown", object_id=self.id
            )
        super().write_to(record)
        record.version = record.CURRENT_VERSION
        record.metacard_location = self._require_text("metacard_location", self._metacard_location)
        record.current_location = self._require_text("current_location", self._current_location)
        record.final_location = self._require_text("final_location", self._final_location)
        return record

    def read_from(self, record: RequestInfoRecord) -> None:
        super().read_from(record)
        self._check_version(record)
        if record.is_unknown():
            # keep whatever locations were readable; the descriptor can no longer be written
            self._unknowns = True
            self._metacard_location = record.metacard_location
            self._current_location = record.current_location
            self._final_location = record.final_location
            return
        self._metacard_location = self._require_text("metacard_location", record.metacard_location)
        self._current_location = self._require_text("current_location", record.current_location)
        self._final_location = self._require_text("final_location", record.final_location)

    def __eq__(self, other: object) -> bool:
        if other is self:
            return True
        if not isinstance(other, RequestInfo):
            return NotImplemented
        return (
            self._current_location == other._current_location
            and self._final_location == other._final_location
            and self._metacard_location == other._metacard_location
        )

    def __hash__(self) -> int:
        return hash((self._current_location, self._final_location, self._metacard_location))

    def __repr__(self) -> str:
        return (
            f"RequestInfo(current_location={self._current_location!r}, "
            f"final_location={self._final_location!r}, "
            f"metacard_location={self._metacard_location!r})"
        )


__all__ = ["RequestDescriptor", "RequestInfo"]
