"""Exceptions raised by the transformation tracker."""

from __future__ import annotations

from typing import Any


class TransformationError(Exception):
    """Base exception for recoverable transformation errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(TransformationError):
    """Raised when a field is missing, empty, unknown or otherwise invalid.

    ``reason`` is one of ``missing``, ``empty``, ``unknown``, ``invalid`` or
    ``unsupported`` so callers can tell the failures apart without parsing the
    message.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        reason: str = "invalid",
        object_id: str | None = None,
    ) -> None:
        details: dict[str, Any] = {"reason": reason}
        if field is not None:
            details["field"] = field
        if object_id is not None:
            details["object_id"] = object_id
        super().__init__(message, details)
        self.field = field
        self.reason = reason
        self.object_id = object_id


class UnsupportedVersionError(ValidationError):
    """Raised when a record is older than the oldest version still readable."""

    def __init__(self, persistable_type: str, version: int, object_id: str | None) -> None:
        super().__init__(
            f"unsupported {persistable_type} version: {version} for object: {object_id}",
            field="version",
            reason="unsupported",
            object_id=object_id,
        )
        self.version = version


class NotFoundError(TransformationError):
    """Raised when no transformation or metadata matches a lookup."""

    def __init__(self, message: str, transform_id: str, metadata_type: str | None = None) -> None:
        details: dict[str, Any] = {"transform_id": transform_id}
        if metadata_type is not None:
            details["metadata_type"] = metadata_type
        super().__init__(message, details)
        self.transform_id = transform_id
        self.metadata_type = metadata_type


class ProcessingError(TransformationError):
    """Raised when encoding or decoding a record fails structurally."""


class ParsingError(ProcessingError):
    """Raised when the encoded payload is not valid JSON."""


class IllegalStateError(RuntimeError):
    """Raised when a caller violates the transformation state machine.

    This is a programming error, not a recoverable condition, and is kept out
    of the :class:`TransformationError` hierarchy on purpose.
    """


__all__ = [
    "TransformationError",
    "ValidationError",
    "UnsupportedVersionError",
    "NotFoundError",
    "ProcessingError",
    "ParsingError",
    "IllegalStateError",
]
