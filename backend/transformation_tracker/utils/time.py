"""Time helpers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(tz=timezone.utc)


def to_epoch_seconds(value: datetime) -> float:
    """Return decimal seconds since the epoch for an aware datetime."""
    return value.timestamp()


def from_epoch_seconds(value: float | int) -> datetime:
    """Return an aware UTC datetime for decimal seconds since the epoch."""
    return datetime.fromtimestamp(value, tz=timezone.utc)


class Clock(Protocol):
    """Source of wall-clock time."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Clock backed by the system wall time."""

    def now(self) -> datetime:
        return utc_now()


__all__ = ["Clock", "SystemClock", "from_epoch_seconds", "to_epoch_seconds", "utc_now"]
