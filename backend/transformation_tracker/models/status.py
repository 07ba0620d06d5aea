"""Lifecycle states shared by transformations and their metadata."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from enum import Enum
from functools import reduce as _reduce
from typing import Iterable


class State(str, Enum):
    """The various states a transformation can be in."""

    IN_PROGRESS = "IN_PROGRESS"
    FAILED = "FAILED"
    SUCCESSFUL = "SUCCESSFUL"
    # Stands in for a state written by newer code that this version cannot read.
    UNKNOWN = "UNKNOWN"

    @staticmethod
    def reduce(state: "State", state2: "State") -> "State":
        """Reduce two states into their aggregate state."""
        if state is State.IN_PROGRESS or state2 is State.IN_PROGRESS:
            return State.IN_PROGRESS
        if state is State.UNKNOWN or state2 is State.UNKNOWN:
            return State.UNKNOWN
        if state is State.SUCCESSFUL and state2 is State.SUCCESSFUL:
            return State.SUCCESSFUL
        return State.FAILED

    @staticmethod
    def fold(states: Iterable["State"]) -> "State":
        """Fold any number of states; nothing to fold means still in progress."""
        collected = list(states)
        if not collected:
            return State.IN_PROGRESS
        return _reduce(State.reduce, collected)

    @property
    def is_terminal(self) -> bool:
        return self in (State.SUCCESSFUL, State.FAILED)


class ErrorCode(str, Enum):
    """Error codes indicating failures that can occur in the transformation process."""

    TRANSFORMATION_FAILURE = "TRANSFORMATION_FAILURE"
    UNKNOWN = "UNKNOWN"


class TransformationStatus(ABC):
    """Status information common to a transformation and each of its metadata."""

    @property
    @abstractmethod
    def transform_id(self) -> str:
        ...

    @property
    @abstractmethod
    def state(self) -> State:
        ...

    @property
    @abstractmethod
    def start_time(self) -> datetime:
        ...

    @property
    @abstractmethod
    def completion_time(self) -> datetime | None:
        ...

    @property
    @abstractmethod
    def duration(self) -> timedelta:
        """Elapsed time until completion, or until now while still running."""

    @abstractmethod
    def is_deleted(self) -> bool:
        ...

    def is_completed(self) -> bool:
        return self.state.is_terminal

    def has_failed(self) -> bool:
        return self.state is State.FAILED

    def was_successful(self) -> bool:
        return self.state is State.SUCCESSFUL

    def is_unknown(self) -> bool:
        return self.state is State.UNKNOWN


__all__ = ["ErrorCode", "State", "TransformationStatus"]
