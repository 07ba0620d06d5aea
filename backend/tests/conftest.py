"""Test fixtures for the transformation tracker."""

from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 5, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> datetime:
        self.current = self.current + timedelta(seconds=seconds)
        return self.current


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset global singletons and environment between tests."""
    monkeypatch.setenv("XFRM_CONFIG", str(tmp_path / "missing.yaml"))
    monkeypatch.delenv("XFRM_MAX_CONTENT_BYTES", raising=False)
    monkeypatch.delenv("XFRM_HOST", raising=False)

    from transformation_tracker.api import dependencies as deps
    from transformation_tracker.core.config import get_settings

    get_settings.cache_clear()
    deps.get_app_settings.cache_clear()
    deps._MANAGER = None
    yield
    get_settings.cache_clear()
    deps.get_app_settings.cache_clear()
    deps._MANAGER = None


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def manager(clock: FakeClock):
    from transformation_tracker.store.memory import InMemoryTransformationManager

    return InMemoryTransformationManager(clock=clock)


@pytest.fixture
def transformation(manager):
    return manager.create_transform("file:///work/in.pdf", "file:///out/in.pdf", "file:///src/in.pdf")
