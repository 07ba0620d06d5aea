"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from transformation_tracker.core.config import Settings, get_settings
from transformation_tracker.store.memory import InMemoryTransformationManager

_MANAGER: InMemoryTransformationManager | None = None


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


def get_manager() -> InMemoryTransformationManager:
    global _MANAGER
    if _MANAGER is None:
        settings = get_app_settings()
        _MANAGER = InMemoryTransformationManager(max_content_bytes=settings.max_content_bytes)
    return _MANAGER


__all__ = ["get_app_settings", "get_manager"]
