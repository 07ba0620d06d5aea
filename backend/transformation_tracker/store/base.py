"""Interface for components that own transformations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from transformation_tracker.models.metadata import MetadataTransformation
    from transformation_tracker.models.transformation import Transformation


class TransformationManager(ABC):
    """Creates, looks up and deletes transformations by id.

    Lookups of an unknown id raise :class:`NotFoundError`.
    """

    #: Largest metadata content accepted, in bytes; 0 means unlimited.
    max_content_bytes: int = 0

    @abstractmethod
    def create_transform(
        self,
        current_location: str,
        final_location: str,
        metacard_location: str,
    ) -> "Transformation":
        ...

    @abstractmethod
    def get(self, transform_id: str) -> "Transformation":
        ...

    @abstractmethod
    def get_metadata(self, transform_id: str, metadata_type: str) -> "MetadataTransformation":
        ...

    @abstractmethod
    def delete(self, transform_id: str) -> None:
        ...


__all__ = ["TransformationManager"]
