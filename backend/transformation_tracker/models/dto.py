"""Pydantic DTOs exposed via API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class TransformationCreateRequest(BaseModel):
    current_location: str = Field(min_length=1, description="Resource being transformed")
    final_location: str = Field(min_length=1, description="Where the transformed resource ends up")
    metacard_location: str = Field(min_length=1, description="Source-of-truth resource")


class MetadataResponse(BaseModel):
    id: str
    transform_id: str
    type: str
    state: str
    start_time: datetime
    completion_time: datetime | None = None
    content_type: str | None = None
    content_length: int | None = None
    failure_reason: str | None = None
    failure_message: str | None = None

    @classmethod
    def from_summary(cls, summary: dict[str, Any]) -> "MetadataResponse":
        return cls(**summary)


class TransformationResponse(BaseModel):
    id: str
    current_location: str
    final_location: str
    metacard_location: str
    state: str
    start_time: datetime
    completion_time: datetime | None = None
    duration_seconds: float
    metadata: list[MetadataResponse]


class FailureRequest(BaseModel):
    reason: Literal["TRANSFORMATION_FAILURE"] = "TRANSFORMATION_FAILURE"
    message: str | None = None


class DeleteResponse(BaseModel):
    status: str
