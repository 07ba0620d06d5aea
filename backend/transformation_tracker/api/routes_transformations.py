"""Transformation and metadata routes."""

from __future__ import annotations

from io import BytesIO

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from transformation_tracker.api.dependencies import get_manager
from transformation_tracker.models.dto import (
    DeleteResponse,
    FailureRequest,
    MetadataResponse,
    TransformationCreateRequest,
    TransformationResponse,
)
from transformation_tracker.models.status import ErrorCode
from transformation_tracker.models.transformation import Transformation
from transformation_tracker.store.memory import InMemoryTransformationManager

router = APIRouter()

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@router.post("", response_model=TransformationResponse, summary="Start tracking a transformation")
async def create_transformation(
    request: TransformationCreateRequest,
    manager: InMemoryTransformationManager = Depends(get_manager),
) -> TransformationResponse:
    transformation = manager.create_transform(
        request.current_location,
        request.final_location,
        request.metacard_location,
    )
    return _to_response(transformation)


@router.get("/{transform_id}", response_model=TransformationResponse, summary="Get transformation status")
async def get_transformation(
    transform_id: str,
    manager: InMemoryTransformationManager = Depends(get_manager),
) -> TransformationResponse:
    return _to_response(manager.get(transform_id))


@router.delete("/{transform_id}", response_model=DeleteResponse, summary="Delete a transformation")
async def delete_transformation(
    transform_id: str,
    manager: InMemoryTransformationManager = Depends(get_manager),
) -> DeleteResponse:
    manager.delete(transform_id)
    return DeleteResponse(status="ok")


@router.get("/{transform_id}/record", summary="Get the persisted record of a transformation")
async def get_record(
    transform_id: str,
    manager: InMemoryTransformationManager = Depends(get_manager),
) -> Response:
    return Response(content=manager.export(transform_id), media_type="application/json")


@router.post(
    "/{transform_id}/metadata/{metadata_type}",
    response_model=MetadataResponse,
    summary="Add a metadata task",
)
async def add_metadata(
    transform_id: str,
    metadata_type: str,
    manager: InMemoryTransformationManager = Depends(get_manager),
) -> MetadataResponse:
    metadata = manager.get(transform_id).add(metadata_type)
    return MetadataResponse.from_summary(metadata.summary())


@router.get(
    "/{transform_id}/metadata/{metadata_type}",
    response_model=MetadataResponse,
    summary="Get metadata status",
)
async def get_metadata(
    transform_id: str,
    metadata_type: str,
    manager: InMemoryTransformationManager = Depends(get_manager),
) -> MetadataResponse:
    metadata = manager.get_metadata(transform_id, metadata_type)
    return MetadataResponse.from_summary(metadata.summary())


@router.get("/{transform_id}/metadata/{metadata_type}/content", summary="Download metadata content")
async def get_metadata_content(
    transform_id: str,
    metadata_type: str,
    manager: InMemoryTransformationManager = Depends(get_manager),
) -> Response:
    metadata = manager.get_metadata(transform_id, metadata_type)
    content = metadata.get_content()
    if content is None:
        raise HTTPException(status_code=404, detail="Metadata has no content")
    return Response(content=content.getvalue(), media_type=metadata.content_type or DEFAULT_CONTENT_TYPE)


@router.put(
    "/{transform_id}/metadata/{metadata_type}/content",
    response_model=MetadataResponse,
    summary="Complete metadata successfully with the request body",
)
async def succeed_metadata(
    transform_id: str,
    metadata_type: str,
    request: Request,
    manager: InMemoryTransformationManager = Depends(get_manager),
) -> MetadataResponse:
    metadata = manager.get_metadata(transform_id, metadata_type)
    body = await request.body()
    metadata.succeed(request.headers.get("content-type", DEFAULT_CONTENT_TYPE), BytesIO(body))
    return MetadataResponse.from_summary(metadata.summary())


@router.put(
    "/{transform_id}/metadata/{metadata_type}/failure",
    response_model=MetadataResponse,
    summary="Mark metadata as failed",
)
async def fail_metadata(
    transform_id: str,
    metadata_type: str,
    request: FailureRequest,
    manager: InMemoryTransformationManager = Depends(get_manager),
) -> MetadataResponse:
    metadata = manager.get_metadata(transform_id, metadata_type)
    metadata.fail(ErrorCode[request.reason], request.message)
    return MetadataResponse.from_summary(metadata.summary())


def _to_response(transformation: Transformation) -> TransformationResponse:
    info = transformation.request_info
    return TransformationResponse(
        id=transformation.id,
        current_location=info.current_location,
        final_location=info.final_location,
        metacard_location=info.metacard_location,
        state=transformation.state.value,
        start_time=transformation.start_time,
        completion_time=transformation.completion_time,
        duration_seconds=transformation.duration.total_seconds(),
        metadata=[MetadataResponse.from_summary(m.summary()) for m in transformation.metadatas()],
    )
