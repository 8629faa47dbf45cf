"""
Model record endpoints.
Thin HTTP layer over the lifecycle orchestrator.
"""

from typing import Any

from fastapi import APIRouter, Query

from modelcatalog.auth.dependencies import RequireRead, RequireWrite
from modelcatalog.dependencies import Orchestrator
from modelcatalog.models.model_record import ModelRecord
from modelcatalog.schemas.error import ErrorResponse
from modelcatalog.schemas.model_record import (
    AuthorProjection,
    ModelRecordCreate,
    ModelRecordListResponse,
    ModelRecordUpdate,
    RecordFilter,
)
from modelcatalog.services.lifecycle import RecordView

router = APIRouter(
    responses={
        404: {"model": ErrorResponse, "description": "Model not found"},
        500: {"model": ErrorResponse, "description": "Metadata store failure"},
    },
)


def _record_to_response(record: ModelRecord, author: AuthorProjection | None = None) -> dict[str, Any]:
    """Convert a ModelRecord to its response dict."""
    return {
        "id": record.id,
        "title": record.title,
        "description": record.description,
        "isPublic": record.is_public,
        "imageId": record.image_id,
        "videoId": record.video_id,
        "modelFiles": record.model_files or [],
        "authorId": record.author_id,
        "author": author.model_dump() if author else None,
        "dateCreated": record.date_created.isoformat(),
    }


def _views_to_list(views: list[RecordView]) -> dict[str, Any]:
    items = [_record_to_response(v.record, v.author) for v in views]
    return {"items": items, "total": len(items)}


@router.get("", response_model=ModelRecordListResponse)
async def list_public_models(orchestrator: Orchestrator):
    """
    List public models, newest first.

    Records with no visibility flag (legacy entries) count as public.
    """
    views = await orchestrator.retrieve_all(RecordFilter(public_only=True))
    return _views_to_list(views)


@router.get("/all", response_model=ModelRecordListResponse)
async def list_all_models(
    orchestrator: Orchestrator,
    user: RequireRead,
    authorId: str | None = Query(default=None, description="Only models by this author"),
):
    """
    List every model regardless of visibility.
    Requires models:read scope.
    """
    views = await orchestrator.retrieve_all(RecordFilter(author_id=authorId))
    return _views_to_list(views)


@router.get("/{record_id}")
async def get_model(record_id: str, orchestrator: Orchestrator):
    """Get a single model with its author."""
    view = await orchestrator.get_record(record_id)
    return _record_to_response(view.record, view.author)


@router.post("", status_code=201)
async def create_model(
    data: ModelRecordCreate,
    orchestrator: Orchestrator,
    user: RequireWrite,
):
    """
    Create a model record.
    Requires models:write scope.

    Asset keys must refer to files already uploaded through /files. If the
    record cannot be saved, those files are deleted again.
    """
    record = await orchestrator.create_record(data, user)
    return _record_to_response(record)


@router.put("/{record_id}")
async def edit_model(
    record_id: str,
    data: ModelRecordUpdate,
    orchestrator: Orchestrator,
    user: RequireWrite,
):
    """
    Edit a model record.
    Requires models:write scope.

    Fields left out of the payload are unchanged. Replaced image, video or
    model files are deleted from storage before the record is updated.
    """
    record = await orchestrator.edit_record(record_id, data, user)
    return _record_to_response(record)


@router.delete(
    "/{record_id}",
    responses={403: {"model": ErrorResponse, "description": "Caller is not the author"}},
)
async def delete_model(
    record_id: str,
    orchestrator: Orchestrator,
    user: RequireWrite,
):
    """
    Delete a model record and all of its stored files.
    Requires models:write scope and authorship.
    """
    await orchestrator.delete_record(record_id, user)
    return {"success": True}
