"""
Tutorial and progress API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from uuid import UUID
from typing import Optional
import logging

from tutorial_app.api.deps import CurrentUser, get_current_user, require_roles
from tutorial_app.database import get_db
from tutorial_app.schemas.tutorial import (
    ProgressRead,
    ProgressUpdate,
    TutorialCreate,
    TutorialRead,
    TutorialUpdate,
)
from tutorial_app.services.content_service import content_service
from tutorial_app.services.progress_service import progress_service
from tutorial_app.utils.responses import calculate_pagination, format_paginated_response, format_response

router = APIRouter(prefix="/api/tutorials", tags=["tutorials"])
logger = logging.getLogger(__name__)


def _tutorial_payload(tutorial) -> dict:
    return TutorialRead.model_validate(tutorial).model_dump(mode="json")


def _progress_payload(progress) -> dict:
    return ProgressRead.model_validate(progress).model_dump(mode="json")


@router.get("/")
async def list_tutorials(
    page: Optional[int] = None,
    limit: Optional[int] = None,
    category_id: Optional[UUID] = None,
    teacher_id: Optional[UUID] = None,
    is_published: Optional[bool] = None,
    db: Session = Depends(get_db)
):
    pagination = calculate_pagination(page, limit)
    tutorials, total = content_service.list_tutorials(
        db, category_id, teacher_id, is_published, pagination["skip"], pagination["limit"]
    )
    return format_paginated_response([_tutorial_payload(t) for t in tutorials], pagination, total)


@router.post("/", status_code=201)
async def create_tutorial(
    request: TutorialCreate,
    user: CurrentUser = Depends(require_roles("teacher", "admin")),
    db: Session = Depends(get_db)
):
    tutorial = content_service.create_tutorial(db, user, request)
    return format_response(True, {"tutorial": _tutorial_payload(tutorial)}, "Tutorial created successfully")


@router.get("/progress/me")
async def list_my_progress(
    page: Optional[int] = None,
    limit: Optional[int] = None,
    status: Optional[str] = None,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """All progress records of the caller, most recently accessed first"""
    pagination = calculate_pagination(page, limit)
    records, total = progress_service.list_user_progress(
        db, user.id, status, pagination["skip"], pagination["limit"]
    )
    return format_paginated_response([_progress_payload(p) for p in records], pagination, total)


@router.get("/{tutorial_id}")
async def get_tutorial(tutorial_id: UUID, db: Session = Depends(get_db)):
    tutorial = content_service.get_tutorial(db, tutorial_id)
    return format_response(True, {"tutorial": _tutorial_payload(tutorial)}, "Tutorial retrieved successfully")


@router.put("/{tutorial_id}")
async def update_tutorial(
    tutorial_id: UUID,
    request: TutorialUpdate,
    user: CurrentUser = Depends(require_roles("teacher", "admin")),
    db: Session = Depends(get_db)
):
    tutorial = content_service.update_tutorial(db, tutorial_id, user, request)
    return format_response(True, {"tutorial": _tutorial_payload(tutorial)}, "Tutorial updated successfully")


@router.delete("/{tutorial_id}")
async def delete_tutorial(
    tutorial_id: UUID,
    user: CurrentUser = Depends(require_roles("teacher", "admin")),
    db: Session = Depends(get_db)
):
    content_service.delete_tutorial(db, tutorial_id, user)
    return format_response(True, None, "Tutorial deleted successfully")


@router.patch("/{tutorial_id}/publish")
async def toggle_tutorial_publish(
    tutorial_id: UUID,
    user: CurrentUser = Depends(require_roles("teacher", "admin")),
    db: Session = Depends(get_db)
):
    tutorial = content_service.toggle_tutorial_publish(db, tutorial_id, user)
    state = "published" if tutorial.is_published else "unpublished"
    return format_response(True, {"tutorial": _tutorial_payload(tutorial)}, f"Tutorial {state} successfully")


@router.post("/{tutorial_id}/progress")
async def update_progress(
    tutorial_id: UUID,
    request: ProgressUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Update the caller's progress on a tutorial

    - progress is clamped to 0-100
    - 100% promotes to completed, anything above 0 to in_progress
    - status may be given explicitly but never moves backwards
    """
    progress = progress_service.update_progress(
        db,
        tutorial_id,
        user.id,
        percentage=request.progress,
        status=request.status,
        position=request.current_section,
        time_spent=request.time_spent
    )
    return format_response(True, {"progress": _progress_payload(progress)}, "Progress updated successfully")


@router.get("/{tutorial_id}/progress")
async def get_progress(
    tutorial_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    progress = progress_service.get_progress(db, tutorial_id, user.id)
    return format_response(True, {"progress": _progress_payload(progress)}, "Progress retrieved successfully")
