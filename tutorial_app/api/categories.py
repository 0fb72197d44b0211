"""
Category API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from uuid import UUID
from typing import Optional

from tutorial_app.api.deps import CurrentUser, require_roles
from tutorial_app.database import get_db
from tutorial_app.schemas.category import CategoryCreate, CategoryRead, CategoryUpdate
from tutorial_app.services.content_service import content_service
from tutorial_app.utils.responses import calculate_pagination, format_paginated_response, format_response

router = APIRouter(prefix="/api/categories", tags=["categories"])


def _category_payload(category) -> dict:
    return CategoryRead.model_validate(category).model_dump(mode="json")


@router.get("/")
async def list_categories(
    page: Optional[int] = None,
    limit: Optional[int] = None,
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db)
):
    pagination = calculate_pagination(page, limit)
    categories, total = content_service.list_categories(
        db, is_active, pagination["skip"], pagination["limit"]
    )
    return format_paginated_response([_category_payload(c) for c in categories], pagination, total)


@router.get("/{category_id}")
async def get_category(category_id: UUID, db: Session = Depends(get_db)):
    category = content_service.get_category(db, category_id)
    return format_response(True, {"category": _category_payload(category)}, "Category retrieved successfully")


@router.post("/", status_code=201)
async def create_category(
    request: CategoryCreate,
    user: CurrentUser = Depends(require_roles("admin")),
    db: Session = Depends(get_db)
):
    category = content_service.create_category(db, request)
    return format_response(True, {"category": _category_payload(category)}, "Category created successfully")


@router.put("/{category_id}")
async def update_category(
    category_id: UUID,
    request: CategoryUpdate,
    user: CurrentUser = Depends(require_roles("admin")),
    db: Session = Depends(get_db)
):
    category = content_service.update_category(db, category_id, request)
    return format_response(True, {"category": _category_payload(category)}, "Category updated successfully")


@router.delete("/{category_id}")
async def delete_category(
    category_id: UUID,
    user: CurrentUser = Depends(require_roles("admin")),
    db: Session = Depends(get_db)
):
    """Delete a category that no longer holds any tutorials"""
    content_service.delete_category(db, category_id)
    return format_response(True, None, "Category deleted successfully")


@router.patch("/{category_id}/status")
async def toggle_category_status(
    category_id: UUID,
    user: CurrentUser = Depends(require_roles("admin")),
    db: Session = Depends(get_db)
):
    category = content_service.toggle_category_status(db, category_id)
    state = "activated" if category.is_active else "deactivated"
    return format_response(True, {"category": _category_payload(category)}, f"Category {state} successfully")


@router.get("/{category_id}/stats")
async def get_category_stats(category_id: UUID, db: Session = Depends(get_db)):
    stats = content_service.category_stats(db, category_id)
    return format_response(True, {"stats": stats}, "Category statistics retrieved successfully")
