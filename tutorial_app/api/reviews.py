"""
Review and rating API endpoints
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from uuid import UUID
from typing import Optional
import logging

from tutorial_app.api.deps import CurrentUser, get_current_user
from tutorial_app.database import get_db
from tutorial_app.schemas.review import QuickRating, ReviewCreate, ReviewRead, ReviewUpdate
from tutorial_app.services.rating_service import rating_service
from tutorial_app.utils.responses import calculate_pagination, format_paginated_response, format_response

router = APIRouter(prefix="/api/reviews", tags=["reviews"])
logger = logging.getLogger(__name__)


def _review_payload(review) -> dict:
    return ReviewRead.model_validate(review).model_dump(mode="json")


@router.get("/tutorial/{tutorial_id}")
async def get_tutorial_reviews(
    tutorial_id: UUID,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    db: Session = Depends(get_db)
):
    pagination = calculate_pagination(page, limit)
    reviews, total = rating_service.list_tutorial_reviews(
        db, tutorial_id, pagination["skip"], pagination["limit"]
    )
    return format_paginated_response([_review_payload(r) for r in reviews], pagination, total)


@router.post("/tutorial/{tutorial_id}", status_code=201)
async def create_review(
    tutorial_id: UUID,
    request: ReviewCreate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Review a tutorial; a second review by the same user is a 409"""
    review = rating_service.add_review(db, tutorial_id, user.id, request.rating, request.comment)
    return format_response(True, {"review": _review_payload(review)}, "Review created successfully")


@router.post("/tutorial/{tutorial_id}/quick", status_code=201)
async def quick_rate(
    tutorial_id: UUID,
    request: QuickRating,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Star rating without a written comment"""
    review = rating_service.quick_rate(db, tutorial_id, user.id, request.rating)
    return format_response(True, {"review": _review_payload(review)}, "Rating saved successfully")


@router.get("/user/{tutorial_id}")
async def get_user_review(
    tutorial_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    review = rating_service.get_user_review(db, tutorial_id, user.id)
    return format_response(True, {"review": _review_payload(review)}, "User review fetched successfully")


@router.put("/{review_id}")
async def update_review(
    review_id: UUID,
    request: ReviewUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    review = rating_service.update_review(db, review_id, user.id, request.rating, request.comment)
    return format_response(True, {"review": _review_payload(review)}, "Review updated successfully")


@router.delete("/{review_id}")
async def delete_review(
    review_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    rating_service.delete_review(db, review_id, user.id)
    return format_response(True, None, "Review deleted successfully")
