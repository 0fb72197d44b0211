"""
Quiz authoring and attempt API endpoints
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from uuid import UUID
from typing import Optional
import logging

from tutorial_app.api.deps import CurrentUser, get_current_user, require_roles
from tutorial_app.database import get_db
from tutorial_app.models import Quiz
from tutorial_app.schemas.quiz import (
    AttemptRead,
    QuestionPublic,
    QuestionRead,
    QuizCreate,
    QuizRead,
    QuizSubmission,
    QuizUpdate,
)
from tutorial_app.services.attempt_service import attempt_service
from tutorial_app.services.content_service import content_service
from tutorial_app.utils.cache import cache_service
from tutorial_app.utils.responses import calculate_pagination, format_paginated_response, format_response

router = APIRouter(prefix="/api/quizzes", tags=["quizzes"])
logger = logging.getLogger(__name__)


def _quiz_payload(quiz: Quiz, show_answers: bool) -> dict:
    data = QuizRead.model_validate(quiz).model_dump(mode="json")
    if show_answers:
        data["questions"] = [QuestionRead.model_validate(q).model_dump(mode="json") for q in quiz.questions]
    else:
        data["questions"] = [
            QuestionPublic.model_validate(q).model_dump(mode="json")
            for q in quiz.questions if q.is_active
        ]
    return data


def _attempt_payload(attempt) -> dict:
    return AttemptRead.model_validate(attempt).model_dump(mode="json")


@router.get("/")
async def list_quizzes(
    page: Optional[int] = None,
    limit: Optional[int] = None,
    tutorial_id: Optional[UUID] = None,
    teacher_id: Optional[UUID] = None,
    is_published: Optional[bool] = None,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List quizzes; students only ever see published ones"""
    pagination = calculate_pagination(page, limit)
    quizzes, total = content_service.list_quizzes(
        db, user, tutorial_id, teacher_id, is_published,
        pagination["skip"], pagination["limit"]
    )
    data = [QuizRead.model_validate(q).model_dump(mode="json") for q in quizzes]
    return format_paginated_response(data, pagination, total)


@router.get("/{quiz_id}")
async def get_quiz(
    quiz_id: UUID,
    include_answers: bool = Query(False, alias="includeAnswers"),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Get a quiz with its questions

    Correct answers are stripped unless the owner (or an admin) asks for them.
    The answer-free view of published quizzes is cached.
    """
    cache_key = cache_service.quiz_key(quiz_id)
    if not include_answers:
        cached = cache_service.get(cache_key)
        if cached:
            return format_response(True, {"quiz": cached}, "Quiz retrieved successfully")

    quiz, show_answers = content_service.get_quiz_for_user(db, quiz_id, user, include_answers)
    data = _quiz_payload(quiz, show_answers)

    if quiz.is_published and not show_answers:
        cache_service.set(cache_key, data)

    return format_response(True, {"quiz": data}, "Quiz retrieved successfully")


@router.post("/", status_code=201)
async def create_quiz(
    request: QuizCreate,
    user: CurrentUser = Depends(require_roles("teacher", "admin")),
    db: Session = Depends(get_db)
):
    """Create a quiz with its questions for one of the caller's tutorials"""
    quiz = content_service.create_quiz(db, user, request)
    return format_response(True, {"quiz": _quiz_payload(quiz, True)}, "Quiz created successfully")


@router.put("/{quiz_id}")
async def update_quiz(
    quiz_id: UUID,
    request: QuizUpdate,
    user: CurrentUser = Depends(require_roles("teacher", "admin")),
    db: Session = Depends(get_db)
):
    quiz = content_service.update_quiz(db, quiz_id, user, request)
    return format_response(True, {"quiz": _quiz_payload(quiz, True)}, "Quiz updated successfully")


@router.delete("/{quiz_id}")
async def delete_quiz(
    quiz_id: UUID,
    user: CurrentUser = Depends(require_roles("teacher", "admin")),
    db: Session = Depends(get_db)
):
    content_service.delete_quiz(db, quiz_id, user)
    return format_response(True, None, "Quiz deleted successfully")


@router.patch("/{quiz_id}/publish")
async def toggle_publish(
    quiz_id: UUID,
    user: CurrentUser = Depends(require_roles("teacher", "admin")),
    db: Session = Depends(get_db)
):
    quiz = content_service.toggle_publish(db, quiz_id, user)
    state = "published" if quiz.is_published else "unpublished"
    return format_response(
        True,
        {"quiz": QuizRead.model_validate(quiz).model_dump(mode="json")},
        f"Quiz {state} successfully"
    )


@router.post("/{quiz_id}/start")
async def start_quiz_attempt(
    quiz_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Start a quiz attempt

    Returns the attempt, the questions without answers and the time limit
    in minutes (0 = the default expiry window applies).
    """
    attempt, questions, time_limit = attempt_service.start(db, quiz_id, user)

    return format_response(True, {
        "attempt": _attempt_payload(attempt),
        "questions": [QuestionPublic.model_validate(q).model_dump(mode="json") for q in questions],
        "timeLimit": time_limit
    }, "Quiz attempt started successfully")


@router.post("/attempt/{attempt_id}/submit")
async def submit_quiz_attempt(
    attempt_id: UUID,
    submission: QuizSubmission,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Grade an in-progress attempt"""
    logger.info(f"Submitting attempt {attempt_id} for user {user.id}")

    attempt = attempt_service.submit(db, attempt_id, user, submission.answers, submission.time_spent)

    return format_response(True, {
        "attempt": _attempt_payload(attempt),
        "score": attempt.score,
        "isPassed": attempt.is_passed
    }, "Quiz submitted successfully")


@router.post("/attempt/{attempt_id}/abandon")
async def abandon_quiz_attempt(
    attempt_id: UUID,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    attempt = attempt_service.abandon(db, attempt_id, user)
    return format_response(True, {"attempt": _attempt_payload(attempt)}, "Quiz attempt abandoned")


@router.get("/{quiz_id}/attempts")
async def get_quiz_attempts(
    quiz_id: UUID,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    user: CurrentUser = Depends(require_roles("teacher", "admin")),
    db: Session = Depends(get_db)
):
    pagination = calculate_pagination(page, limit)
    attempts, total = attempt_service.list_quiz_attempts(
        db, quiz_id, user, pagination["skip"], pagination["limit"]
    )
    return format_paginated_response([_attempt_payload(a) for a in attempts], pagination, total)


@router.get("/user/{user_id}/attempts")
async def get_user_quiz_attempts(
    user_id: UUID,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    quiz_id: Optional[UUID] = None,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    pagination = calculate_pagination(page, limit)
    attempts, total = attempt_service.list_user_attempts(
        db, user_id, user, quiz_id, pagination["skip"], pagination["limit"]
    )
    return format_paginated_response([_attempt_payload(a) for a in attempts], pagination, total)
