"""
Tutorial progress tracking service
One consolidated rule for status promotion, shared by every caller
"""
import logging
import math
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tutorial_app.exceptions import NotFoundError, ValidationError
from tutorial_app.models import Progress, QuizAttempt, Tutorial
from tutorial_app.utils.responses import utcnow

logger = logging.getLogger(__name__)

STATUS_RANK = {"not_started": 0, "in_progress": 1, "completed": 2}


class ProgressService:
    """
    Service for per-user, per-tutorial progress

    Rule applied on every update:
    - percentage is clamped to [0, 100]
    - an explicit status may only move forward (not_started < in_progress < completed)
    - percentage >= 100 promotes to completed, percentage > 0 promotes
      not_started to in_progress
    - started_at and completed_at are set once and never cleared
    """

    def _get_tutorial(self, db: Session, tutorial_id: UUID) -> Tutorial:
        tutorial = db.query(Tutorial).filter(Tutorial.id == tutorial_id).first()
        if not tutorial:
            raise NotFoundError("Tutorial not found")
        return tutorial

    def _find(self, db: Session, user_id: UUID, tutorial_id: UUID, lock: bool = False) -> Optional[Progress]:
        query = db.query(Progress).filter(
            Progress.user_id == user_id,
            Progress.tutorial_id == tutorial_id
        )
        if lock:
            query = query.with_for_update().populate_existing()
        return query.first()

    def _find_or_create(self, db: Session, user_id: UUID, tutorial_id: UUID) -> Progress:
        progress = self._find(db, user_id, tutorial_id, lock=True)
        if progress:
            return progress

        progress = Progress(
            user_id=user_id,
            tutorial_id=tutorial_id,
            status="not_started",
            progress_percentage=0,
            time_spent=0,
            last_position="",
            quiz_attempts=[]
        )
        db.add(progress)

        try:
            db.flush()
        except IntegrityError:
            # A concurrent request created the row first; use theirs
            db.rollback()
            logger.info(f"Progress row for user={user_id}, tutorial={tutorial_id} created concurrently")
            progress = self._find(db, user_id, tutorial_id, lock=True)

        return progress

    def _apply_status(self, progress: Progress, status: str, now) -> None:
        if status != "not_started" and progress.started_at is None:
            progress.started_at = now
        if status == "completed" and progress.completed_at is None:
            progress.completed_at = now
        progress.status = status

    def update_progress(
        self,
        db: Session,
        tutorial_id: UUID,
        user_id: UUID,
        percentage: Optional[float] = None,
        status: Optional[str] = None,
        position: Optional[str] = None,
        time_spent: Optional[int] = None
    ) -> Progress:
        """
        Record progress for a user on a tutorial, creating the row on first use

        Args:
            db: Database session
            tutorial_id: Tutorial UUID
            user_id: User UUID
            percentage: New completion percentage (clamped to 0-100)
            status: Explicit status; must not regress
            position: Resume marker
            time_spent: Minutes to add to the accumulated time

        Returns:
            The persisted Progress row
        """
        if status is not None and status not in STATUS_RANK:
            raise ValidationError(f"Invalid progress status: {status}")
        if time_spent is not None and time_spent < 0:
            raise ValidationError("Time spent cannot be negative")
        if percentage is not None and not math.isfinite(percentage):
            raise ValidationError("Progress must be a finite number")

        self._get_tutorial(db, tutorial_id)
        progress = self._find_or_create(db, user_id, tutorial_id)
        now = utcnow()

        new_status = progress.status
        if status is not None:
            if STATUS_RANK[status] < STATUS_RANK[progress.status]:
                raise ValidationError(
                    f"Progress status cannot move from {progress.status} back to {status}"
                )
            new_status = status

        if percentage is not None:
            progress.progress_percentage = int(round(max(0.0, min(100.0, float(percentage)))))

        if progress.progress_percentage >= 100:
            new_status = "completed"
        elif progress.progress_percentage > 0 and new_status == "not_started":
            new_status = "in_progress"

        self._apply_status(progress, new_status, now)

        if position is not None:
            progress.last_position = position
        if time_spent:
            progress.time_spent = (progress.time_spent or 0) + int(time_spent)
        progress.last_accessed = now

        db.commit()
        db.refresh(progress)

        logger.info(
            f"Progress updated: user={user_id}, tutorial={tutorial_id}, "
            f"status={progress.status}, progress={progress.progress_percentage}"
        )

        return progress

    def get_progress(self, db: Session, tutorial_id: UUID, user_id: UUID) -> Progress:
        """Stored progress, or an unsaved zero-state record when there is none"""
        self._get_tutorial(db, tutorial_id)

        progress = self._find(db, user_id, tutorial_id)
        if progress:
            return progress

        return Progress(
            user_id=user_id,
            tutorial_id=tutorial_id,
            status="not_started",
            progress_percentage=0,
            time_spent=0,
            last_position="",
            quiz_attempts=[]
        )

    def record_quiz_attempt(self, db: Session, attempt: QuizAttempt, tutorial_id: UUID) -> Optional[Progress]:
        """
        Append a completed attempt summary to existing progress

        Never creates a progress row and never changes percentage or status.
        """
        progress = self._find(db, attempt.user_id, tutorial_id, lock=True)
        if not progress:
            return None

        entry: Dict[str, Any] = {
            "quiz_id": str(attempt.quiz_id),
            "attempt_id": str(attempt.id),
            "score": attempt.score,
            "is_passed": attempt.is_passed,
            "completed_at": attempt.completed_at.isoformat() if attempt.completed_at else None
        }
        # Reassign so the JSON column is marked dirty
        progress.quiz_attempts = list(progress.quiz_attempts or []) + [entry]
        db.commit()

        logger.info(f"Recorded attempt {attempt.id} on progress for tutorial {tutorial_id}")

        return progress

    def list_user_progress(
        self,
        db: Session,
        user_id: UUID,
        status: Optional[str],
        skip: int,
        limit: int
    ) -> Tuple[List[Progress], int]:
        query = db.query(Progress).filter(Progress.user_id == user_id)
        if status:
            query = query.filter(Progress.status == status)

        total = query.count()
        records = query.order_by(Progress.last_accessed.desc()).offset(skip).limit(limit).all()
        return records, total


# Global instance
progress_service = ProgressService()
