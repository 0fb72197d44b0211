"""
Quiz attempt lifecycle service
start -> in_progress -> completed | timeout | abandoned
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tutorial_app.config import settings
from tutorial_app.exceptions import ExpiredError, ForbiddenError, NotFoundError, ValidationError
from tutorial_app.models import Question, Quiz, QuizAttempt
from tutorial_app.services.progress_service import progress_service
from tutorial_app.services.scoring_service import is_passed, scoring_service
from tutorial_app.utils.cache import cache_service
from tutorial_app.utils.responses import utcnow

logger = logging.getLogger(__name__)


class AttemptService:
    """Service orchestrating a single quiz attempt from start to grading"""

    def _lock_quiz(self, db: Session, quiz_id: UUID) -> Quiz:
        quiz = (
            db.query(Quiz)
            .filter(Quiz.id == quiz_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not quiz:
            raise NotFoundError("Quiz not found")
        return quiz

    def active_questions(self, db: Session, quiz_id: UUID) -> List[Question]:
        """Active questions of a quiz in presentation order"""
        return (
            db.query(Question)
            .filter(Question.quiz_id == quiz_id, Question.is_active.is_(True))
            .order_by(Question.order.asc())
            .all()
        )

    def expiry_window(self, attempt: QuizAttempt) -> timedelta:
        """The quiz's own time limit, or the configured fallback when it has none"""
        minutes = attempt.time_limit or settings.ATTEMPT_WINDOW_MINUTES
        return timedelta(minutes=minutes)

    def is_expired(self, attempt: QuizAttempt, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        return now - attempt.started_at > self.expiry_window(attempt)

    def _reveal_answers(
        self,
        quiz: Quiz,
        questions: List[Question],
        results: List[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        """Add correct answers and explanations to the breakdown when the quiz shows them"""
        if not quiz.show_correct_answers:
            return results

        by_id = {str(q.id): q for q in questions}
        return [
            dict(
                entry,
                correct_answer=by_id[entry["question_id"]].correct_answer,
                explanation=by_id[entry["question_id"]].explanation
            )
            for entry in results
        ]

    def start(self, db: Session, quiz_id: UUID, user: Any) -> Tuple[QuizAttempt, List[Question], int]:
        """
        Open a new attempt for the caller

        Args:
            db: Database session
            quiz_id: Quiz UUID
            user: Authenticated caller (id, role)

        Returns:
            Tuple of (attempt, ordered active questions, time limit in minutes)
        """
        quiz = self._lock_quiz(db, quiz_id)

        if not quiz.is_published or not quiz.is_active:
            raise ForbiddenError("Quiz is not published")

        previous_attempts = db.query(func.count(QuizAttempt.id)).filter(
            QuizAttempt.quiz_id == quiz.id,
            QuizAttempt.user_id == user.id
        ).scalar() or 0

        if settings.ENFORCE_MAX_ATTEMPTS and quiz.max_attempts and previous_attempts >= quiz.max_attempts:
            raise ForbiddenError("Maximum attempts exceeded")

        questions = self.active_questions(db, quiz.id)

        attempt = QuizAttempt(
            user_id=user.id,
            quiz_id=quiz.id,
            attempt_number=previous_attempts + 1,
            status="in_progress",
            question_ids=[str(q.id) for q in questions],
            total_questions=len(questions),
            time_limit=quiz.time_limit or 0,
            passing_score=quiz.passing_score,
            answers={},
            results=[],
            started_at=utcnow()
        )
        db.add(attempt)
        db.commit()
        db.refresh(attempt)

        logger.info(
            f"Attempt {attempt.id} started: quiz={quiz.id}, user={user.id}, "
            f"attempt_number={attempt.attempt_number}, questions={len(questions)}"
        )

        return attempt, questions, quiz.time_limit

    def submit(
        self,
        db: Session,
        attempt_id: UUID,
        user: Any,
        answers: Dict[str, Any],
        time_spent: Optional[int] = 0
    ) -> QuizAttempt:
        """
        Grade and close an in-progress attempt

        An attempt past its window is moved to timeout (and that change is
        committed) before ExpiredError is raised. A failure while appending the
        result to the user's progress is logged; the attempt stays completed.
        """
        if not isinstance(answers, dict):
            raise ValidationError("Answers must map question ids to answers")

        attempt = (
            db.query(QuizAttempt)
            .filter(QuizAttempt.id == attempt_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not attempt:
            raise NotFoundError("Quiz attempt not found")

        if attempt.user_id != user.id:
            raise ForbiddenError("You can only submit your own attempts")

        if attempt.status != "in_progress":
            raise ValidationError("Quiz attempt is not in progress")

        now = utcnow()
        if self.is_expired(attempt, now):
            attempt.status = "timeout"
            attempt.completed_at = now
            db.commit()
            logger.info(f"Attempt {attempt_id} timed out, started at {attempt.started_at}")
            raise ExpiredError("Quiz attempt has expired")

        quiz = self._lock_quiz(db, attempt.quiz_id)
        questions = self.active_questions(db, quiz.id)
        result = scoring_service.grade(questions, answers)

        attempt.answers = {str(key): value for key, value in answers.items()}
        attempt.results = self._reveal_answers(quiz, questions, result.results)
        attempt.time_taken = max(0, int(time_spent or 0))
        attempt.correct_answers = result.correct_answers
        attempt.points_earned = result.points_earned
        attempt.total_points = result.total_points
        attempt.score = result.score
        attempt.passing_score = quiz.passing_score
        attempt.is_passed = is_passed(result.score, quiz.passing_score)
        attempt.status = "completed"
        attempt.completed_at = now

        completed = quiz.total_attempts or 0
        quiz.average_score = ((quiz.average_score or 0.0) * completed + result.score) / (completed + 1)
        quiz.total_attempts = completed + 1

        tutorial_id = quiz.tutorial_id
        db.commit()
        db.refresh(attempt)

        # The cached quiz view carries total_attempts and average_score
        cache_service.invalidate_quiz(attempt.quiz_id)

        logger.info(
            f"Attempt {attempt.id} completed: score={attempt.score}, "
            f"correct={attempt.correct_answers}/{len(questions)}, passed={attempt.is_passed}"
        )

        try:
            progress_service.record_quiz_attempt(db, attempt, tutorial_id)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Attempt {attempt.id} completed but progress update failed: {str(e)}")

        return attempt

    def abandon(self, db: Session, attempt_id: UUID, user: Any) -> QuizAttempt:
        """Give up an in-progress attempt"""
        attempt = db.query(QuizAttempt).filter(QuizAttempt.id == attempt_id).first()
        if not attempt:
            raise NotFoundError("Quiz attempt not found")

        if attempt.user_id != user.id:
            raise ForbiddenError("You can only abandon your own attempts")

        if attempt.status != "in_progress":
            raise ValidationError("Quiz attempt is not in progress")

        attempt.status = "abandoned"
        attempt.completed_at = utcnow()
        db.commit()
        db.refresh(attempt)

        logger.info(f"Attempt {attempt_id} abandoned")

        return attempt

    def list_quiz_attempts(
        self,
        db: Session,
        quiz_id: UUID,
        user: Any,
        skip: int,
        limit: int
    ) -> Tuple[List[QuizAttempt], int]:
        """Attempts on a quiz, visible to its teacher and admins"""
        quiz = db.query(Quiz).filter(Quiz.id == quiz_id).first()
        if not quiz:
            raise NotFoundError("Quiz not found")

        if not user.is_admin and quiz.teacher_id != user.id:
            raise ForbiddenError("You can only view attempts on your own quizzes")

        query = db.query(QuizAttempt).filter(QuizAttempt.quiz_id == quiz_id)
        total = query.count()
        attempts = query.order_by(QuizAttempt.started_at.desc()).offset(skip).limit(limit).all()
        return attempts, total

    def list_user_attempts(
        self,
        db: Session,
        user_id: UUID,
        user: Any,
        quiz_id: Optional[UUID],
        skip: int,
        limit: int
    ) -> Tuple[List[QuizAttempt], int]:
        """A user's own attempts; admins may look at anyone's"""
        if not user.is_admin and user_id != user.id:
            raise ForbiddenError("You can only view your own attempts")

        query = db.query(QuizAttempt).filter(QuizAttempt.user_id == user_id)
        if quiz_id:
            query = query.filter(QuizAttempt.quiz_id == quiz_id)

        total = query.count()
        attempts = query.order_by(QuizAttempt.started_at.desc()).offset(skip).limit(limit).all()
        return attempts, total


# Global instance
attempt_service = AttemptService()
