"""
Content management service for categories, tutorials and quizzes
"""
import logging
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from tutorial_app.config import settings
from tutorial_app.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from tutorial_app.models import Category, Question, Quiz, Tutorial
from tutorial_app.schemas.category import CategoryCreate, CategoryUpdate
from tutorial_app.schemas.quiz import QuestionCreate, QuizCreate, QuizUpdate
from tutorial_app.schemas.tutorial import TutorialCreate, TutorialUpdate
from tutorial_app.utils.cache import cache_service

logger = logging.getLogger(__name__)


def _owns(user: Any, teacher_id: UUID) -> bool:
    return user.is_admin or teacher_id == user.id


def _apply_changes(record: Any, changes: Dict[str, Any]) -> None:
    """Copy explicitly sent fields; null is only accepted for nullable columns"""
    columns = record.__table__.columns
    for key, value in changes.items():
        if value is None and not columns[key].nullable:
            raise ValidationError(f"{key} cannot be null")
        setattr(record, key, value)


class ContentService:
    """Service for authoring and browsing learning content"""

    # ---- categories ----

    def create_category(self, db: Session, data: CategoryCreate) -> Category:
        if db.query(Category).filter(Category.name == data.name).first():
            raise ConflictError("Category with this name already exists")

        category = Category(name=data.name, description=data.description, color=data.color)
        db.add(category)
        db.commit()
        db.refresh(category)

        logger.info(f"Category created: {category.id} ({category.name})")
        return category

    def get_category(self, db: Session, category_id: UUID) -> Category:
        category = db.query(Category).filter(Category.id == category_id).first()
        if not category:
            raise NotFoundError("Category not found")
        return category

    def list_categories(
        self,
        db: Session,
        is_active: Optional[bool],
        skip: int,
        limit: int
    ) -> Tuple[List[Category], int]:
        query = db.query(Category)
        if is_active is not None:
            query = query.filter(Category.is_active.is_(is_active))

        total = query.count()
        categories = query.order_by(Category.name.asc()).offset(skip).limit(limit).all()
        return categories, total

    def update_category(self, db: Session, category_id: UUID, data: CategoryUpdate) -> Category:
        category = self.get_category(db, category_id)
        changes = data.model_dump(exclude_unset=True)

        new_name = changes.get("name")
        if new_name and new_name != category.name:
            if db.query(Category).filter(Category.name == new_name).first():
                raise ConflictError("Category with this name already exists")

        _apply_changes(category, changes)

        db.commit()
        db.refresh(category)
        return category

    def delete_category(self, db: Session, category_id: UUID) -> None:
        """Delete an empty category; categories still holding tutorials are refused"""
        category = self.get_category(db, category_id)

        tutorial_count = db.query(func.count(Tutorial.id)).filter(
            Tutorial.category_id == category.id
        ).scalar() or 0
        if tutorial_count > 0:
            raise ValidationError(
                f"Cannot delete category with {tutorial_count} tutorials. "
                f"Please move or delete the tutorials first."
            )

        db.delete(category)
        db.commit()

        logger.info(f"Category deleted: {category_id}")

    def toggle_category_status(self, db: Session, category_id: UUID) -> Category:
        category = self.get_category(db, category_id)
        category.is_active = not category.is_active
        db.commit()
        db.refresh(category)

        logger.info(f"Category {category.id} {'activated' if category.is_active else 'deactivated'}")
        return category

    def category_stats(self, db: Session, category_id: UUID) -> Dict[str, Any]:
        """
        Tutorial statistics for a category

        Returns:
            Dictionary with tutorial totals, difficulty distribution, rating
            figures over published tutorials and the five newest tutorials
        """
        category = self.get_category(db, category_id)
        in_category = Tutorial.category_id == category.id

        total = db.query(func.count(Tutorial.id)).filter(in_category).scalar() or 0
        published = db.query(func.count(Tutorial.id)).filter(
            in_category, Tutorial.is_published.is_(True)
        ).scalar() or 0

        difficulty_rows = (
            db.query(Tutorial.difficulty, func.count(Tutorial.id))
            .filter(in_category)
            .group_by(Tutorial.difficulty)
            .all()
        )

        average_rating, total_ratings = (
            db.query(func.avg(Tutorial.rating), func.sum(Tutorial.rating_count))
            .filter(in_category, Tutorial.is_published.is_(True))
            .one()
        )

        recent = (
            db.query(Tutorial)
            .filter(in_category)
            .order_by(Tutorial.created_at.desc())
            .limit(5)
            .all()
        )

        return {
            "category_id": str(category.id),
            "total_tutorials": total,
            "published_tutorials": published,
            "draft_tutorials": total - published,
            "difficulty_distribution": {difficulty: count for difficulty, count in difficulty_rows},
            "average_rating": round(float(average_rating or 0.0), 2),
            "total_ratings": int(total_ratings or 0),
            "recent_tutorials": [
                {
                    "id": str(t.id),
                    "title": t.title,
                    "is_published": t.is_published,
                    "created_at": t.created_at.isoformat() if t.created_at else None
                }
                for t in recent
            ]
        }

    def _adjust_tutorial_count(self, db: Session, category_id: Optional[UUID], delta: int) -> None:
        # Computed in the UPDATE itself so concurrent requests cannot lose counts
        if not category_id:
            return
        query = db.query(Category).filter(Category.id == category_id)
        if delta < 0:
            query = query.filter(Category.tutorial_count > 0)
        query.update(
            {Category.tutorial_count: Category.tutorial_count + delta},
            synchronize_session=False
        )

    # ---- tutorials ----

    def create_tutorial(self, db: Session, user: Any, data: TutorialCreate) -> Tutorial:
        if data.category_id and not db.query(Category).filter(Category.id == data.category_id).first():
            raise ValidationError("Category does not exist")

        tutorial = Tutorial(
            title=data.title,
            description=data.description,
            difficulty=data.difficulty,
            duration=data.duration,
            category_id=data.category_id,
            teacher_id=user.id,
            is_published=data.is_published,
            rating=0.0,
            rating_count=0
        )
        db.add(tutorial)
        self._adjust_tutorial_count(db, data.category_id, 1)
        db.commit()
        db.refresh(tutorial)

        logger.info(f"Tutorial created: {tutorial.id} by teacher {user.id}")
        return tutorial

    def get_tutorial(self, db: Session, tutorial_id: UUID) -> Tutorial:
        tutorial = db.query(Tutorial).filter(Tutorial.id == tutorial_id).first()
        if not tutorial:
            raise NotFoundError("Tutorial not found")
        return tutorial

    def list_tutorials(
        self,
        db: Session,
        category_id: Optional[UUID],
        teacher_id: Optional[UUID],
        is_published: Optional[bool],
        skip: int,
        limit: int
    ) -> Tuple[List[Tutorial], int]:
        query = db.query(Tutorial)
        if category_id:
            query = query.filter(Tutorial.category_id == category_id)
        if teacher_id:
            query = query.filter(Tutorial.teacher_id == teacher_id)
        if is_published is not None:
            query = query.filter(Tutorial.is_published.is_(is_published))

        total = query.count()
        tutorials = query.order_by(Tutorial.created_at.desc()).offset(skip).limit(limit).all()
        return tutorials, total

    def update_tutorial(self, db: Session, tutorial_id: UUID, user: Any, data: TutorialUpdate) -> Tutorial:
        tutorial = self.get_tutorial(db, tutorial_id)
        if not _owns(user, tutorial.teacher_id):
            raise ForbiddenError("You can only update your own tutorials")

        changes = data.model_dump(exclude_unset=True)

        if "category_id" in changes and changes["category_id"] != tutorial.category_id:
            new_category = changes["category_id"]
            if new_category and not db.query(Category).filter(Category.id == new_category).first():
                raise ValidationError("Category does not exist")
            self._adjust_tutorial_count(db, tutorial.category_id, -1)
            self._adjust_tutorial_count(db, new_category, 1)

        _apply_changes(tutorial, changes)

        db.commit()
        db.refresh(tutorial)
        return tutorial

    def toggle_tutorial_publish(self, db: Session, tutorial_id: UUID, user: Any) -> Tutorial:
        tutorial = self.get_tutorial(db, tutorial_id)
        if not _owns(user, tutorial.teacher_id):
            raise ForbiddenError("You can only publish your own tutorials")

        tutorial.is_published = not tutorial.is_published
        db.commit()
        db.refresh(tutorial)

        logger.info(f"Tutorial {tutorial.id} {'published' if tutorial.is_published else 'unpublished'}")
        return tutorial

    def delete_tutorial(self, db: Session, tutorial_id: UUID, user: Any) -> None:
        """Delete a tutorial with its quizzes, progress and reviews"""
        tutorial = self.get_tutorial(db, tutorial_id)
        if not _owns(user, tutorial.teacher_id):
            raise ForbiddenError("You can only delete your own tutorials")

        quiz_ids = [quiz.id for quiz in tutorial.quizzes]

        self._adjust_tutorial_count(db, tutorial.category_id, -1)
        db.delete(tutorial)
        db.commit()

        for quiz_id in quiz_ids:
            cache_service.invalidate_quiz(quiz_id)

        logger.info(f"Tutorial deleted: {tutorial_id} ({len(quiz_ids)} quizzes removed)")

    # ---- quizzes ----

    def _build_questions(self, quiz: Quiz, questions: List[QuestionCreate]) -> None:
        for index, item in enumerate(questions):
            quiz.questions.append(Question(
                question=item.question,
                type=item.type,
                options=list(item.options),
                correct_answer=item.correct_answer,
                explanation=item.explanation,
                points=item.points,
                order=item.order or index + 1,
                is_active=item.is_active
            ))
        quiz.total_questions = sum(1 for q in quiz.questions if q.is_active)

    def create_quiz(self, db: Session, user: Any, data: QuizCreate) -> Quiz:
        tutorial = self.get_tutorial(db, data.tutorial_id)
        if not _owns(user, tutorial.teacher_id):
            raise ForbiddenError("You can only create quizzes for your own tutorials")

        passing_score = data.passing_score
        if passing_score is None:
            passing_score = settings.DEFAULT_PASSING_SCORE

        quiz = Quiz(
            title=data.title,
            description=data.description,
            tutorial_id=tutorial.id,
            teacher_id=user.id,
            time_limit=data.time_limit,
            passing_score=passing_score,
            max_attempts=data.max_attempts,
            show_correct_answers=data.show_correct_answers,
            is_published=False,
            is_active=True,
            total_attempts=0,
            average_score=0.0
        )
        self._build_questions(quiz, data.questions)

        db.add(quiz)
        db.commit()
        db.refresh(quiz)

        logger.info(f"Quiz created: {quiz.id} with {quiz.total_questions} questions")
        return quiz

    def get_quiz(self, db: Session, quiz_id: UUID) -> Quiz:
        quiz = db.query(Quiz).filter(Quiz.id == quiz_id).first()
        if not quiz:
            raise NotFoundError("Quiz not found")
        return quiz

    def get_quiz_for_user(self, db: Session, quiz_id: UUID, user: Any, include_answers: bool = False) -> Tuple[Quiz, bool]:
        """
        Fetch a quiz for display

        Returns:
            Tuple of (quiz, whether answers may be shown). Answers are only
            shown to the owner or an admin who asked for them.
        """
        quiz = self.get_quiz(db, quiz_id)
        is_owner = _owns(user, quiz.teacher_id)

        if not quiz.is_published and not is_owner:
            raise ForbiddenError("Quiz is not published")

        return quiz, include_answers and is_owner

    def list_quizzes(
        self,
        db: Session,
        user: Any,
        tutorial_id: Optional[UUID],
        teacher_id: Optional[UUID],
        is_published: Optional[bool],
        skip: int,
        limit: int
    ) -> Tuple[List[Quiz], int]:
        query = db.query(Quiz)
        if tutorial_id:
            query = query.filter(Quiz.tutorial_id == tutorial_id)
        if teacher_id:
            query = query.filter(Quiz.teacher_id == teacher_id)

        if user.role == "student":
            query = query.filter(Quiz.is_published.is_(True))
        elif is_published is not None:
            query = query.filter(Quiz.is_published.is_(is_published))

        total = query.count()
        quizzes = query.order_by(Quiz.created_at.desc()).offset(skip).limit(limit).all()
        return quizzes, total

    def update_quiz(self, db: Session, quiz_id: UUID, user: Any, data: QuizUpdate) -> Quiz:
        quiz = self.get_quiz(db, quiz_id)
        if not _owns(user, quiz.teacher_id):
            raise ForbiddenError("You can only update your own quizzes")

        changes = data.model_dump(exclude_unset=True, exclude={"questions"})
        _apply_changes(quiz, changes)

        if data.questions is not None:
            # delete-orphan cascade removes the old rows
            quiz.questions.clear()
            db.flush()
            self._build_questions(quiz, data.questions)

        db.commit()
        db.refresh(quiz)
        cache_service.invalidate_quiz(quiz.id)

        logger.info(f"Quiz updated: {quiz.id}")
        return quiz

    def delete_quiz(self, db: Session, quiz_id: UUID, user: Any) -> None:
        """Delete a quiz with its questions and attempts"""
        quiz = self.get_quiz(db, quiz_id)
        if not _owns(user, quiz.teacher_id):
            raise ForbiddenError("You can only delete your own quizzes")

        db.delete(quiz)
        db.commit()
        cache_service.invalidate_quiz(quiz_id)

        logger.info(f"Quiz deleted: {quiz_id}")

    def toggle_publish(self, db: Session, quiz_id: UUID, user: Any) -> Quiz:
        quiz = self.get_quiz(db, quiz_id)
        if not _owns(user, quiz.teacher_id):
            raise ForbiddenError("You can only publish your own quizzes")

        quiz.is_published = not quiz.is_published
        db.commit()
        db.refresh(quiz)
        cache_service.invalidate_quiz(quiz.id)

        logger.info(f"Quiz {quiz.id} {'published' if quiz.is_published else 'unpublished'}")
        return quiz


# Global instance
content_service = ContentService()
