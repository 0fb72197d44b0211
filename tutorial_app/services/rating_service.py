"""
Review and rating aggregation service
Keeps each tutorial's running average in step with its reviews
"""
import logging
from typing import Any, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tutorial_app.config import settings
from tutorial_app.exceptions import ConflictError, NotFoundError, ValidationError
from tutorial_app.models import Review, Tutorial

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 1000


class RatingService:
    """
    Service for reviews and the tutorial rating aggregate

    Every read-modify-write of (rating, rating_count) happens in the same
    transaction as the review change, with the tutorial row locked.
    """

    def _validate_rating(self, rating: Any) -> int:
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")
        return rating

    def _validate_comment(self, comment: Optional[str]) -> str:
        comment = (comment or "").strip()
        if not comment:
            raise ValidationError("Comment is required")
        if len(comment) > MAX_COMMENT_LENGTH:
            raise ValidationError(f"Comment cannot exceed {MAX_COMMENT_LENGTH} characters")
        return comment

    def _lock_tutorial(self, db: Session, tutorial_id: UUID) -> Tutorial:
        tutorial = (
            db.query(Tutorial)
            .filter(Tutorial.id == tutorial_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not tutorial:
            raise NotFoundError("Tutorial not found")
        return tutorial

    def _find_user_review(self, db: Session, tutorial_id: UUID, user_id: UUID) -> Optional[Review]:
        return db.query(Review).filter(
            Review.tutorial_id == tutorial_id,
            Review.user_id == user_id
        ).first()

    def _find_owned_review(self, db: Session, review_id: UUID, user_id: UUID) -> Review:
        # Non-owners get the same answer as a missing review
        review = db.query(Review).filter(
            Review.id == review_id,
            Review.user_id == user_id
        ).first()
        if not review:
            raise NotFoundError("Review not found")
        return review

    def _lock_owned_review(self, db: Session, review_id: UUID, user_id: UUID) -> Review:
        # Re-read under lock; a concurrent delete may have removed it meanwhile
        review = (
            db.query(Review)
            .filter(Review.id == review_id, Review.user_id == user_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not review:
            raise NotFoundError("Review not found")
        return review

    def add_review(
        self,
        db: Session,
        tutorial_id: UUID,
        user_id: UUID,
        rating: Any,
        comment: Optional[str]
    ) -> Review:
        """
        Create a review and fold its rating into the tutorial average

        new_avg = (old_avg * old_count + rating) / (old_count + 1)
        """
        rating = self._validate_rating(rating)
        comment = self._validate_comment(comment)

        tutorial = self._lock_tutorial(db, tutorial_id)

        if self._find_user_review(db, tutorial_id, user_id):
            raise ConflictError("You have already reviewed this tutorial")

        review = Review(
            user_id=user_id,
            tutorial_id=tutorial_id,
            rating=rating,
            comment=comment
        )
        db.add(review)

        try:
            db.flush()
        except IntegrityError:
            db.rollback()
            logger.warning(f"Duplicate review rejected by unique index: user={user_id}, tutorial={tutorial_id}")
            raise ConflictError("You have already reviewed this tutorial")

        count = tutorial.rating_count or 0
        tutorial.rating = ((tutorial.rating or 0.0) * count + rating) / (count + 1)
        tutorial.rating_count = count + 1

        db.commit()
        db.refresh(review)

        logger.info(
            f"Review created: tutorial={tutorial_id}, rating={rating}, "
            f"average={tutorial.rating:.2f} over {tutorial.rating_count}"
        )

        return review

    def quick_rate(self, db: Session, tutorial_id: UUID, user_id: UUID, rating: Any) -> Review:
        """Star rating without a written comment"""
        return self.add_review(db, tutorial_id, user_id, rating, settings.QUICK_RATING_COMMENT)

    def update_review(
        self,
        db: Session,
        review_id: UUID,
        user_id: UUID,
        rating: Any = None,
        comment: Optional[str] = None
    ) -> Review:
        """
        Edit an owned review

        A changed rating moves the average by (new - old) / count; the count is unchanged.
        """
        if rating is not None:
            rating = self._validate_rating(rating)
        if comment is not None:
            comment = self._validate_comment(comment)

        review = self._find_owned_review(db, review_id, user_id)

        if rating is not None and rating != review.rating:
            tutorial = self._lock_tutorial(db, review.tutorial_id)
            review = self._lock_owned_review(db, review_id, user_id)
            old_rating = review.rating

            count = tutorial.rating_count or 0
            if count > 0 and old_rating != rating:
                tutorial.rating = (tutorial.rating * count - old_rating + rating) / count
            review.rating = rating

            logger.info(
                f"Review {review_id} rating changed {old_rating} -> {rating}, "
                f"tutorial average now {tutorial.rating:.2f}"
            )

        if comment is not None:
            review.comment = comment

        db.commit()
        db.refresh(review)

        return review

    def delete_review(self, db: Session, review_id: UUID, user_id: UUID) -> None:
        """
        Remove an owned review and take its rating out of the average

        When the last review goes, the aggregate resets to 0 / 0.
        """
        review = self._find_owned_review(db, review_id, user_id)
        tutorial = self._lock_tutorial(db, review.tutorial_id)
        review = self._lock_owned_review(db, review_id, user_id)

        count = (tutorial.rating_count or 0) - 1
        if count > 0:
            tutorial.rating = (tutorial.rating * (count + 1) - review.rating) / count
            tutorial.rating_count = count
        else:
            tutorial.rating = 0.0
            tutorial.rating_count = 0

        db.delete(review)
        db.commit()

        logger.info(
            f"Review {review_id} deleted, tutorial {tutorial.id} average={tutorial.rating:.2f} "
            f"over {tutorial.rating_count}"
        )

    def list_tutorial_reviews(
        self,
        db: Session,
        tutorial_id: UUID,
        skip: int,
        limit: int
    ) -> Tuple[List[Review], int]:
        query = db.query(Review).filter(Review.tutorial_id == tutorial_id)
        total = query.count()
        reviews = query.order_by(Review.created_at.desc()).offset(skip).limit(limit).all()
        return reviews, total

    def get_user_review(self, db: Session, tutorial_id: UUID, user_id: UUID) -> Review:
        review = self._find_user_review(db, tutorial_id, user_id)
        if not review:
            raise NotFoundError("Review not found")
        return review


# Global instance
rating_service = RatingService()
