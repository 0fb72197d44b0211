"""
Review model - a user's rating and comment on a tutorial
"""
from sqlalchemy import Column, Integer, Boolean, Text, TIMESTAMP, ForeignKey, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from tutorial_app.database import Base
import uuid


class Review(Base):
    """
    Reviews table - the unique (user, tutorial) index is the final guard
    against duplicate reviews
    """
    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("user_id", "tutorial_id", name="uq_reviews_user_tutorial"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    tutorial_id = Column(UUID(as_uuid=True), ForeignKey("tutorials.id"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False)
    is_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    tutorial = relationship("Tutorial", back_populates="reviews")

    def __repr__(self):
        return f"<Review(user_id={self.user_id}, tutorial_id={self.tutorial_id}, rating={self.rating})>"
