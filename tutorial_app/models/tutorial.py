"""
Tutorial model - learning content with a running average rating
"""
from sqlalchemy import Column, String, Integer, Float, Boolean, TIMESTAMP, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from tutorial_app.database import Base
import uuid


class Tutorial(Base):
    """
    Tutorials table

    rating is a running average over rating_count reviews; both are
    maintained incrementally by the rating service and are 0 together.
    """
    __tablename__ = "tutorials"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(200), nullable=False)
    description = Column(String(500), nullable=False)
    difficulty = Column(String(20), nullable=False, default="beginner")
    duration = Column(String(50))
    category_id = Column(UUID(as_uuid=True), ForeignKey("categories.id"), index=True)
    teacher_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    is_published = Column(Boolean, nullable=False, default=False, index=True)
    rating = Column(Float, nullable=False, default=0.0)
    rating_count = Column(Integer, nullable=False, default=0)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    category = relationship("Category", back_populates="tutorials")
    quizzes = relationship("Quiz", back_populates="tutorial", cascade="all, delete-orphan")
    progress_records = relationship("Progress", back_populates="tutorial", cascade="all, delete-orphan")
    reviews = relationship("Review", back_populates="tutorial", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Tutorial(id={self.id}, title={self.title}, rating={self.rating})>"
