"""
Progress model - tracks tutorial completion per user
"""
from sqlalchemy import Column, String, Integer, TIMESTAMP, ForeignKey, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from tutorial_app.database import Base, JSONType
import uuid


class Progress(Base):
    """
    Progress table - one row per (user, tutorial), created lazily
    """
    __tablename__ = "progress"
    __table_args__ = (
        UniqueConstraint("user_id", "tutorial_id", name="uq_progress_user_tutorial"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    tutorial_id = Column(UUID(as_uuid=True), ForeignKey("tutorials.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="not_started")
    progress_percentage = Column(Integer, nullable=False, default=0)
    time_spent = Column(Integer, nullable=False, default=0)  # minutes
    last_position = Column(String(255), nullable=False, default="")
    quiz_attempts = Column(JSONType, nullable=False, default=list)
    started_at = Column(TIMESTAMP)
    completed_at = Column(TIMESTAMP)
    last_accessed = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    tutorial = relationship("Tutorial", back_populates="progress_records")

    def __repr__(self):
        return (
            f"<Progress(user_id={self.user_id}, tutorial_id={self.tutorial_id}, "
            f"status={self.status}, progress={self.progress_percentage})>"
        )
