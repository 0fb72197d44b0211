"""
Category model - tutorial taxonomy
"""
from sqlalchemy import Column, String, Integer, Boolean, TIMESTAMP, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from tutorial_app.database import Base
import uuid


class Category(Base):
    """
    Categories table - groups tutorials and keeps a denormalized tutorial count
    """
    __tablename__ = "categories"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(50), unique=True, nullable=False, index=True)
    description = Column(String(200), nullable=False)
    color = Column(String(7), nullable=False, default="#3B82F6")
    tutorial_count = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(TIMESTAMP, server_default=func.now())
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    tutorials = relationship("Tutorial", back_populates="category")

    def __repr__(self):
        return f"<Category(id={self.id}, name={self.name})>"
