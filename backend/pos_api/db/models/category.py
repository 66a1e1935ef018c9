"""SQLAlchemy model for product categories."""

import uuid

from sqlalchemy import Column, String, func
from sqlalchemy.orm import relationship
from sqlalchemy.types import DateTime

from pos_api.db.base import Base


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    products = relationship("Product", back_populates="category")
