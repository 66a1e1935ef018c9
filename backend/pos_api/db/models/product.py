"""SQLAlchemy model for product records."""

import uuid

from sqlalchemy import Boolean, Column, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import relationship
from sqlalchemy.types import DateTime

from pos_api.db.base import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False, unique=True)
    price = Column(Numeric(12, 2, asdecimal=False), nullable=False)
    stock = Column(Integer, nullable=False)
    barcode = Column(String(64))
    active = Column(Boolean, nullable=False, default=True, index=True)
    category_id = Column(
        String(36), ForeignKey("categories.id"), nullable=False, index=True
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    category = relationship("Category", back_populates="products")
    purchases = relationship("Purchase", back_populates="product")
    sales = relationship("Sale", back_populates="product")

    @property
    def has_history(self) -> bool:
        """True when any purchase or sale references this product."""
        return bool(self.purchases) or bool(self.sales)
