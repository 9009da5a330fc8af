"""
SQLAlchemy database models.

The assistant reads stores and products and appends to the log tables:
- Stores and their product catalogs (owned by store clients)
- AI queries (question/answer pairs per user)
- Token usage (per store and user, for admin aggregation)
- Activity log (audit trail for the advisory cart tools)
"""

import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, JSON, Numeric, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from storefront.database import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class Store(Base):
    """A tenant storefront. Every product belongs to exactly one store."""
    __tablename__ = "stores"

    id = Column(String(36), primary_key=True, default=_new_id)
    store_name = Column(String(255), nullable=False)
    url = Column(String(255), nullable=False, unique=True, index=True)
    description = Column(Text)
    city = Column(String(120))
    category = Column(String(120))
    business_hours = Column(String(255))

    # ACTIVE | SUSPENDED
    status = Column(String(20), nullable=False, default="ACTIVE")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    products = relationship("Product", back_populates="store")


class Product(Base):
    """
    Catalog entry. Brand, category and color are not columns: they are folded
    into the free-form tag list and matched by tag membership.
    """
    __tablename__ = "products"
    __table_args__ = (
        Index("ix_products_store_active_created", "store_id", "is_active", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    store_id = Column(String(36), ForeignKey("stores.id"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    description = Column(Text)

    # Exact decimal dollars, never float
    price = Column(Numeric(10, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    tags = Column(JSON, nullable=False, default=list)    # e.g. ["Nike", "shoes", "red"]
    images = Column(JSON, nullable=False, default=list)
    sku = Column(String(100))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    store = relationship("Store", back_populates="products")


class AIQuery(Base):
    """One question/answer pair from the shopping assistant."""
    __tablename__ = "ai_queries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), nullable=False, index=True)
    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=False)
    product_id = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)


class TokenUsage(Base):
    """Model tokens consumed by one chat request."""
    __tablename__ = "token_usage"

    id = Column(Integer, primary_key=True, autoincrement=True)
    store_id = Column(String(36), nullable=False, index=True)
    user_id = Column(String(36), nullable=False, index=True)
    tokens_used = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ActivityLog(Base):
    """Append-only audit entries (cart intents recorded by the assistant tools)."""
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), nullable=False, index=True)
    action_type = Column(String(50), nullable=False)     # ADD_TO_CART | REMOVE_FROM_CART
    target_id = Column(String(36))
    details = Column(JSON)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
