"""
Product model: catalog row. Written by catalog tooling, read-only to the service.
stripe_payment_link_id binds a product to the payment link that sells it.
"""
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text

from paygate.db.base import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    slug = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    long_description = Column(Text, nullable=True)
    price = Column(Integer, nullable=False)                   # cents (2900 = $29.00)
    currency = Column(String, nullable=False, default="usd")
    category = Column(String, nullable=True)
    node_types = Column(JSON, nullable=True)
    file_path = Column(String, nullable=False)                # object path inside the storage bucket
    stripe_product_id = Column(String, nullable=True)
    stripe_price_id = Column(String, nullable=True)
    stripe_payment_link_id = Column(String, nullable=True)
    stripe_payment_link = Column(String, nullable=True)
    active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
