"""
Purchase model: ledger of verified checkout sessions.
session_id is unique: concurrent inserts for the same session resolve to a single row.
"""
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, Integer, String

from paygate.db.base import Base


class Purchase(Base):
    __tablename__ = "purchases"

    id = Column(String, primary_key=True, default=lambda: str(uuid4()))
    session_id = Column(String, unique=True, nullable=False, index=True)  # Stripe checkout session ID
    product_slug = Column(String, nullable=False, index=True)
    email = Column(String, nullable=True)
    amount_paid = Column(Integer, nullable=True)                          # cents, from Stripe session
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
