"""
Catalog and ledger rows as returned by PostgREST or the SQL backend.
"""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProductRow(BaseModel):
    """Subset of the products table used by verification and issuance."""

    model_config = ConfigDict(extra="ignore", from_attributes=True)

    slug: str = ""
    file_path: str = ""
    stripe_payment_link_id: str | None = None
    active: bool = True

    @field_validator("file_path", mode="before")
    @classmethod
    def none_path_to_empty(cls, v):
        return v or ""

    @field_validator("stripe_payment_link_id", mode="before")
    @classmethod
    def empty_link_to_none(cls, v):
        return v or None

    @property
    def expected_payment_link_id(self) -> str | None:
        return self.stripe_payment_link_id


class PurchaseRecord(BaseModel):
    """Ledger entry proving a checkout session paid for a product."""

    model_config = ConfigDict(from_attributes=True)

    session_id: str
    product_slug: str
    email: str | None = None
    amount_paid: int | None = None
    created_at: datetime | None = Field(
        None,
        description="Set by the ledger on insert; never sent by the service",
    )
