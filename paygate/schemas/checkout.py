"""
Stripe Checkout Session: only the fields the verifier reads.
Absent fields map to: payment_status "", payment_link None, email None, amount None.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator


class CustomerDetails(BaseModel):
    model_config = ConfigDict(extra="ignore")

    email: str | None = None


class CheckoutSession(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = ""
    payment_status: str = ""
    payment_link: str | None = None
    customer_details: CustomerDetails | None = None
    amount_total: int | None = None

    @field_validator("payment_status", mode="before")
    @classmethod
    def none_status_to_empty(cls, v):
        return v or ""

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "paid"

    @property
    def customer_email(self) -> str | None:
        return self.customer_details.email if self.customer_details else None


class StripeErrorBody(BaseModel):
    """Body of a non-2xx Stripe response: {"error": {"type": ..., "message": ...}}."""

    model_config = ConfigDict(extra="ignore")

    error: dict = Field(default_factory=dict)

    @field_validator("error", mode="before")
    @classmethod
    def non_object_error_to_empty(cls, v):
        # e.g. {"error": "rate limited"} from a proxy in front of the API
        return v if isinstance(v, dict) else {}
