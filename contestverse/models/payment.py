"""
Payment Models
Checkout requests and reconciled payment records
"""
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime, timezone


class CheckoutSessionCreate(BaseModel):
    """Schema for starting a checkout for a contest entry"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    price: float = Field(..., gt=0, description="Entry fee in major currency units")
    contest_id: str
    contest_name: str


class PaymentInDB(BaseModel):
    """Reconciled payment, one per provider transaction"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    amount: float
    currency: Optional[str] = None
    user_email: Optional[str] = None
    contest_id: Optional[str] = None
    contest_name: Optional[str] = None
    transaction_id: str
    payment_status: str
    paid_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    tracking_id: str
    session_id: Optional[str] = None
