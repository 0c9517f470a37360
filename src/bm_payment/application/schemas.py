"""Pydantic schemas for bm_payment."""
from datetime import datetime

from pydantic import BaseModel, Field

from src.bm_common.response import CamelModel
from src.bm_payment.domain.models import Payment


class CreatePaymentOrderRequest(BaseModel):
    bid_id: str = Field(..., min_length=1)


class ConfirmPaymentRequest(BaseModel):
    """Fields posted back by the Razorpay checkout handler."""

    razorpay_order_id: str = Field(..., min_length=1)
    razorpay_payment_id: str = Field(..., min_length=1)
    razorpay_signature: str = Field(..., min_length=1)


class PaymentOut(CamelModel):
    id: str
    listing_id: str
    bid_id: str
    amount: int
    status: str
    gateway_order_id: str | None
    gateway_payment_id: str | None
    created_at: datetime | None

    @classmethod
    def from_domain(cls, p: Payment) -> "PaymentOut":
        return cls(
            id=p.id,
            listing_id=p.listing_id,
            bid_id=p.bid_id,
            amount=p.amount,
            status=p.status.value,
            gateway_order_id=p.gateway_order_id,
            gateway_payment_id=p.gateway_payment_id,
            created_at=p.created_at,
        )


class PaymentOrderOut(CamelModel):
    """What the client needs to open Razorpay checkout."""

    payment: PaymentOut
    key_id: str
    amount_paise: int
    currency: str
