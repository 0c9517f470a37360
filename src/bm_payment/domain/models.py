"""Payment domain model — pure dataclass."""
from dataclasses import dataclass
from datetime import datetime

from src.bm_common.enums import PaymentStatus


@dataclass
class Payment:
    id: str
    listing_id: str
    payer_id: str
    bid_id: str
    amount: int  # whole rupees, same unit as the bid
    status: PaymentStatus = PaymentStatus.PENDING
    gateway_order_id: str | None = None
    gateway_payment_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_settled(self) -> bool:
        return self.status == PaymentStatus.SUCCESS
